from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Boolean, Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from resumezap.db.database import Base


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def score_label(score: int) -> str:
    if score >= 80:
        return "Excellent"
    if score >= 60:
        return "Good"
    return "Needs Work"


class Timestamped:
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class UserRecord(Timestamped, Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=new_id)
    email: Mapped[str] = mapped_column(String, unique=True, index=True)
    name: Mapped[str] = mapped_column(String)
    plan: Mapped[str] = mapped_column(String, default="free")
    usage_this_month: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
    usage_period: Mapped[str] = mapped_column(String, default="")
    profile_picture_url: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    resumes: Mapped[List["ResumeRecord"]] = relationship(cascade="all, delete-orphan")
    applications: Mapped[List["ApplicationRecord"]] = relationship(cascade="all, delete-orphan")
    cover_letters: Mapped[List["CoverLetterRecord"]] = relationship(cascade="all, delete-orphan")
    skill_analyses: Mapped[List["SkillAnalysisRecord"]] = relationship(cascade="all, delete-orphan")
    support_tickets: Mapped[List["SupportTicketRecord"]] = relationship(cascade="all, delete-orphan")


class ResumeRecord(Timestamped, Base):
    __tablename__ = "resumes"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    title: Mapped[str] = mapped_column(String)
    content: Mapped[str] = mapped_column(Text)
    original_content: Mapped[str] = mapped_column(Text, default="")
    job_posting: Mapped[str] = mapped_column(Text, default="")
    match_score: Mapped[int] = mapped_column(Integer, default=0)

    @property
    def score_label(self) -> str:
        return score_label(self.match_score)


class ApplicationRecord(Timestamped, Base):
    __tablename__ = "applications"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    company: Mapped[str] = mapped_column(String)
    position: Mapped[str] = mapped_column(String)
    location: Mapped[str] = mapped_column(String, default="")
    status: Mapped[str] = mapped_column(String, default="applied")
    applied_date: Mapped[date] = mapped_column(Date)
    last_update: Mapped[date] = mapped_column(Date)
    salary: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class CoverLetterRecord(Timestamped, Base):
    __tablename__ = "cover_letters"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    title: Mapped[str] = mapped_column(String)
    content: Mapped[str] = mapped_column(Text)
    company_name: Mapped[str] = mapped_column(String)
    job_title: Mapped[str] = mapped_column(String)
    tone: Mapped[str] = mapped_column(String, default="professional")
    job_posting: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    resume_content_snapshot: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    customizations: Mapped[List[str]] = mapped_column(JSON, default=list)
    key_strengths: Mapped[List[str]] = mapped_column(JSON, default=list)
    call_to_action: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class SkillAnalysisRecord(Timestamped, Base):
    __tablename__ = "skill_analyses"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    resume_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("resumes.id", ondelete="SET NULL"), nullable=True
    )
    job_posting_content: Mapped[str] = mapped_column(Text)
    resume_content_snapshot: Mapped[str] = mapped_column(Text)
    analysis_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    overall_summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    recommendations: Mapped[List["SkillRecommendationRecord"]] = relationship(
        back_populates="analysis",
        cascade="all, delete-orphan",
        order_by="SkillRecommendationRecord.position",
    )


class SkillRecommendationRecord(Timestamped, Base):
    __tablename__ = "skill_recommendations"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=new_id)
    skill_analysis_id: Mapped[str] = mapped_column(
        ForeignKey("skill_analyses.id", ondelete="CASCADE"), index=True
    )
    position: Mapped[int] = mapped_column(Integer, default=0)
    skill_name: Mapped[str] = mapped_column(String)
    importance: Mapped[str] = mapped_column(String, default="medium")
    has_skill: Mapped[bool] = mapped_column(Boolean, default=False)
    recommended_courses: Mapped[List[str]] = mapped_column(JSON, default=list)
    recommended_resources: Mapped[List[str]] = mapped_column(JSON, default=list)
    time_estimate: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    analysis: Mapped[SkillAnalysisRecord] = relationship(back_populates="recommendations")


class SupportTicketRecord(Timestamped, Base):
    __tablename__ = "support_tickets"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    subject: Mapped[str] = mapped_column(String)
    category: Mapped[str] = mapped_column(String)
    priority: Mapped[str] = mapped_column(String, default="medium")
    message: Mapped[str] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String, default="open")
