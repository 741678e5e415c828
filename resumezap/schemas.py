from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


Tone = Literal["professional", "enthusiastic", "concise"]
Plan = Literal["free", "premium", "pro", "lifetime"]
ApplicationStatus = Literal["applied", "interview", "offer", "rejected"]
Importance = Literal["low", "medium", "high"]
TicketPriority = Literal["low", "medium", "high"]
TicketStatus = Literal["open", "in_progress", "resolved", "closed"]
ExportFormat = Literal["pdf", "docx", "txt"]

REQUEST_TYPES = ("resume_analysis", "cover_letter", "skill_gap")
TONES = ("professional", "enthusiastic", "concise")


def clamp_score(value: Any) -> int:
    """Coerce a model-supplied score ("85", "85%", 85.4) into 0..100."""
    if isinstance(value, bool):
        raise ValueError("score must be a number")
    if isinstance(value, str):
        value = value.strip().rstrip("%").strip()
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError("score must be a number")
    return int(round(min(100.0, max(0.0, number))))


# =========================
# Proxy envelope
# =========================
class ResumeFile(BaseModel):
    data: str
    media_type: str = "text/plain"
    filename: str = "resume"


class AIRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    type: Optional[str] = None
    job_posting: Optional[str] = None
    resume_content: Optional[str] = None
    resume_file: Optional[ResumeFile] = None

    # cover_letter only
    company_name: Optional[str] = None
    job_title: Optional[str] = None
    tone: Optional[str] = None
    hiring_manager: Optional[str] = None
    personal_experience: Optional[str] = None


class ProxyResponse(BaseModel):
    success: bool
    data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    message: Optional[str] = None


# =========================
# AI results (camelCase on the wire)
# =========================
class AIModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        # models emit null for "nothing to say"; fall back to field defaults
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class MatchBreakdown(AIModel):
    keywords: int = 0
    skills: int = 0
    experience: int = 0
    formatting: int = 0

    @field_validator("keywords", "skills", "experience", "formatting", mode="before")
    @classmethod
    def _score(cls, v: Any) -> int:
        return clamp_score(v)


class ResumeChange(AIModel):
    section: str = ""
    original: str = ""
    improved: str = ""
    reason: str = ""


class KeywordMatches(AIModel):
    found: List[str] = Field(default_factory=list)
    missing: List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)


class ResumeAnalysisResult(AIModel):
    tailored_resume: str = Field(min_length=1)
    match_score: int
    match_breakdown: MatchBreakdown = Field(default_factory=MatchBreakdown)
    changes: List[ResumeChange] = Field(default_factory=list)
    keyword_matches: KeywordMatches = Field(default_factory=KeywordMatches)
    ats_optimizations: List[str] = Field(default_factory=list)

    @field_validator("match_score", mode="before")
    @classmethod
    def _score(cls, v: Any) -> int:
        return clamp_score(v)


class CoverLetterResult(AIModel):
    cover_letter: str = Field(min_length=1)
    customizations: List[str] = Field(default_factory=list)
    key_strengths: List[str] = Field(default_factory=list)
    call_to_action: str = ""


class SkillGapItem(AIModel):
    skill: str
    current_level: str = ""
    required_level: str = ""
    gap: str = ""


class SkillGapBreakdown(AIModel):
    critical: List[SkillGapItem] = Field(default_factory=list)
    important: List[SkillGapItem] = Field(default_factory=list)
    nice_to_have: List[SkillGapItem] = Field(default_factory=list)


class Course(AIModel):
    platform: str = ""
    course_name: str = ""
    cost: str = ""
    duration: str = ""
    difficulty: str = ""


class FreeResource(AIModel):
    type: str = ""
    resource: str = ""
    description: str = ""


class Certification(AIModel):
    name: str = ""
    provider: str = ""
    time_to_complete: str = ""
    cost: str = ""


class LearningRecommendation(AIModel):
    skill: str
    priority: str = ""
    time_investment: str = ""
    courses: List[Course] = Field(default_factory=list)
    free_resources: List[FreeResource] = Field(default_factory=list)
    certifications: List[Certification] = Field(default_factory=list)
    practical_application: str = ""


class RoadmapPhase(AIModel):
    duration: str = ""
    focus: str = ""
    milestones: List[str] = Field(default_factory=list)


class DevelopmentRoadmap(AIModel):
    phase1: RoadmapPhase = Field(default_factory=RoadmapPhase)
    phase2: RoadmapPhase = Field(default_factory=RoadmapPhase)
    phase3: RoadmapPhase = Field(default_factory=RoadmapPhase)


class SkillGapResult(AIModel):
    skill_gap_analysis: SkillGapBreakdown
    learning_recommendations: List[LearningRecommendation]
    development_roadmap: DevelopmentRoadmap = Field(default_factory=DevelopmentRoadmap)
    skills_already_strong: List[str] = Field(default_factory=list)


# =========================
# File parsing
# =========================
class ParseMetadata(BaseModel):
    page_count: Optional[int] = None
    word_count: int = 0
    file_size: int
    file_name: str
    file_type: str


class ParseResult(BaseModel):
    success: bool
    text: str = ""
    error: Optional[str] = None
    metadata: Optional[ParseMetadata] = None


# =========================
# Library
# =========================
class OrmModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class UserCreate(BaseModel):
    email: str = Field(min_length=3)
    name: str = Field(min_length=1)


class UserUpdate(BaseModel):
    name: Optional[str] = None
    profile_picture_url: Optional[str] = None


class PlanUpgrade(BaseModel):
    plan: Literal["premium", "pro", "lifetime"]


class AccountDeletion(BaseModel):
    confirm: str


class UsageCounts(BaseModel):
    resume_tailoring: int = 0
    cover_letters: int = 0
    skill_analyses: int = 0


class UsageOut(BaseModel):
    plan: Plan
    period: str
    used: UsageCounts
    limits: Dict[str, Optional[int]]


class UserOut(OrmModel):
    id: str
    email: str
    name: str
    plan: Plan
    usage_this_month: UsageCounts
    profile_picture_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ResumeCreate(BaseModel):
    title: str
    content: str
    original_content: str = ""
    job_posting: str = ""
    match_score: int = Field(default=0, ge=0, le=100)


class ResumeUpdate(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    job_posting: Optional[str] = None
    match_score: Optional[int] = Field(default=None, ge=0, le=100)


class ResumeOut(OrmModel):
    id: str
    title: str
    content: str
    original_content: str
    job_posting: str
    match_score: int
    score_label: str
    created_at: datetime
    updated_at: datetime


class ApplicationCreate(BaseModel):
    company: str
    position: str
    location: str = ""
    status: ApplicationStatus = "applied"
    applied_date: date
    last_update: Optional[date] = None
    salary: Optional[str] = None
    notes: Optional[str] = None


class ApplicationUpdate(BaseModel):
    company: Optional[str] = None
    position: Optional[str] = None
    location: Optional[str] = None
    status: Optional[ApplicationStatus] = None
    applied_date: Optional[date] = None
    last_update: Optional[date] = None
    salary: Optional[str] = None
    notes: Optional[str] = None


class ApplicationOut(OrmModel):
    id: str
    company: str
    position: str
    location: str
    status: ApplicationStatus
    applied_date: date
    last_update: date
    salary: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ApplicationStats(BaseModel):
    total: int = 0
    applied: int = 0
    interview: int = 0
    offer: int = 0
    rejected: int = 0
    response_rate: int = 0


class CoverLetterCreate(BaseModel):
    title: str
    content: str
    company_name: str
    job_title: str
    tone: str = "professional"
    job_posting: Optional[str] = None
    resume_content_snapshot: Optional[str] = None
    customizations: List[str] = Field(default_factory=list)
    key_strengths: List[str] = Field(default_factory=list)
    call_to_action: Optional[str] = None


class CoverLetterUpdate(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    company_name: Optional[str] = None
    job_title: Optional[str] = None
    tone: Optional[str] = None
    job_posting: Optional[str] = None
    customizations: Optional[List[str]] = None
    key_strengths: Optional[List[str]] = None
    call_to_action: Optional[str] = None


class CoverLetterOut(OrmModel):
    id: str
    title: str
    content: str
    company_name: str
    job_title: str
    tone: Tone
    job_posting: Optional[str] = None
    resume_content_snapshot: Optional[str] = None
    customizations: List[str] = Field(default_factory=list)
    key_strengths: List[str] = Field(default_factory=list)
    call_to_action: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class CoverLetterStats(BaseModel):
    total: int = 0
    professional: int = 0
    enthusiastic: int = 0
    concise: int = 0
    this_month: int = 0


class SkillGapRecommendations(BaseModel):
    courses: List[str] = Field(default_factory=list)
    resources: List[str] = Field(default_factory=list)
    time_estimate: Optional[str] = None


class SkillGap(BaseModel):
    skill: str
    importance: Importance = "medium"
    has_skill: bool = False
    recommendations: SkillGapRecommendations = Field(default_factory=SkillGapRecommendations)


class SkillAnalysisCreate(BaseModel):
    resume_content: str
    job_posting: str
    skill_gaps: List[SkillGap] = Field(default_factory=list)
    resume_id: Optional[str] = None
    overall_summary: Optional[str] = None


class SkillRecommendationOut(OrmModel):
    id: str
    skill_analysis_id: str
    skill_name: str
    importance: Importance
    has_skill: bool
    recommended_courses: List[str] = Field(default_factory=list)
    recommended_resources: List[str] = Field(default_factory=list)
    time_estimate: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class SkillAnalysisOut(OrmModel):
    id: str
    resume_id: Optional[str] = None
    job_posting_content: str
    resume_content_snapshot: str
    analysis_date: datetime
    overall_summary: Optional[str] = None
    recommendations: List[SkillRecommendationOut] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class SkillAnalysisStats(BaseModel):
    total_analyses: int = 0
    total_skills_analyzed: int = 0
    skills_to_learn: int = 0
    skills_already_have: int = 0
    high_priority_gaps: int = 0
    medium_priority_gaps: int = 0
    low_priority_gaps: int = 0


class SupportTicketCreate(BaseModel):
    subject: str
    category: str
    priority: TicketPriority = "medium"
    message: str


class SupportTicketOut(OrmModel):
    id: str
    subject: str
    category: str
    priority: TicketPriority
    message: str
    status: TicketStatus
    created_at: datetime
    updated_at: datetime


# =========================
# AI endpoints (saved results)
# =========================
class ResumeAnalysisResponse(BaseModel):
    result: ResumeAnalysisResult
    resume: Optional[ResumeOut] = None


class CoverLetterResponse(BaseModel):
    result: CoverLetterResult
    cover_letter: Optional[CoverLetterOut] = None


class SkillGapResponse(BaseModel):
    result: SkillGapResult
    analysis: Optional[SkillAnalysisOut] = None
