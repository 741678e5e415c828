"""
Skill analyses and their per-skill recommendations.

An analysis is a snapshot of (resume, job posting) plus one recommendation
row per skill. Both are written in one transaction so a library entry never
exists without its skills.
"""

from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from resumezap.core.errors import InvalidRequestError, NotFoundError
from resumezap.core.logger import get_logger
from resumezap.db.models import SkillAnalysisRecord, SkillRecommendationRecord
from resumezap.schemas import (
    SkillAnalysisCreate,
    SkillAnalysisStats,
    SkillGap,
    SkillGapRecommendations,
    SkillGapResult,
)
from resumezap.store.resumes import get_resume

logger = get_logger(__name__)

# report bucket -> stored importance
BUCKET_IMPORTANCE = (
    ("critical", "high"),
    ("important", "medium"),
    ("nice_to_have", "low"),
)


def create_skill_analysis(db: Session, user_id: str, data: SkillAnalysisCreate) -> SkillAnalysisRecord:
    logger.info("Creating new skill analysis")

    if not data.resume_content.strip():
        raise InvalidRequestError("Resume content is required")
    if not data.job_posting.strip():
        raise InvalidRequestError("Job posting content is required")
    if not data.skill_gaps:
        raise InvalidRequestError("At least one skill gap is required")
    if data.resume_id:
        get_resume(db, user_id, data.resume_id)

    analysis = SkillAnalysisRecord(
        user_id=user_id,
        resume_id=data.resume_id or None,
        job_posting_content=data.job_posting.strip(),
        resume_content_snapshot=data.resume_content.strip(),
        overall_summary=(data.overall_summary or "").strip() or None,
    )
    for position, gap in enumerate(data.skill_gaps):
        analysis.recommendations.append(
            SkillRecommendationRecord(
                position=position,
                skill_name=gap.skill.strip(),
                importance=gap.importance,
                has_skill=gap.has_skill,
                recommended_courses=list(gap.recommendations.courses),
                recommended_resources=list(gap.recommendations.resources),
                time_estimate=(gap.recommendations.time_estimate or "").strip() or None,
            )
        )

    try:
        db.add(analysis)
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Failed to create skill analysis")
        raise

    logger.info("Created analysis %s with %d recommendations", analysis.id, len(analysis.recommendations))
    return analysis


def _base_query(user_id: str):
    return (
        select(SkillAnalysisRecord)
        .where(SkillAnalysisRecord.user_id == user_id)
        .options(selectinload(SkillAnalysisRecord.recommendations))
    )


def list_skill_analyses(db: Session, user_id: str) -> List[SkillAnalysisRecord]:
    stmt = _base_query(user_id).order_by(SkillAnalysisRecord.analysis_date.desc())
    return list(db.scalars(stmt))


def find_skill_analysis(db: Session, user_id: str, analysis_id: str) -> Optional[SkillAnalysisRecord]:
    if not (analysis_id or "").strip():
        raise InvalidRequestError("Analysis ID is required")
    return db.scalar(_base_query(user_id).where(SkillAnalysisRecord.id == analysis_id))


def get_skill_analysis(db: Session, user_id: str, analysis_id: str) -> SkillAnalysisRecord:
    analysis = find_skill_analysis(db, user_id, analysis_id)
    if analysis is None:
        raise NotFoundError("Analysis not found")
    return analysis


def delete_skill_analysis(db: Session, user_id: str, analysis_id: str) -> None:
    analysis = find_skill_analysis(db, user_id, analysis_id)
    if analysis is None:
        raise NotFoundError("Analysis not found or you do not have permission to delete it")
    db.delete(analysis)
    db.commit()
    logger.info("Successfully deleted analysis: %s", analysis_id)


def skill_analysis_stats(db: Session, user_id: str) -> SkillAnalysisStats:
    analyses = list_skill_analyses(db, user_id)
    stats = SkillAnalysisStats(total_analyses=len(analyses))
    for analysis in analyses:
        for rec in analysis.recommendations:
            stats.total_skills_analyzed += 1
            if rec.has_skill:
                stats.skills_already_have += 1
                continue
            stats.skills_to_learn += 1
            if rec.importance == "high":
                stats.high_priority_gaps += 1
            elif rec.importance == "medium":
                stats.medium_priority_gaps += 1
            elif rec.importance == "low":
                stats.low_priority_gaps += 1
    return stats


def convert_analysis_to_skill_gaps(analysis: SkillAnalysisRecord) -> List[SkillGap]:
    return [
        SkillGap(
            skill=rec.skill_name,
            importance=rec.importance,
            has_skill=rec.has_skill,
            recommendations=SkillGapRecommendations(
                courses=rec.recommended_courses or [],
                resources=rec.recommended_resources or [],
                time_estimate=rec.time_estimate or "Not specified",
            ),
        )
        for rec in analysis.recommendations
    ]


def skill_gaps_from_report(report: SkillGapResult) -> List[SkillGap]:
    """Flatten an AI skill-gap report into storable gaps."""
    by_skill: Dict[str, object] = {
        rec.skill.strip().lower(): rec for rec in report.learning_recommendations
    }
    gaps: List[SkillGap] = []
    seen = set()

    for bucket, importance in BUCKET_IMPORTANCE:
        for item in getattr(report.skill_gap_analysis, bucket):
            key = item.skill.strip().lower()
            if not key or key in seen:
                continue
            seen.add(key)
            rec = by_skill.get(key)
            recommendations = SkillGapRecommendations()
            if rec is not None:
                recommendations = SkillGapRecommendations(
                    courses=[
                        f"{c.course_name} ({c.platform})" if c.platform else c.course_name
                        for c in rec.courses
                        if c.course_name
                    ],
                    resources=[r.resource for r in rec.free_resources if r.resource],
                    time_estimate=rec.time_investment or None,
                )
            gaps.append(
                SkillGap(
                    skill=item.skill.strip(),
                    importance=importance,
                    has_skill=False,
                    recommendations=recommendations,
                )
            )

    for skill in report.skills_already_strong:
        key = skill.strip().lower()
        if not key or key in seen:
            continue
        seen.add(key)
        gaps.append(SkillGap(skill=skill.strip(), importance="medium", has_skill=True))

    return gaps


def overall_summary_from_report(report: SkillGapResult) -> str:
    breakdown = report.skill_gap_analysis
    return (
        f"{len(breakdown.critical)} critical, {len(breakdown.important)} important and "
        f"{len(breakdown.nice_to_have)} nice-to-have gaps; "
        f"{len(report.skills_already_strong)} skills already strong."
    )
