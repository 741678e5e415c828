from typing import List, Optional

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from resumezap.core.errors import InvalidRequestError, NotFoundError
from resumezap.core.logger import get_logger
from resumezap.db.models import ResumeRecord
from resumezap.schemas import ResumeCreate, ResumeUpdate

logger = get_logger(__name__)

SCORE_BANDS = {
    "high": (80, 100),
    "medium": (60, 79),
    "low": (0, 59),
}


def create_resume(db: Session, user_id: str, data: ResumeCreate) -> ResumeRecord:
    if not data.title.strip():
        raise InvalidRequestError("Resume title is required")
    if not data.content.strip():
        raise InvalidRequestError("Resume content is required")

    resume = ResumeRecord(
        user_id=user_id,
        title=data.title.strip(),
        content=data.content.strip(),
        original_content=data.original_content.strip(),
        job_posting=data.job_posting.strip(),
        match_score=data.match_score,
    )
    db.add(resume)
    db.commit()
    logger.info("Saved resume %s for user %s", resume.id, user_id)
    return resume


def list_resumes(
    db: Session,
    user_id: str,
    search: Optional[str] = None,
    score: Optional[str] = None,
    sort: str = "date",
) -> List[ResumeRecord]:
    stmt = select(ResumeRecord).where(ResumeRecord.user_id == user_id)

    if (search or "").strip():
        like = f"%{search.strip().lower()}%"
        stmt = stmt.where(or_(ResumeRecord.title.ilike(like), ResumeRecord.job_posting.ilike(like)))

    if score and score != "all":
        if score not in SCORE_BANDS:
            raise InvalidRequestError("Invalid score filter")
        low, high = SCORE_BANDS[score]
        stmt = stmt.where(ResumeRecord.match_score >= low, ResumeRecord.match_score <= high)

    if sort == "score":
        stmt = stmt.order_by(ResumeRecord.match_score.desc(), ResumeRecord.created_at.desc())
    elif sort == "title":
        stmt = stmt.order_by(ResumeRecord.title.asc())
    else:
        stmt = stmt.order_by(ResumeRecord.created_at.desc())

    return list(db.scalars(stmt))


def get_resume(db: Session, user_id: str, resume_id: str) -> ResumeRecord:
    resume = db.scalar(
        select(ResumeRecord).where(ResumeRecord.id == resume_id, ResumeRecord.user_id == user_id)
    )
    if resume is None:
        raise NotFoundError("Resume not found")
    return resume


def update_resume(db: Session, user_id: str, resume_id: str, updates: ResumeUpdate) -> ResumeRecord:
    resume = get_resume(db, user_id, resume_id)

    if updates.title is not None:
        if not updates.title.strip():
            raise InvalidRequestError("Resume title cannot be empty")
        resume.title = updates.title.strip()
    if updates.content is not None:
        if not updates.content.strip():
            raise InvalidRequestError("Resume content cannot be empty")
        resume.content = updates.content.strip()
    if updates.job_posting is not None:
        resume.job_posting = updates.job_posting.strip()
    if updates.match_score is not None:
        resume.match_score = updates.match_score

    db.commit()
    logger.info("Updated resume %s", resume_id)
    return resume


def delete_resume(db: Session, user_id: str, resume_id: str) -> None:
    resume = db.scalar(
        select(ResumeRecord).where(ResumeRecord.id == resume_id, ResumeRecord.user_id == user_id)
    )
    if resume is None:
        raise NotFoundError("Resume not found or you do not have permission to delete it")
    db.delete(resume)
    db.commit()
    logger.info("Deleted resume %s", resume_id)
