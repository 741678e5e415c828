from typing import List, Optional

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from resumezap.core import policy
from resumezap.core.errors import InvalidRequestError, NotFoundError
from resumezap.core.logger import get_logger
from resumezap.db.models import CoverLetterRecord
from resumezap.schemas import TONES, CoverLetterCreate, CoverLetterStats, CoverLetterUpdate

logger = get_logger(__name__)


def _optional(s: Optional[str]) -> Optional[str]:
    s = (s or "").strip()
    return s or None


def create_cover_letter(db: Session, user_id: str, data: CoverLetterCreate) -> CoverLetterRecord:
    logger.info("Creating new cover letter for: %s", data.company_name)

    if not data.title.strip():
        raise InvalidRequestError("Cover letter title is required")
    if not data.content.strip():
        raise InvalidRequestError("Cover letter content is required")
    if not data.company_name.strip():
        raise InvalidRequestError("Company name is required")
    if not data.job_title.strip():
        raise InvalidRequestError("Job title is required")
    if data.tone not in TONES:
        raise InvalidRequestError("Invalid cover letter tone")

    letter = CoverLetterRecord(
        user_id=user_id,
        title=data.title.strip(),
        content=data.content.strip(),
        company_name=data.company_name.strip(),
        job_title=data.job_title.strip(),
        tone=data.tone,
        job_posting=_optional(data.job_posting),
        resume_content_snapshot=_optional(data.resume_content_snapshot),
        customizations=list(data.customizations or []),
        key_strengths=list(data.key_strengths or []),
        call_to_action=_optional(data.call_to_action),
    )
    db.add(letter)
    db.commit()
    logger.info("Successfully created cover letter with ID: %s", letter.id)
    return letter


def list_cover_letters(db: Session, user_id: str) -> List[CoverLetterRecord]:
    stmt = (
        select(CoverLetterRecord)
        .where(CoverLetterRecord.user_id == user_id)
        .order_by(CoverLetterRecord.created_at.desc())
    )
    return list(db.scalars(stmt))


def search_cover_letters(db: Session, user_id: str, term: str) -> List[CoverLetterRecord]:
    if not (term or "").strip():
        return list_cover_letters(db, user_id)

    like = f"%{term.strip().lower()}%"
    stmt = (
        select(CoverLetterRecord)
        .where(CoverLetterRecord.user_id == user_id)
        .where(
            or_(
                CoverLetterRecord.title.ilike(like),
                CoverLetterRecord.company_name.ilike(like),
                CoverLetterRecord.job_title.ilike(like),
            )
        )
        .order_by(CoverLetterRecord.created_at.desc())
    )
    return list(db.scalars(stmt))


def get_cover_letter(db: Session, user_id: str, letter_id: str) -> CoverLetterRecord:
    letter = db.scalar(
        select(CoverLetterRecord).where(
            CoverLetterRecord.id == letter_id, CoverLetterRecord.user_id == user_id
        )
    )
    if letter is None:
        raise NotFoundError("Cover letter not found")
    return letter


def update_cover_letter(
    db: Session, user_id: str, letter_id: str, updates: CoverLetterUpdate
) -> CoverLetterRecord:
    logger.info("Updating cover letter: %s", letter_id)
    letter = get_cover_letter(db, user_id, letter_id)
    fields = updates.model_dump(exclude_unset=True)

    for name, label in (
        ("title", "Cover letter title"),
        ("content", "Cover letter content"),
        ("company_name", "Company name"),
        ("job_title", "Job title"),
    ):
        if name in fields and not (fields[name] or "").strip():
            raise InvalidRequestError(f"{label} cannot be empty")
    if "tone" in fields and fields["tone"] not in TONES:
        raise InvalidRequestError("Invalid cover letter tone")

    for name in ("title", "content", "company_name", "job_title"):
        if name in fields:
            setattr(letter, name, fields[name].strip())
    if "tone" in fields:
        letter.tone = fields["tone"]
    if "job_posting" in fields:
        letter.job_posting = _optional(fields["job_posting"])
    if "call_to_action" in fields:
        letter.call_to_action = _optional(fields["call_to_action"])
    if "customizations" in fields:
        letter.customizations = list(fields["customizations"] or [])
    if "key_strengths" in fields:
        letter.key_strengths = list(fields["key_strengths"] or [])

    db.commit()
    logger.info("Successfully updated cover letter: %s", letter_id)
    return letter


def delete_cover_letter(db: Session, user_id: str, letter_id: str) -> None:
    letter = db.scalar(
        select(CoverLetterRecord).where(
            CoverLetterRecord.id == letter_id, CoverLetterRecord.user_id == user_id
        )
    )
    if letter is None:
        raise NotFoundError("Cover letter not found or you do not have permission to delete it")
    db.delete(letter)
    db.commit()
    logger.info("Successfully deleted cover letter: %s", letter_id)


def cover_letter_stats(db: Session, user_id: str) -> CoverLetterStats:
    letters = list_cover_letters(db, user_id)
    period = policy.current_period()
    stats = CoverLetterStats(total=len(letters))
    for letter in letters:
        if letter.tone in TONES:
            setattr(stats, letter.tone, getattr(stats, letter.tone) + 1)
        if letter.created_at.strftime("%Y-%m") == period:
            stats.this_month += 1
    return stats
