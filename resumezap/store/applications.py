from datetime import date
from typing import List, Optional

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from resumezap.core.errors import InvalidRequestError, NotFoundError
from resumezap.core.logger import get_logger
from resumezap.db.models import ApplicationRecord
from resumezap.schemas import ApplicationCreate, ApplicationStats, ApplicationUpdate

logger = get_logger(__name__)

VALID_STATUSES = ("applied", "interview", "offer", "rejected")


def _optional(s: Optional[str]) -> Optional[str]:
    s = (s or "").strip()
    return s or None


def create_application(db: Session, user_id: str, data: ApplicationCreate) -> ApplicationRecord:
    logger.info("Creating new application for: %s", data.company)

    if not data.company.strip():
        raise InvalidRequestError("Company name is required")
    if not data.position.strip():
        raise InvalidRequestError("Position is required")
    if data.status not in VALID_STATUSES:
        raise InvalidRequestError("Invalid application status")

    last_update = data.last_update or date.today()
    if last_update < data.applied_date:
        raise InvalidRequestError("Last update date cannot be before applied date")

    app = ApplicationRecord(
        user_id=user_id,
        company=data.company.strip(),
        position=data.position.strip(),
        location=(data.location or "").strip(),
        status=data.status,
        applied_date=data.applied_date,
        last_update=last_update,
        salary=_optional(data.salary),
        notes=_optional(data.notes),
    )
    db.add(app)
    db.commit()
    logger.info("Successfully created application with ID: %s", app.id)
    return app


def list_applications(db: Session, user_id: str) -> List[ApplicationRecord]:
    stmt = (
        select(ApplicationRecord)
        .where(ApplicationRecord.user_id == user_id)
        .order_by(ApplicationRecord.applied_date.desc(), ApplicationRecord.created_at.desc())
    )
    return list(db.scalars(stmt))


def search_applications(db: Session, user_id: str, term: str) -> List[ApplicationRecord]:
    if not (term or "").strip():
        return list_applications(db, user_id)

    like = f"%{term.strip().lower()}%"
    stmt = (
        select(ApplicationRecord)
        .where(ApplicationRecord.user_id == user_id)
        .where(
            or_(
                ApplicationRecord.company.ilike(like),
                ApplicationRecord.position.ilike(like),
                ApplicationRecord.location.ilike(like),
            )
        )
        .order_by(ApplicationRecord.applied_date.desc(), ApplicationRecord.created_at.desc())
    )
    results = list(db.scalars(stmt))
    logger.info("Search returned %d results", len(results))
    return results


def get_application(db: Session, user_id: str, application_id: str) -> ApplicationRecord:
    app = db.scalar(
        select(ApplicationRecord).where(
            ApplicationRecord.id == application_id, ApplicationRecord.user_id == user_id
        )
    )
    if app is None:
        raise NotFoundError("Application not found")
    return app


def update_application(
    db: Session, user_id: str, application_id: str, updates: ApplicationUpdate
) -> ApplicationRecord:
    logger.info("Updating application: %s", application_id)
    app = get_application(db, user_id, application_id)
    fields = updates.model_dump(exclude_unset=True)

    if "company" in fields and not (updates.company or "").strip():
        raise InvalidRequestError("Company name cannot be empty")
    if "position" in fields and not (updates.position or "").strip():
        raise InvalidRequestError("Position cannot be empty")
    if "status" in fields and updates.status not in VALID_STATUSES:
        raise InvalidRequestError("Invalid application status")
    if "applied_date" in fields and updates.applied_date is None:
        raise InvalidRequestError("Invalid applied date")
    if "last_update" in fields and updates.last_update is None:
        raise InvalidRequestError("Invalid last update date")

    if not fields:
        logger.info("No updates provided")
        return app

    if "company" in fields:
        app.company = updates.company.strip()
    if "position" in fields:
        app.position = updates.position.strip()
    if "location" in fields:
        app.location = (updates.location or "").strip()
    if "status" in fields:
        app.status = updates.status
    if "applied_date" in fields:
        app.applied_date = updates.applied_date
    if "last_update" in fields:
        app.last_update = updates.last_update
    if "salary" in fields:
        app.salary = _optional(updates.salary)
    if "notes" in fields:
        app.notes = _optional(updates.notes)

    db.commit()
    logger.info("Successfully updated application: %s", application_id)
    return app


def delete_application(db: Session, user_id: str, application_id: str) -> None:
    app = db.scalar(
        select(ApplicationRecord).where(
            ApplicationRecord.id == application_id, ApplicationRecord.user_id == user_id
        )
    )
    if app is None:
        raise NotFoundError("Application not found or you do not have permission to delete it")
    db.delete(app)
    db.commit()
    logger.info("Successfully deleted application: %s", application_id)


def application_stats(db: Session, user_id: str) -> ApplicationStats:
    apps = list_applications(db, user_id)
    stats = ApplicationStats(total=len(apps))
    for app in apps:
        setattr(stats, app.status, getattr(stats, app.status) + 1)

    # any status other than "applied" counts as a response
    if stats.total > 0:
        stats.response_rate = int((stats.total - stats.applied) * 100 / stats.total + 0.5)
    return stats
