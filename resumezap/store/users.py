from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from resumezap.config import get_settings
from resumezap.core import policy
from resumezap.core.errors import AuthenticationError, InvalidRequestError
from resumezap.core.logger import get_logger
from resumezap.db.models import UserRecord
from resumezap.schemas import UsageCounts, UsageOut

logger = get_logger(__name__)


def create_user(db: Session, email: str, name: str) -> UserRecord:
    email = (email or "").strip().lower()
    name = (name or "").strip()
    if "@" not in email:
        raise InvalidRequestError("A valid email address is required")
    if not name:
        raise InvalidRequestError("Name is required")

    existing = db.scalar(select(UserRecord).where(UserRecord.email == email))
    if existing is not None:
        raise InvalidRequestError("A user with this email already exists")

    user = UserRecord(
        email=email,
        name=name,
        plan="free",
        usage_this_month=policy.empty_usage(),
        usage_period=policy.current_period(),
    )
    db.add(user)
    db.commit()
    logger.info("Created user %s", user.id)
    return user


def get_user(db: Session, user_id: str) -> Optional[UserRecord]:
    if not (user_id or "").strip():
        return None
    return db.get(UserRecord, user_id.strip())


def require_user(db: Session, user_id: Optional[str]) -> UserRecord:
    user = get_user(db, user_id or "")
    if user is None:
        raise AuthenticationError("No authenticated user found")
    return user


def update_profile(
    db: Session,
    user: UserRecord,
    name: Optional[str] = None,
    profile_picture_url: Optional[str] = None,
) -> UserRecord:
    if name is not None:
        if not name.strip():
            raise InvalidRequestError("Name cannot be empty")
        user.name = name.strip()
    if profile_picture_url is not None:
        user.profile_picture_url = profile_picture_url.strip() or None
    db.commit()
    return user


def upgrade_plan(db: Session, user: UserRecord, plan: str) -> UserRecord:
    if plan not in ("premium", "pro", "lifetime"):
        raise InvalidRequestError("Invalid plan")
    logger.info("Upgrading user %s from %s to %s", user.id, user.plan, plan)
    user.plan = plan
    db.commit()
    return user


def delete_user(db: Session, user: UserRecord) -> None:
    logger.info("Deleting user %s and all owned data", user.id)
    db.delete(user)
    db.commit()


# =========================
# Usage
# =========================
def _sync_period(user: UserRecord) -> None:
    period = policy.current_period()
    if user.usage_period != period:
        user.usage_this_month = policy.empty_usage()
        user.usage_period = period


def check_usage(db: Session, user: UserRecord, kind: policy.UsageKind) -> None:
    if not get_settings().enforce_usage_limits:
        return
    _sync_period(user)
    policy.ensure_within_limit(user.plan, user.usage_this_month or {}, kind)


def record_usage(db: Session, user: UserRecord, kind: policy.UsageKind) -> None:
    _sync_period(user)
    usage = dict(policy.empty_usage(), **(user.usage_this_month or {}))
    usage[kind] = int(usage.get(kind, 0)) + 1
    # reassign so the JSON column is flagged dirty
    user.usage_this_month = usage
    db.commit()
    logger.info("Updated %s usage for user %s: %d", kind, user.id, usage[kind])


def usage_summary(user: UserRecord) -> UsageOut:
    _sync_period(user)
    return UsageOut(
        plan=user.plan,
        period=user.usage_period,
        used=UsageCounts(**(user.usage_this_month or {})),
        limits=policy.limits_for_plan(user.plan),
    )
