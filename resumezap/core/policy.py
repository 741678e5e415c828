from datetime import datetime, timezone
from typing import Dict, Literal, Optional

from resumezap.core.errors import UsageLimitError

UsageKind = Literal["resume_tailoring", "cover_letters", "skill_analyses"]

USAGE_KINDS = ("resume_tailoring", "cover_letters", "skill_analyses")

# None means unlimited
PLAN_LIMITS: Dict[str, Dict[str, Optional[int]]] = {
    "free": {"resume_tailoring": 1, "cover_letters": 2, "skill_analyses": 2},
    "premium": {"resume_tailoring": 20, "cover_letters": 25, "skill_analyses": 20},
    "pro": {"resume_tailoring": None, "cover_letters": None, "skill_analyses": None},
    "lifetime": {"resume_tailoring": None, "cover_letters": None, "skill_analyses": None},
}

PDF_ONLY_PLANS = {"free"}

USAGE_LABELS = {
    "resume_tailoring": "resume tailoring sessions",
    "cover_letters": "cover letter generations",
    "skill_analyses": "skill gap analyses",
}


def current_period(now: datetime = None) -> str:
    now = now or datetime.now(timezone.utc)
    return now.strftime("%Y-%m")


def empty_usage() -> Dict[str, int]:
    return {k: 0 for k in USAGE_KINDS}


def limits_for_plan(plan: str) -> Dict[str, Optional[int]]:
    return PLAN_LIMITS.get(plan, PLAN_LIMITS["free"])


def remaining(plan: str, usage: Dict[str, int], kind: UsageKind) -> Optional[int]:
    limit = limits_for_plan(plan)[kind]
    if limit is None:
        return None
    return max(0, limit - int(usage.get(kind, 0)))


def ensure_within_limit(plan: str, usage: Dict[str, int], kind: UsageKind) -> None:
    if remaining(plan, usage, kind) == 0:
        limit = limits_for_plan(plan)[kind]
        raise UsageLimitError(
            f"Monthly limit reached: the {plan} plan includes {limit} {USAGE_LABELS[kind]} per month. "
            "Upgrade your plan to continue."
        )


def ensure_export_allowed(plan: str, fmt: str) -> None:
    if plan in PDF_ONLY_PLANS and fmt != "pdf":
        raise UsageLimitError(f"Export to {fmt.upper()} requires a paid plan")
