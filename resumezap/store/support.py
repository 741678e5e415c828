from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session

from resumezap.core.errors import InvalidRequestError
from resumezap.core.logger import get_logger
from resumezap.db.models import SupportTicketRecord
from resumezap.schemas import SupportTicketCreate

logger = get_logger(__name__)


def create_support_ticket(db: Session, user_id: str, data: SupportTicketCreate) -> SupportTicketRecord:
    for name in ("subject", "category", "message"):
        if not getattr(data, name).strip():
            raise InvalidRequestError(f"{name.capitalize()} is required")

    ticket = SupportTicketRecord(
        user_id=user_id,
        subject=data.subject.strip(),
        category=data.category.strip(),
        priority=data.priority,
        message=data.message.strip(),
        status="open",
    )
    db.add(ticket)
    db.commit()
    logger.info("Created support ticket %s (%s)", ticket.id, ticket.priority)
    return ticket


def list_support_tickets(db: Session, user_id: str) -> List[SupportTicketRecord]:
    stmt = (
        select(SupportTicketRecord)
        .where(SupportTicketRecord.user_id == user_id)
        .order_by(SupportTicketRecord.created_at.desc())
    )
    return list(db.scalars(stmt))
