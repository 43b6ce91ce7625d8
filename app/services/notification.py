"""
Email outbox.

Business operations commit first and only then queue their emails here.
Each email becomes an email_outbox row that a FastAPI background task
delivers afterwards, so a failed delivery can never undo the state change
that triggered it. Failed rows stay visible and can be re-delivered by an
admin.
"""
import logging
from typing import Dict, List, Optional

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from app.core.exceptions import DependencyFailureError, NotFoundError
from app.database import utcnow
from app.models.email_outbox import EmailOutbox, OutboxStatus
from app.services.email_service import EmailMessage, EmailService, get_email_service
from app.services.email_templates import RenderedEmail

logger = logging.getLogger(__name__)


class NotificationService:
    @staticmethod
    def queue_email(
        db: Session,
        to_address: str,
        email: RenderedEmail,
        category: str,
        background_tasks: Optional[BackgroundTasks] = None,
    ) -> Optional[EmailOutbox]:
        """
        Persist an outbound email and schedule its delivery.

        Never raises: a failure to queue is logged and returns None, leaving
        the already-committed business change in place.
        """
        entry = EmailOutbox(
            to_address=to_address,
            subject=email.subject,
            body=email.body,
            category=category,
            status=OutboxStatus.PENDING.value,
            attempts=0,
            created_at=utcnow(),
        )
        try:
            db.add(entry)
            db.commit()
            db.refresh(entry)
        except Exception as e:
            db.rollback()
            logger.error(f"Failed to queue '{category}' email for {to_address}: {e}", exc_info=True)
            return None

        logger.info(f"Queued email {entry.id} [{category}] for {to_address}")
        if background_tasks is not None:
            background_tasks.add_task(deliver_outbox_email, entry.id)
        return entry

    @staticmethod
    def deliver(db: Session, email_id: int, email_service: Optional[EmailService] = None) -> EmailOutbox:
        """Attempt delivery of one outbox row and record the outcome."""
        entry = db.query(EmailOutbox).filter(EmailOutbox.id == email_id).first()
        if not entry:
            raise NotFoundError(f"Outbox email {email_id} not found")
        if entry.status == OutboxStatus.SENT.value:
            return entry

        service = email_service or get_email_service()
        entry.attempts = (entry.attempts or 0) + 1
        try:
            service.deliver(EmailMessage(to=[entry.to_address], subject=entry.subject, body_html=entry.body))
            entry.status = OutboxStatus.SENT.value
            entry.sent_at = utcnow()
            entry.last_error = None
        except DependencyFailureError as e:
            logger.warning(f"Delivery of email {entry.id} to {entry.to_address} failed: {e.message}")
            entry.status = OutboxStatus.FAILED.value
            entry.last_error = e.message

        try:
            db.commit()
            db.refresh(entry)
        except Exception:
            db.rollback()
            raise
        return entry

    @staticmethod
    def list_outbox(db: Session, status: Optional[str] = None, limit: int = 100) -> List[EmailOutbox]:
        query = db.query(EmailOutbox)
        if status:
            query = query.filter(EmailOutbox.status == status)
        return query.order_by(EmailOutbox.id.desc()).limit(limit).all()

    @staticmethod
    def retry_failed(db: Session, email_ids: Optional[List[int]] = None) -> Dict[str, int]:
        """Re-deliver failed rows (all of them, or just the given ids) synchronously."""
        query = db.query(EmailOutbox).filter(EmailOutbox.status == OutboxStatus.FAILED.value)
        if email_ids:
            query = query.filter(EmailOutbox.id.in_(email_ids))
        failed_ids = [row.id for row in query.order_by(EmailOutbox.id).all()]

        service = get_email_service()
        sent = 0
        for email_id in failed_ids:
            entry = NotificationService.deliver(db, email_id, email_service=service)
            if entry.status == OutboxStatus.SENT.value:
                sent += 1

        logger.info(f"Outbox retry: {sent}/{len(failed_ids)} delivered")
        return {"retried": len(failed_ids), "sent": sent, "failed": len(failed_ids) - sent}


def deliver_outbox_email(email_id: int) -> None:
    """
    Background job body. Runs after the response, so it opens its own session.
    """
    from app.database import SessionLocal
    db = SessionLocal()
    try:
        NotificationService.deliver(db, email_id)
    except Exception as e:
        logger.error(f"Critical error delivering outbox email {email_id}: {e}", exc_info=True)
    finally:
        db.close()
