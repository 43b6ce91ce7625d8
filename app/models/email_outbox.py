from sqlalchemy import Column, Integer, String, Text, DateTime
from app.database import Base
import enum

class OutboxStatus(str, enum.Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"

class EmailOutbox(Base):
    """Queued outbound email. Written after the business transaction commits."""
    __tablename__ = "email_outbox"

    id = Column(Integer, primary_key=True, index=True)
    to_address = Column(String, nullable=False, index=True)
    subject = Column(String(255), nullable=False)
    body = Column(Text, nullable=False)  # HTML
    category = Column(String(50), nullable=True)  # e.g. salary_slip, reimbursement_cleared
    status = Column(String, default=OutboxStatus.PENDING.value, index=True)
    attempts = Column(Integer, default=0, nullable=False)
    last_error = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False)
    sent_at = Column(DateTime, nullable=True)
