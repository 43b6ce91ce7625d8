from sqlalchemy import Column, Integer, String, Float, Date, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base
import enum

class ReimbursementStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CLEARED = "cleared"

REIMBURSEMENT_CATEGORIES = [
    "Travel",
    "Food & Meals",
    "Accommodation",
    "Office Supplies",
    "Equipment",
    "Software & Tools",
    "Training & Courses",
    "Medical",
    "Communication",
    "Other",
]

class ReimbursementRequest(Base):
    __tablename__ = "reimbursement_requests"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"), index=True, nullable=False)
    title = Column(String(200), nullable=False)
    category = Column(String, nullable=False)
    amount = Column(Float, nullable=False)
    description = Column(Text, nullable=True)
    expense_date = Column(Date, nullable=False)

    # Optional attachment in object storage
    bill_url = Column(String, nullable=True)
    bill_key = Column(String, nullable=True)
    bill_filename = Column(String, nullable=True)

    status = Column(String, default=ReimbursementStatus.PENDING.value, index=True)
    admin_remarks = Column(Text, nullable=True)
    processed_by = Column(String, nullable=True)
    processed_at = Column(DateTime, nullable=True)
    cleared_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    employee = relationship("Employee")
