import enum

from sqlalchemy import Column, Integer, String, Float, Date, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from app.database import Base


class CompOffStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class CompOffRecord(Base):
    """
    One comp-off entry. Manager grants start out approved; employee requests
    start pending and only count toward the balance once approved.
    """
    __tablename__ = "comp_off_records"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"), index=True, nullable=False)
    days = Column(Float, nullable=False)
    used = Column(Float, nullable=False, default=0.0)
    work_date = Column(Date, nullable=False)
    reason = Column(String, nullable=True)
    status = Column(String, nullable=False, default=CompOffStatus.APPROVED.value, index=True)

    # Set for self-service requests: the requester's role at the time
    requested_by_role = Column(String, nullable=True)
    requested_at = Column(DateTime, nullable=True)  # naive UTC
    remarks = Column(String, nullable=True)
    reviewed_by = Column(String, nullable=True)
    reviewed_at = Column(DateTime, nullable=True)

    granted_by = Column(String, nullable=True)
    granted_at = Column(DateTime, nullable=True)  # naive UTC, set once approved
    expiry_date = Column(DateTime, nullable=True)

    employee = relationship("Employee")

    @property
    def remaining(self) -> float:
        return self.days - (self.used or 0.0)
