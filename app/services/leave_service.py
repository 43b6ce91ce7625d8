from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from app.core.exceptions import AccessDeniedError, InvalidInputError, NotFoundError
from app.core.identity import Identity
from app.database import utcnow
from app.models.leave_request import LeaveRequest, LeaveStatus
from app.schemas.leave import LeaveRequestCreate
from app.services.employee_service import require_own_profile

logger = logging.getLogger(__name__)


def apply_leave(db: Session, identity: Identity, data: LeaveRequestCreate) -> LeaveRequest:
    employee = require_own_profile(db, identity)
    leave = LeaveRequest(
        employee_id=employee.id,
        leave_type=data.leave_type.strip(),
        start_date=data.start_date,
        end_date=data.end_date,
        days_count=data.days_count,
        reason=data.reason,
        status=LeaveStatus.PENDING.value,
    )
    try:
        db.add(leave)
        db.commit()
        db.refresh(leave)
    except Exception:
        db.rollback()
        raise
    logger.info(f"Leave {leave.id} ({leave.leave_type}, {leave.days_count} days) applied by {identity.email}")
    return leave


def act_on_leave(db: Session, identity: Identity, leave_id: int, action: str) -> LeaveRequest:
    """
    approve/reject: admin or manager, from pending, never on their own request.
    cancel: the owner, while pending.
    """
    leave = db.query(LeaveRequest).filter(LeaveRequest.id == leave_id).first()
    if not leave:
        raise NotFoundError("Leave request not found")

    if action == "cancel":
        if not identity.owns(leave.employee_id):
            raise AccessDeniedError("Only the applicant can cancel a leave request")
        new_status = LeaveStatus.CANCELLED
    else:
        if not identity.is_manager:
            raise AccessDeniedError("Only managers and admins can review leave requests")
        if identity.owns(leave.employee_id):
            raise AccessDeniedError("You cannot review your own leave request")
        new_status = LeaveStatus.APPROVED if action == "approve" else LeaveStatus.REJECTED

    if leave.status != LeaveStatus.PENDING.value:
        raise InvalidInputError(f"Cannot {action} a leave request that is {leave.status}")

    leave.status = new_status.value
    leave.reviewed_by = identity.email
    leave.reviewed_at = utcnow()
    try:
        db.commit()
        db.refresh(leave)
    except Exception:
        db.rollback()
        raise
    logger.info(f"Leave {leave.id} -> {leave.status} by {identity.email}")
    return leave


def list_my_leaves(db: Session, identity: Identity) -> List[LeaveRequest]:
    employee = require_own_profile(db, identity)
    return (
        db.query(LeaveRequest)
        .filter(LeaveRequest.employee_id == employee.id)
        .order_by(LeaveRequest.start_date.desc())
        .all()
    )


def list_leaves(db: Session, status: Optional[str] = None) -> List[LeaveRequest]:
    query = db.query(LeaveRequest)
    if status:
        query = query.filter(LeaveRequest.status == status)
    return query.order_by(LeaveRequest.start_date.desc()).all()


def leaves_in_month(db: Session, employee_id: int, window) -> List[LeaveRequest]:
    """Every leave of the employee starting inside the month window, any status."""
    return (
        db.query(LeaveRequest)
        .filter(
            LeaveRequest.employee_id == employee_id,
            LeaveRequest.start_date >= window.first_day,
            LeaveRequest.start_date <= window.last_day,
        )
        .order_by(LeaveRequest.start_date)
        .all()
    )
