"""
Compensatory off.

Two ways in: a manager grants days directly (approved immediately), or an
employee requests them for a day they worked and a reviewer approves or
rejects. Only approved records count toward the balance.
"""
import logging
from datetime import datetime, time, timedelta
from typing import Any, Dict, List, Optional

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import AccessDeniedError, InvalidInputError, NotFoundError
from app.core.identity import Identity
from app.database import utcnow
from app.models.comp_off import CompOffRecord, CompOffStatus
from app.models.employee import Employee
from app.models.user import User, UserRole
from app.schemas.comp_off import CompOffAction, CompOffGrant, CompOffRequestCreate
from app.services.audit import AuditService
from app.services.email_templates import (
    comp_off_approved_email,
    comp_off_granted_email,
    comp_off_rejected_email,
    comp_off_request_email,
)
from app.services.employee_service import get_employee, reports_of, require_own_profile
from app.services.notification import NotificationService

logger = logging.getLogger(__name__)


def serialize(record: CompOffRecord, now=None) -> Dict[str, Any]:
    now = now or utcnow()
    return {
        "id": record.id,
        "employee_id": record.employee_id,
        "employee_name": record.employee.full_name if record.employee else None,
        "days": record.days,
        "used": record.used or 0.0,
        "remaining": record.remaining,
        "work_date": record.work_date,
        "reason": record.reason,
        "status": record.status,
        "requested_by_role": record.requested_by_role,
        "requested_at": record.requested_at,
        "remarks": record.remarks,
        "reviewed_by": record.reviewed_by,
        "reviewed_at": record.reviewed_at,
        "granted_by": record.granted_by,
        "granted_at": record.granted_at,
        "expiry_date": record.expiry_date,
        "expired": record.expiry_date is not None and now > record.expiry_date,
    }


def _commit(db: Session, record: CompOffRecord) -> None:
    try:
        db.add(record)
        db.commit()
        db.refresh(record)
    except Exception:
        db.rollback()
        raise


def grant(
    db: Session,
    identity: Identity,
    data: CompOffGrant,
    background_tasks: Optional[BackgroundTasks] = None,
) -> CompOffRecord:
    employee = get_employee(db, data.employee_id)
    now = utcnow()
    record = CompOffRecord(
        employee_id=employee.id,
        days=data.days,
        used=0.0,
        work_date=data.work_date,
        reason=(data.reason or "").strip() or None,
        status=CompOffStatus.APPROVED.value,
        granted_by=identity.email,
        granted_at=now,
        expiry_date=now + timedelta(days=settings.comp_off_validity_days),
    )
    _commit(db, record)

    logger.info(f"Granted {data.days} comp-off day(s) to {employee.employee_code} by {identity.email}")
    AuditService.log_for(db, identity, "comp_off_granted", "comp_off", record.id, details={
        "employee_id": employee.id,
        "days": data.days,
        "work_date": data.work_date.isoformat(),
    })
    NotificationService.queue_email(
        db,
        employee.email,
        comp_off_granted_email(
            employee.full_name, record.days, record.work_date, record.expiry_date, record.reason, identity.email,
        ),
        "comp_off_granted",
        background_tasks,
    )
    return record


def _approver_email(db: Session, identity: Identity, employee: Employee) -> Optional[str]:
    """Employees go to their manager; managers go to an admin."""
    if identity.role == UserRole.EMPLOYEE:
        manager = employee.manager
        return manager.email if manager and manager.is_active else None
    admin = (
        db.query(User)
        .filter(User.role == UserRole.ADMIN, User.is_active.is_(True))
        .order_by(User.id)
        .first()
    )
    return admin.email if admin else None


def submit_request(
    db: Session,
    identity: Identity,
    data: CompOffRequestCreate,
    background_tasks: Optional[BackgroundTasks] = None,
) -> CompOffRecord:
    if identity.role not in (UserRole.EMPLOYEE, UserRole.MANAGER):
        raise AccessDeniedError("Only employees and managers can request comp-off")
    employee = require_own_profile(db, identity)

    now = utcnow()
    if data.work_date > now.date():
        raise InvalidInputError("Work date cannot be in the future")
    duplicate = (
        db.query(CompOffRecord.id)
        .filter(
            CompOffRecord.employee_id == employee.id,
            CompOffRecord.work_date == data.work_date,
            CompOffRecord.status != CompOffStatus.REJECTED.value,
        )
        .first()
    )
    if duplicate:
        raise InvalidInputError("You have already requested comp-off for this date")

    record = CompOffRecord(
        employee_id=employee.id,
        days=data.days,
        used=0.0,
        work_date=data.work_date,
        reason=data.reason,
        status=CompOffStatus.PENDING.value,
        requested_by_role=identity.role.value,
        requested_at=now,
    )
    _commit(db, record)

    logger.info(f"Comp-off request {record.id} ({data.days:g} day(s) for {data.work_date}) by {identity.email}")
    AuditService.log_for(db, identity, "comp_off_requested", "comp_off", record.id, details={
        "days": data.days,
        "work_date": data.work_date.isoformat(),
    })
    approver = _approver_email(db, identity, employee)
    if approver:
        NotificationService.queue_email(
            db,
            approver,
            comp_off_request_email(employee.full_name, identity.role.value, data.work_date, data.days, data.reason),
            "comp_off_requested",
            background_tasks,
        )
    else:
        logger.warning(f"No approver to notify for comp-off request {record.id}")
    return record


def _requests_query(db: Session):
    return db.query(CompOffRecord).filter(CompOffRecord.requested_by_role.isnot(None))


def my_requests(db: Session, identity: Identity) -> List[CompOffRecord]:
    employee = require_own_profile(db, identity)
    return (
        _requests_query(db)
        .filter(CompOffRecord.employee_id == employee.id)
        .order_by(CompOffRecord.requested_at.desc())
        .all()
    )


def team_requests(db: Session, identity: Identity) -> List[CompOffRecord]:
    """Requests raised by employees who report to the calling manager."""
    manager = require_own_profile(db, identity)
    team_ids = [e.id for e in reports_of(db, manager.id)]
    if not team_ids:
        return []
    return (
        _requests_query(db)
        .filter(
            CompOffRecord.employee_id.in_(team_ids),
            CompOffRecord.requested_by_role == UserRole.EMPLOYEE.value,
        )
        .order_by(CompOffRecord.requested_at.desc())
        .all()
    )


def all_requests(db: Session, status: Optional[str] = None) -> List[CompOffRecord]:
    query = _requests_query(db)
    if status:
        query = query.filter(CompOffRecord.status == status)
    return query.order_by(CompOffRecord.requested_at.desc()).all()


def act_on_request(
    db: Session,
    identity: Identity,
    record_id: int,
    data: CompOffAction,
    background_tasks: Optional[BackgroundTasks] = None,
) -> CompOffRecord:
    """
    Admins review any request. Managers review only requests raised by
    employees on their own team. Nobody reviews their own.
    """
    record = _requests_query(db).filter(CompOffRecord.id == record_id).first()
    if not record:
        raise NotFoundError("Comp-off request not found")
    if record.status != CompOffStatus.PENDING.value:
        raise InvalidInputError("Request has already been processed")
    if identity.owns(record.employee_id):
        raise AccessDeniedError("You cannot review your own comp-off request")
    if not identity.is_admin:
        if record.requested_by_role != UserRole.EMPLOYEE.value:
            raise AccessDeniedError("Managers can only approve employee requests")
        if record.employee.manager_id is None or record.employee.manager_id != identity.employee_id:
            raise AccessDeniedError("You can only approve requests from your team members")

    now = utcnow()
    remarks = (data.remarks or "").strip() or None
    record.remarks = remarks
    record.reviewed_by = identity.email
    record.reviewed_at = now
    if data.action == "approve":
        record.status = CompOffStatus.APPROVED.value
        record.granted_by = identity.email
        record.granted_at = now
        record.expiry_date = datetime.combine(record.work_date, time.min) + timedelta(
            days=settings.comp_off_validity_days
        )
    else:
        record.status = CompOffStatus.REJECTED.value
    _commit(db, record)

    employee = record.employee
    logger.info(f"Comp-off request {record.id} -> {record.status} by {identity.email}")
    AuditService.log_for(db, identity, f"comp_off_{record.status}", "comp_off", record.id, details={
        "employee_id": employee.id,
        "days": record.days,
        "remarks": remarks,
    })
    if record.status == CompOffStatus.APPROVED.value:
        email = comp_off_approved_email(employee.full_name, record.work_date, record.days, record.expiry_date, remarks)
    else:
        email = comp_off_rejected_email(employee.full_name, record.work_date, record.days, remarks)
    NotificationService.queue_email(db, employee.email, email, f"comp_off_{record.status}", background_tasks)
    return record


def list_records(db: Session, employee_id: Optional[int] = None) -> List[CompOffRecord]:
    """Approved records: the ledger the balance is computed from."""
    query = db.query(CompOffRecord).filter(CompOffRecord.status == CompOffStatus.APPROVED.value)
    if employee_id is not None:
        query = query.filter(CompOffRecord.employee_id == employee_id)
    return query.order_by(CompOffRecord.granted_at.desc()).all()


def balance(db: Session, identity: Identity) -> Dict[str, Any]:
    """Totals include expired grants; each record carries its own expired flag."""
    employee = require_own_profile(db, identity)
    records = list_records(db, employee.id)
    now = utcnow()
    granted = sum(r.days for r in records)
    used = sum(r.used or 0.0 for r in records)
    return {
        "employee_id": employee.id,
        "total_granted": granted,
        "total_used": used,
        "remaining": granted - used,
        "records": [serialize(r, now) for r in records],
    }


def use(db: Session, identity: Identity, record_id: int, days_to_use: float) -> CompOffRecord:
    record = db.query(CompOffRecord).filter(CompOffRecord.id == record_id).first()
    if not record:
        raise NotFoundError("Comp-off record not found")
    if not identity.owns(record.employee_id):
        raise AccessDeniedError("You can only use your own comp-off")
    if record.status != CompOffStatus.APPROVED.value:
        raise InvalidInputError(f"Comp-off record is {record.status}, only approved comp-off can be used")
    if (record.used or 0.0) + days_to_use > record.days:
        raise InvalidInputError(f"Only {record.remaining:g} comp-off day(s) remaining on this grant")

    record.used = (record.used or 0.0) + days_to_use
    _commit(db, record)
    if utcnow() > record.expiry_date:
        logger.warning(f"Comp-off {record.id} used after its expiry date {record.expiry_date:%Y-%m-%d}")
    logger.info(f"Comp-off {record.id}: {days_to_use:g} day(s) used by {identity.email}")
    return record


def use_balance(db: Session, identity: Identity, days_to_use: float) -> Dict[str, Any]:
    """
    Draw days from the overall balance, soonest-expiring record first.
    All or nothing: fails without touching any record if the balance is short.
    """
    employee = require_own_profile(db, identity)
    records = sorted(
        (r for r in list_records(db, employee.id) if r.remaining > 0),
        key=lambda r: (r.expiry_date, r.id),
    )
    available = sum(r.remaining for r in records)
    if days_to_use > available:
        raise InvalidInputError(f"Insufficient comp-off balance: {available:g} day(s) available")

    outstanding = days_to_use
    drawn: Dict[int, float] = {}
    try:
        for record in records:
            if outstanding <= 0:
                break
            take = min(record.remaining, outstanding)
            record.used = (record.used or 0.0) + take
            drawn[record.id] = take
            outstanding -= take
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"{identity.email} used {days_to_use:g} comp-off day(s) across records {sorted(drawn)}")
    AuditService.log_for(db, identity, "comp_off_balance_used", "comp_off", None, details={
        "days": days_to_use,
        "drawn": {str(k): v for k, v in drawn.items()},
    })
    return balance(db, identity)
