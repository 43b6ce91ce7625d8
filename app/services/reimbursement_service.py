"""
Reimbursement workflow.

States: pending -> approved | rejected, approved -> cleared. Every other
transition is refused. Emails for rejected and cleared requests are
queued after the transition commits; their failure never undoes it.
"""
import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from app.core.exceptions import (
    AccessDeniedError,
    DependencyFailureError,
    InvalidInputError,
    NotFoundError,
)
from app.core.identity import Identity
from app.database import utcnow
from app.models.reimbursement import (
    REIMBURSEMENT_CATEGORIES,
    ReimbursementRequest,
    ReimbursementStatus,
)
from app.services.audit import AuditService
from app.services.base import BaseService
from app.services.email_templates import reimbursement_cleared_email, reimbursement_rejected_email
from app.services.employee_service import require_own_profile
from app.services.notification import NotificationService
from app.services.storage import StorageService, validate_upload

# action -> (required current status, resulting status)
TRANSITIONS = {
    "approve": (ReimbursementStatus.PENDING, ReimbursementStatus.APPROVED),
    "reject": (ReimbursementStatus.PENDING, ReimbursementStatus.REJECTED),
    "clear": (ReimbursementStatus.APPROVED, ReimbursementStatus.CLEARED),
}

MAX_TITLE_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 1000


@dataclass
class BillUpload:
    content: bytes
    filename: str
    content_type: Optional[str]


def serialize(request: ReimbursementRequest) -> Dict[str, Any]:
    employee = request.employee
    return {
        "id": request.id,
        "employee_id": request.employee_id,
        "employee_name": employee.full_name if employee else None,
        "employee_code": employee.employee_code if employee else None,
        "title": request.title,
        "category": request.category,
        "amount": request.amount,
        "description": request.description,
        "expense_date": request.expense_date,
        "bill_url": request.bill_url,
        "bill_filename": request.bill_filename,
        "status": request.status,
        "admin_remarks": request.admin_remarks,
        "processed_by": request.processed_by,
        "processed_at": request.processed_at,
        "cleared_at": request.cleared_at,
        "created_at": request.created_at,
    }


class ReimbursementService(BaseService):
    def __init__(self, db: Session, storage: StorageService, background_tasks: Optional[BackgroundTasks] = None):
        super().__init__(db)
        self.storage = storage
        self.background_tasks = background_tasks

    def _validate(self, title: str, category: str, amount: float, description: Optional[str]) -> str:
        title = (title or "").strip()
        if not title:
            raise InvalidInputError("Title is required")
        if len(title) > MAX_TITLE_LENGTH:
            raise InvalidInputError(f"Title must be at most {MAX_TITLE_LENGTH} characters")
        if category not in REIMBURSEMENT_CATEGORIES:
            raise InvalidInputError(
                f"Invalid category '{category}'",
                details={"allowed": REIMBURSEMENT_CATEGORIES},
            )
        if amount is None or amount <= 0:
            raise InvalidInputError("Amount must be greater than zero")
        if description and len(description) > MAX_DESCRIPTION_LENGTH:
            raise InvalidInputError(f"Description must be at most {MAX_DESCRIPTION_LENGTH} characters")
        return title

    def apply(
        self,
        identity: Identity,
        title: str,
        category: str,
        amount: float,
        expense_date: date,
        description: Optional[str] = None,
        bill: Optional[BillUpload] = None,
    ) -> ReimbursementRequest:
        """
        Create a pending request for the caller.

        An attachment with a bad type or size is refused. A storage failure
        while uploading it is logged and the request is stored without it.
        """
        employee = require_own_profile(self.db, identity)
        title = self._validate(title, category, amount, description)

        bill_url = bill_key = bill_filename = None
        if bill is not None:
            rule = validate_upload("bill", bill.content_type, len(bill.content))
            try:
                stored = self.storage.put(bill.content, bill.filename, bill.content_type, rule.folder, employee.id)
                bill_url, bill_key, bill_filename = stored.url, stored.key, bill.filename
            except DependencyFailureError as e:
                self._logger.warning(f"Bill upload failed for {identity.email}, saving request without it: {e.message}")

        request = ReimbursementRequest(
            employee_id=employee.id,
            title=title,
            category=category,
            amount=amount,
            description=(description or "").strip() or None,
            expense_date=expense_date,
            bill_url=bill_url,
            bill_key=bill_key,
            bill_filename=bill_filename,
            status=ReimbursementStatus.PENDING.value,
        )
        try:
            self.db.add(request)
            self.db.commit()
            self.db.refresh(request)
        except Exception:
            self.db.rollback()
            if bill_key:
                self.storage.delete_quietly(bill_key)
            raise

        self._logger.info(f"Reimbursement {request.id} ({category}, {amount}) submitted by {identity.email}")
        AuditService.log_for(self.db, identity, "reimbursement_submitted", "reimbursement", request.id, details={
            "amount": amount,
            "category": category,
            "has_bill": bool(bill_url),
        })
        return request

    def list_mine(self, identity: Identity) -> List[ReimbursementRequest]:
        employee = require_own_profile(self.db, identity)
        return (
            self.db.query(ReimbursementRequest)
            .filter(ReimbursementRequest.employee_id == employee.id)
            .order_by(ReimbursementRequest.created_at.desc(), ReimbursementRequest.id.desc())
            .all()
        )

    def list_all(self, status: Optional[str] = None) -> List[ReimbursementRequest]:
        query = self.db.query(ReimbursementRequest)
        if status:
            query = query.filter(ReimbursementRequest.status == status)
        return query.order_by(ReimbursementRequest.created_at.desc(), ReimbursementRequest.id.desc()).all()

    def stats(self) -> Dict[str, Any]:
        buckets = {s.value: {"count": 0, "amount": 0.0} for s in ReimbursementStatus}
        total = {"count": 0, "amount": 0.0}
        for status, amount in self.db.query(ReimbursementRequest.status, ReimbursementRequest.amount).all():
            bucket = buckets.setdefault(status, {"count": 0, "amount": 0.0})
            bucket["count"] += 1
            bucket["amount"] += amount or 0.0
            total["count"] += 1
            total["amount"] += amount or 0.0
        return {**buckets, "total": total}

    def _get(self, request_id: int) -> ReimbursementRequest:
        request = self.db.query(ReimbursementRequest).filter(ReimbursementRequest.id == request_id).first()
        if not request:
            raise NotFoundError("Reimbursement request not found")
        return request

    def get(self, identity: Identity, request_id: int) -> ReimbursementRequest:
        request = self._get(request_id)
        if not identity.is_admin and not identity.owns(request.employee_id):
            raise AccessDeniedError("You can only view your own reimbursement requests")
        return request

    def act(self, identity: Identity, request_id: int, action: str, remarks: Optional[str] = None) -> ReimbursementRequest:
        """
        Apply an admin decision.

        Raises:
            NotFoundError: unknown request.
            InvalidInputError: illegal transition, or reject without remarks.
        """
        if action not in TRANSITIONS:
            raise InvalidInputError(f"Unknown action '{action}'")
        request = self._get(request_id)
        required, target = TRANSITIONS[action]

        if request.status != required.value:
            raise InvalidInputError(
                f"Cannot {action} a reimbursement that is {request.status}; it must be {required.value}"
            )
        remarks = (remarks or "").strip() or None
        if action == "reject" and not remarks:
            raise InvalidInputError("Remarks are required when rejecting a reimbursement")

        now = utcnow()
        request.status = target.value
        request.processed_by = identity.email
        request.processed_at = now
        if remarks:
            request.admin_remarks = remarks
        if target == ReimbursementStatus.CLEARED:
            request.cleared_at = now

        try:
            self.db.commit()
            self.db.refresh(request)
        except Exception:
            self.db.rollback()
            raise

        self._logger.info(f"Reimbursement {request.id} -> {request.status} by {identity.email}")
        AuditService.log_for(self.db, identity, f"reimbursement_{target.value}", "reimbursement", request.id, details={
            "amount": request.amount,
            "remarks": remarks,
        })
        self._notify(request)
        return request

    def _notify(self, request: ReimbursementRequest):
        employee = request.employee
        if employee is None:
            return
        if request.status == ReimbursementStatus.REJECTED.value:
            email = reimbursement_rejected_email(
                employee.full_name, request.title, request.category, request.amount, request.admin_remarks,
            )
        elif request.status == ReimbursementStatus.CLEARED.value:
            email = reimbursement_cleared_email(
                employee.full_name, request.title, request.category, request.amount,
                request.cleared_at, request.admin_remarks,
            )
        else:
            return
        NotificationService.queue_email(
            self.db, employee.email, email, f"reimbursement_{request.status}", self.background_tasks,
        )

    def delete(self, identity: Identity, request_id: int) -> None:
        """
        Owners may delete while pending; admins at any status. The bill is
        removed from storage afterwards on a best-effort basis.
        """
        request = self._get(request_id)
        if not identity.is_admin:
            if not identity.owns(request.employee_id):
                raise AccessDeniedError("You can only delete your own reimbursement requests")
            if request.status != ReimbursementStatus.PENDING.value:
                raise InvalidInputError(f"Only pending requests can be deleted; this one is {request.status}")

        bill_key = request.bill_key or self.storage.url_to_key(request.bill_url)
        snapshot = {"status": request.status, "amount": request.amount, "employee_id": request.employee_id}
        try:
            self.db.delete(request)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        if bill_key:
            self.storage.delete_quietly(bill_key)
        self._logger.info(f"Reimbursement {request_id} deleted by {identity.email}")
        AuditService.log_for(self.db, identity, "reimbursement_deleted", "reimbursement", request_id, details=snapshot)
