"""
Employee document uploads (profile picture, government ID).

The employee row keeps the object's URL and key. Replacing or removing a
document deletes the previous object on a best-effort basis.
"""
from typing import Optional

from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError
from app.core.identity import Identity
from app.models.employee import Employee
from app.services.audit import AuditService
from app.services.base import BaseService
from app.services.storage import StorageService, validate_upload

DOCUMENT_KINDS = ("profile_picture", "government_id")


class DocumentService(BaseService):
    def __init__(self, db: Session, storage: StorageService):
        super().__init__(db)
        self.storage = storage

    def upload(
        self,
        identity: Identity,
        employee: Employee,
        kind: str,
        content: bytes,
        filename: str,
        content_type: Optional[str],
    ) -> Employee:
        rule = validate_upload(kind, content_type, len(content))
        stored = self.storage.put(content, filename, content_type, rule.folder, employee.id)

        previous_key = getattr(employee, f"{kind}_key") or self.storage.url_to_key(getattr(employee, f"{kind}_url"))
        setattr(employee, f"{kind}_url", stored.url)
        setattr(employee, f"{kind}_key", stored.key)
        try:
            self.db.commit()
            self.db.refresh(employee)
        except Exception:
            self.db.rollback()
            self.storage.delete_quietly(stored.key)
            raise

        if previous_key and previous_key != stored.key:
            self.storage.delete_quietly(previous_key)

        self._logger.info(f"{rule.label} for {employee.employee_code} uploaded by {identity.email}")
        AuditService.log_for(self.db, identity, f"{kind}_uploaded", "employee", employee.id, details={"key": stored.key})
        return employee

    def remove(self, identity: Identity, employee: Employee, kind: str) -> Employee:
        key = getattr(employee, f"{kind}_key") or self.storage.url_to_key(getattr(employee, f"{kind}_url"))
        if not key:
            raise NotFoundError(f"No {kind.replace('_', ' ')} on file")

        setattr(employee, f"{kind}_url", None)
        setattr(employee, f"{kind}_key", None)
        try:
            self.db.commit()
            self.db.refresh(employee)
        except Exception:
            self.db.rollback()
            raise

        self.storage.delete_quietly(key)
        self._logger.info(f"{kind} removed for {employee.employee_code} by {identity.email}")
        AuditService.log_for(self.db, identity, f"{kind}_removed", "employee", employee.id)
        return employee
