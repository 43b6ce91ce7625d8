"""
Append-only audit trail.

Entries are written after the business change has committed, in their own
commit, so a failed action never leaves a success entry behind and a failed
audit write never undoes the action.
"""
from enum import Enum
from typing import Any, Optional

from app.models.audit_log import AuditLog
from app.services.base import BaseService


def _jsonable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return value


class AuditService(BaseService):
    def log_action(
        self,
        action: str,
        entity_type: str,
        entity_id: Optional[int],
        actor_email: Optional[str],
        actor_role: Any,
        details: Optional[dict] = None,
    ) -> Optional[AuditLog]:
        entry = AuditLog(
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            actor_email=actor_email,
            actor_role=_jsonable(actor_role),
            details=_jsonable(details or {}),
        )
        try:
            self.db.add(entry)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            self._logger.error(f"Audit write failed for {action} on {entity_type}:{entity_id}: {e}", exc_info=True)
            return None
        return entry

    @staticmethod
    def log(db, *args, **kwargs) -> Optional[AuditLog]:
        return AuditService(db).log_action(*args, **kwargs)

    @staticmethod
    def log_for(db, identity, action: str, entity_type: str, entity_id: Optional[int] = None,
                details: Optional[dict] = None) -> Optional[AuditLog]:
        """Audit with the caller's Identity as the actor."""
        return AuditService.log(
            db,
            action,
            entity_type,
            entity_id,
            identity.email if identity else None,
            identity.role if identity else None,
            details,
        )
