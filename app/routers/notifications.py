from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional

from app.core.identity import Identity
from app.database import get_db
from app.routers.auth_deps import require_admin
from app.schemas.notification import OutboxEmailResponse, OutboxRetryRequest
from app.services.notification import NotificationService

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("/outbox", response_model=List[OutboxEmailResponse])
def list_outbox(
    status: Optional[str] = None,
    limit: int = 100,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_admin()),
):
    return NotificationService.list_outbox(db, status, min(limit, 500))


@router.post("/outbox/retry")
def retry_outbox(
    data: Optional[OutboxRetryRequest] = None,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_admin()),
):
    """Re-deliver failed emails synchronously and report how many went out."""
    return NotificationService.retry_failed(db, data.ids if data else None)
