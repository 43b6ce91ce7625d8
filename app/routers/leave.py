from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from app.core.identity import Identity
from app.database import get_db
from app.routers.auth_deps import get_identity, require_manager
from app.schemas.leave import LeaveActionRequest, LeaveRequestCreate, LeaveRequestResponse
from app.services import leave_service

router = APIRouter(
    prefix="/leaves",
    tags=["leave"]
)


@router.post("", response_model=LeaveRequestResponse, status_code=status.HTTP_201_CREATED)
def apply_leave(
    data: LeaveRequestCreate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_identity),
):
    return leave_service.apply_leave(db, identity, data)


@router.get("/my", response_model=List[LeaveRequestResponse])
def my_leaves(db: Session = Depends(get_db), identity: Identity = Depends(get_identity)):
    return leave_service.list_my_leaves(db, identity)


@router.get("", response_model=List[LeaveRequestResponse])
def all_leaves(
    status_filter: Optional[str] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_manager()),
):
    return leave_service.list_leaves(db, status_filter)


@router.put("/{leave_id}/action", response_model=LeaveRequestResponse)
def act_on_leave(
    leave_id: int,
    data: LeaveActionRequest,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_identity),
):
    """approve/reject need admin or manager; cancel is for the applicant."""
    return leave_service.act_on_leave(db, identity, leave_id, data.action)
