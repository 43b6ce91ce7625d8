from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from app.core.identity import Identity
from app.database import get_db
from app.routers.auth_deps import get_identity, require_admin, require_manager
from app.schemas.comp_off import (
    CompOffAction,
    CompOffBalance,
    CompOffGrant,
    CompOffRecordResponse,
    CompOffRequestCreate,
    CompOffUse,
)
from app.services import comp_off_service

router = APIRouter(prefix="/comp-off", tags=["comp-off"])


@router.post("/grant", response_model=CompOffRecordResponse, status_code=status.HTTP_201_CREATED)
def grant_comp_off(
    data: CompOffGrant,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_manager()),
):
    record = comp_off_service.grant(db, identity, data, background_tasks)
    return comp_off_service.serialize(record)


@router.post("/request", response_model=CompOffRecordResponse, status_code=status.HTTP_201_CREATED)
def request_comp_off(
    data: CompOffRequestCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_identity),
):
    record = comp_off_service.submit_request(db, identity, data, background_tasks)
    return comp_off_service.serialize(record)


@router.get("/my-requests", response_model=List[CompOffRecordResponse])
def my_comp_off_requests(db: Session = Depends(get_db), identity: Identity = Depends(get_identity)):
    return [comp_off_service.serialize(r) for r in comp_off_service.my_requests(db, identity)]


@router.get("/team-requests", response_model=List[CompOffRecordResponse])
def team_comp_off_requests(db: Session = Depends(get_db), identity: Identity = Depends(require_manager())):
    return [comp_off_service.serialize(r) for r in comp_off_service.team_requests(db, identity)]


@router.get("/all-requests", response_model=List[CompOffRecordResponse])
def all_comp_off_requests(
    status_filter: Optional[str] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_admin()),
):
    return [comp_off_service.serialize(r) for r in comp_off_service.all_requests(db, status_filter)]


@router.post("/{record_id}/action", response_model=CompOffRecordResponse)
def act_on_comp_off_request(
    record_id: int,
    data: CompOffAction,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_manager()),
):
    record = comp_off_service.act_on_request(db, identity, record_id, data, background_tasks)
    return comp_off_service.serialize(record)


@router.get("/records", response_model=List[CompOffRecordResponse])
def list_comp_off_records(
    employee_id: Optional[int] = None,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_manager()),
):
    return [comp_off_service.serialize(r) for r in comp_off_service.list_records(db, employee_id)]


@router.get("/balance", response_model=CompOffBalance)
def my_comp_off_balance(db: Session = Depends(get_db), identity: Identity = Depends(get_identity)):
    return comp_off_service.balance(db, identity)


@router.post("/use-balance", response_model=CompOffBalance)
def use_comp_off_balance(
    data: CompOffUse,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_identity),
):
    return comp_off_service.use_balance(db, identity, data.days_to_use)


@router.post("/{record_id}/use", response_model=CompOffRecordResponse)
def use_comp_off(
    record_id: int,
    data: CompOffUse,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_identity),
):
    record = comp_off_service.use(db, identity, record_id, data.days_to_use)
    return comp_off_service.serialize(record)
