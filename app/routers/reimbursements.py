from datetime import date
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.orm import Session

from app.core.identity import Identity
from app.database import get_db
from app.models.reimbursement import REIMBURSEMENT_CATEGORIES
from app.models.user import UserRole
from app.routers.auth_deps import get_identity, require_admin, require_role
from app.schemas.reimbursement import ReimbursementAction, ReimbursementResponse
from app.services.reimbursement_service import BillUpload, ReimbursementService, serialize
from app.services.storage import StorageService, get_storage

router = APIRouter(prefix="/reimbursements", tags=["reimbursements"])


def get_reimbursement_service(
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    storage: StorageService = Depends(get_storage),
) -> ReimbursementService:
    return ReimbursementService(db, storage, background_tasks)


@router.get("/categories", response_model=List[str])
def list_categories():
    return REIMBURSEMENT_CATEGORIES


@router.post("/apply", response_model=ReimbursementResponse, status_code=status.HTTP_201_CREATED)
async def apply_reimbursement(
    title: str = Form(...),
    category: str = Form(...),
    amount: float = Form(...),
    expense_date: date = Form(...),
    description: Optional[str] = Form(None),
    bill_image: Optional[UploadFile] = File(None),
    service: ReimbursementService = Depends(get_reimbursement_service),
    identity: Identity = Depends(require_role([UserRole.EMPLOYEE, UserRole.MANAGER])),
):
    bill = None
    if bill_image is not None and bill_image.filename:
        bill = BillUpload(
            content=await bill_image.read(),
            filename=bill_image.filename,
            content_type=bill_image.content_type,
        )
    request = service.apply(identity, title, category, amount, expense_date, description, bill)
    return serialize(request)


@router.get("/my", response_model=List[ReimbursementResponse])
def my_reimbursements(
    service: ReimbursementService = Depends(get_reimbursement_service),
    identity: Identity = Depends(get_identity),
):
    return [serialize(r) for r in service.list_mine(identity)]


@router.get("/all", response_model=List[ReimbursementResponse])
def all_reimbursements(
    status_filter: Optional[str] = Query(None, alias="status"),
    service: ReimbursementService = Depends(get_reimbursement_service),
    identity: Identity = Depends(require_admin()),
):
    return [serialize(r) for r in service.list_all(status_filter)]


@router.get("/stats")
def reimbursement_stats(
    service: ReimbursementService = Depends(get_reimbursement_service),
    identity: Identity = Depends(require_admin()),
):
    return service.stats()


@router.get("/{request_id}", response_model=ReimbursementResponse)
def get_reimbursement(
    request_id: int,
    service: ReimbursementService = Depends(get_reimbursement_service),
    identity: Identity = Depends(get_identity),
):
    return serialize(service.get(identity, request_id))


@router.post("/{request_id}/action", response_model=ReimbursementResponse)
def act_on_reimbursement(
    request_id: int,
    data: ReimbursementAction,
    service: ReimbursementService = Depends(get_reimbursement_service),
    identity: Identity = Depends(require_admin()),
):
    return serialize(service.act(identity, request_id, data.action, data.remarks))


@router.delete("/{request_id}")
def delete_reimbursement(
    request_id: int,
    service: ReimbursementService = Depends(get_reimbursement_service),
    identity: Identity = Depends(get_identity),
):
    service.delete(identity, request_id)
    return {"success": True, "message": "Reimbursement request deleted"}
