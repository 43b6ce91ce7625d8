"""
Profile picture and government ID uploads.
Employees manage their own documents; admins can upload on anyone's behalf.
"""
from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session

from app.core.identity import Identity
from app.database import get_db
from app.routers.auth_deps import get_identity, require_admin
from app.schemas.employee import EmployeeResponse
from app.services.document_service import DocumentService
from app.services.employee_service import get_employee, require_own_profile
from app.services.storage import StorageService, get_storage

router = APIRouter(prefix="/uploads", tags=["uploads"])


def get_document_service(
    db: Session = Depends(get_db),
    storage: StorageService = Depends(get_storage),
) -> DocumentService:
    return DocumentService(db, storage)


async def _upload(service: DocumentService, identity: Identity, employee, kind: str, file: UploadFile):
    content = await file.read()
    return service.upload(identity, employee, kind, content, file.filename or kind, file.content_type)


@router.post("/profile-picture", response_model=EmployeeResponse)
async def upload_profile_picture(
    file: UploadFile = File(...),
    service: DocumentService = Depends(get_document_service),
    identity: Identity = Depends(get_identity),
):
    employee = require_own_profile(service.db, identity)
    return await _upload(service, identity, employee, "profile_picture", file)


@router.delete("/profile-picture", response_model=EmployeeResponse)
def delete_profile_picture(
    service: DocumentService = Depends(get_document_service),
    identity: Identity = Depends(get_identity),
):
    employee = require_own_profile(service.db, identity)
    return service.remove(identity, employee, "profile_picture")


@router.post("/government-id", response_model=EmployeeResponse)
async def upload_government_id(
    file: UploadFile = File(...),
    service: DocumentService = Depends(get_document_service),
    identity: Identity = Depends(get_identity),
):
    employee = require_own_profile(service.db, identity)
    return await _upload(service, identity, employee, "government_id", file)


@router.delete("/government-id", response_model=EmployeeResponse)
def delete_government_id(
    service: DocumentService = Depends(get_document_service),
    identity: Identity = Depends(get_identity),
):
    employee = require_own_profile(service.db, identity)
    return service.remove(identity, employee, "government_id")


@router.post("/employee/{employee_id}/profile-picture", response_model=EmployeeResponse)
async def admin_upload_profile_picture(
    employee_id: int,
    file: UploadFile = File(...),
    service: DocumentService = Depends(get_document_service),
    identity: Identity = Depends(require_admin()),
):
    employee = get_employee(service.db, employee_id)
    return await _upload(service, identity, employee, "profile_picture", file)


@router.post("/employee/{employee_id}/government-id", response_model=EmployeeResponse)
async def admin_upload_government_id(
    employee_id: int,
    file: UploadFile = File(...),
    service: DocumentService = Depends(get_document_service),
    identity: Identity = Depends(require_admin()),
):
    employee = get_employee(service.db, employee_id)
    return await _upload(service, identity, employee, "government_id", file)
