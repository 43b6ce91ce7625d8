from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from app.core.identity import Identity
from app.database import get_db
from app.routers.auth_deps import get_identity, require_admin, require_manager
from app.schemas.employee import EmployeeCreate, EmployeeResponse, EmployeeUpdate
from app.services import employee_service
from app.services.audit import AuditService

router = APIRouter(prefix="/employees", tags=["employees"])


@router.post("", response_model=EmployeeResponse, status_code=status.HTTP_201_CREATED)
def create_employee(
    data: EmployeeCreate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_admin()),
):
    employee = employee_service.create_employee(db, data)
    AuditService.log_for(db, identity, "employee_created", "employee", employee.id, details={
        "employee_code": employee.employee_code,
        "role": data.role,
    })
    return employee


@router.get("", response_model=List[EmployeeResponse])
def list_employees(
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_manager()),
):
    return employee_service.list_employees(db)


@router.get("/{employee_id}", response_model=EmployeeResponse)
def get_employee(
    employee_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_identity),
):
    return employee_service.get_employee_for(db, identity, employee_id)


@router.put("/{employee_id}", response_model=EmployeeResponse)
def update_employee(
    employee_id: int,
    data: EmployeeUpdate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_admin()),
):
    employee, changes = employee_service.update_employee(db, identity, employee_id, data)
    if changes:
        AuditService.log_for(db, identity, "employee_updated", "employee", employee.id, details=changes)
    return employee


@router.delete("/{employee_id}")
def deactivate_employee(
    employee_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_admin()),
):
    employee = employee_service.deactivate_employee(db, identity, employee_id)
    AuditService.log_for(db, identity, "employee_deactivated", "employee", employee.id, details={
        "employee_code": employee.employee_code,
    })
    return {"success": True, "message": f"Employee {employee.employee_code} deactivated"}
