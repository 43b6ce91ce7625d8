"""
Salary template and per-employee salary structure endpoints.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional

from app.core.identity import Identity
from app.database import get_db
from app.routers.auth_deps import get_identity, require_admin
from app.schemas.salary import (
    SalaryStructurePayload,
    SalaryStructureResponse,
    SalaryTemplatePayload,
    SalaryTemplateResponse,
)
from app.services import salary_structure_service

router = APIRouter(tags=["salary"])


@router.get("/salary-template", response_model=SalaryTemplateResponse)
def get_salary_template(db: Session = Depends(get_db), identity: Identity = Depends(get_identity)):
    return salary_structure_service.get_template(db)


@router.post("/salary-template", response_model=SalaryTemplateResponse)
def save_salary_template(
    data: SalaryTemplatePayload,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_admin()),
):
    return salary_structure_service.save_template(db, identity, data)


@router.get("/salary-structure/{employee_id}", response_model=Optional[SalaryStructureResponse])
def get_salary_structure(
    employee_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_identity),
):
    return salary_structure_service.get_structure(db, identity, employee_id)


@router.post("/salary-structure/{employee_id}", response_model=SalaryStructureResponse)
def save_salary_structure(
    employee_id: int,
    data: SalaryStructurePayload,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_admin()),
):
    return salary_structure_service.save_structure(db, identity, employee_id, data)
