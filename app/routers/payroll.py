"""
Payroll Router

Handles HTTP endpoints for salary slips and payroll reports.
All business logic is delegated to the payroll service layer.
"""
from fastapi import APIRouter, BackgroundTasks, Depends
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from app.core.identity import Identity
from app.database import get_db
from app.routers.auth_deps import get_identity, require_admin
from app.schemas.payroll import DetailedSalarySlipRequest, SalarySlipRequest
from app.services import payroll_service

router = APIRouter(
    prefix="/payroll",
    tags=["payroll"],
)


@router.post("/send-salary-slip")
def send_salary_slip(
    data: SalarySlipRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_admin()),
):
    """Flat-salary slip for one month, emailed to the employee."""
    return payroll_service.send_salary_slip(db, identity, data.employee_id, data.month, background_tasks)


@router.post("/send-detailed-salary-slip")
def send_detailed_salary_slip(
    data: DetailedSalarySlipRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_admin()),
):
    """Componentized slip from the saved salary structure, with a manual unpaid-leave deduction."""
    return payroll_service.send_detailed_salary_slip(db, identity, data, background_tasks)


@router.get("/employee-report/{employee_id}/{month}")
def employee_report(
    employee_id: int,
    month: str,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_identity),
):
    return payroll_service.get_employee_report(db, identity, employee_id, month)


@router.get("/monthly-summary/{month}")
def monthly_summary(
    month: str,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_admin()),
):
    return payroll_service.get_monthly_summary(db, month)


@router.get("/slip-preview/{employee_id}/{month}", response_class=HTMLResponse)
def slip_preview(
    employee_id: int,
    month: str,
    detailed: bool = False,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_admin()),
):
    return HTMLResponse(payroll_service.preview_salary_slip(db, employee_id, month, detailed))
