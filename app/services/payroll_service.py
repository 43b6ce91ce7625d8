"""
Payroll Service Layer

Business logic for salary slips and payroll reports. Database access
happens here; the arithmetic, leave aggregation and slip markup are
delegated to pure modules.

Architecture:
- Router -> Service (this module) -> Models
- attendance.summarize_leaves -> salary_calculator -> slip_renderer
- Slips are delivered through the email outbox after the request
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from app.core.exceptions import UnconfiguredError
from app.core.identity import Identity
from app.models.employee import Employee
from app.schemas.payroll import DetailedSalarySlipRequest
from app.services.attendance import LeaveSummary, MonthWindow, parse_month, summarize_leaves
from app.services.audit import AuditService
from app.services.email_templates import RenderedEmail, salary_slip_subject
from app.services.employee_service import get_employee, get_employee_for
from app.services.leave_service import leaves_in_month
from app.services.notification import NotificationService
from app.services.salary_calculator import (
    DetailedSalaryResult,
    FlatSalaryResult,
    calculate_detailed_salary,
    calculate_flat_salary,
)
from app.services.salary_structure_service import find_structure, specs_from_structure
from app.services.slip_renderer import SlipEmployee, render_salary_slip

logger = logging.getLogger(__name__)


def _slip_employee(employee: Employee) -> SlipEmployee:
    return SlipEmployee(
        name=employee.full_name,
        code=employee.employee_code,
        department=employee.department,
        designation=employee.designation,
    )


def _month_summary(db: Session, employee: Employee, window: MonthWindow) -> LeaveSummary:
    return summarize_leaves(leaves_in_month(db, employee.id, window), window)


def _flat_result(employee: Employee, window: MonthWindow, summary: LeaveSummary) -> FlatSalaryResult:
    return calculate_flat_salary(
        employee.monthly_salary,
        summary.unpaid_days,
        window.days_in_month,
        total_leave_days=summary.total_leave_days,
    )


def _detailed_result(
    db: Session,
    employee: Employee,
    window: MonthWindow,
    summary: LeaveSummary,
    request: Optional[DetailedSalarySlipRequest] = None,
) -> DetailedSalaryResult:
    structure = find_structure(db, employee.id)
    if not structure:
        raise UnconfiguredError("Salary structure not configured for this employee")

    manual = {}
    if request is not None:
        manual = dict(
            unpaid_full_days=request.unpaid_full_days,
            unpaid_half_days=request.unpaid_half_days,
            per_full_day_deduction=request.per_full_day_deduction,
            per_half_day_deduction=request.per_half_day_deduction,
            unpaid_leave_deduction=request.unpaid_leave_deduction,
        )
    return calculate_detailed_salary(
        structure.basic_salary,
        specs_from_structure(structure),
        window.days_in_month,
        recorded_unpaid_days=summary.unpaid_days,
        **manual,
    )


def _queue_slip(
    db: Session,
    employee: Employee,
    window: MonthWindow,
    html: str,
    background_tasks: Optional[BackgroundTasks],
):
    email = RenderedEmail(subject=salary_slip_subject(window.label), body=html)
    return NotificationService.queue_email(db, employee.email, email, "salary_slip", background_tasks)


def send_salary_slip(
    db: Session,
    identity: Identity,
    employee_id: int,
    month: str,
    background_tasks: Optional[BackgroundTasks] = None,
) -> Dict[str, Any]:
    """
    Compute the flat-mode salary for a month and email the brief slip.

    Raises:
        InvalidInputError: malformed month.
        NotFoundError: unknown employee.
        UnconfiguredError: the employee has no monthly salary.
    """
    window = parse_month(month)
    employee = get_employee(db, employee_id)
    summary = _month_summary(db, employee, window)
    result = _flat_result(employee, window, summary)

    html = render_salary_slip(_slip_employee(employee), window.label, result, summary.approved_leaves)
    entry = _queue_slip(db, employee, window, html, background_tasks)

    logger.info(f"Salary slip for {employee.employee_code} ({window.key}) queued by {identity.email}")
    AuditService.log_for(db, identity, "salary_slip_sent", "employee", employee.id, details={
        "month": window.key,
        "net_salary": result.net_salary,
    })
    return {
        "success": True,
        "message": f"Salary slip sent to {employee.email}",
        "notification_id": entry.id if entry else None,
        "details": {
            "base_salary": result.base_salary,
            "net_salary": result.net_salary,
            "unpaid_deduction": result.unpaid_deduction,
            "working_days": result.payable_days,
            "leave_days": result.total_leave_days,
        },
    }


def send_detailed_salary_slip(
    db: Session,
    identity: Identity,
    request: DetailedSalarySlipRequest,
    background_tasks: Optional[BackgroundTasks] = None,
) -> Dict[str, Any]:
    """
    Componentized slip from the stored salary structure.

    The unpaid-leave deduction is taken from the request as entered; the
    per-day rates only appear on the slip.
    """
    window = parse_month(request.month)
    employee = get_employee(db, request.employee_id)
    summary = _month_summary(db, employee, window)
    result = _detailed_result(db, employee, window, summary, request)

    html = render_salary_slip(_slip_employee(employee), window.label, result)
    entry = _queue_slip(db, employee, window, html, background_tasks)

    logger.info(f"Detailed salary slip for {employee.employee_code} ({window.key}) queued by {identity.email}")
    AuditService.log_for(db, identity, "detailed_salary_slip_sent", "employee", employee.id, details={
        "month": window.key,
        "net_salary": result.net_salary,
        "unpaid_leave_deduction": result.unpaid_leave_deduction,
    })
    return {
        "success": True,
        "message": f"Detailed salary slip sent to {employee.email}",
        "notification_id": entry.id if entry else None,
        "details": {
            "gross_salary": result.gross_salary,
            "total_deductions": result.total_deductions,
            "net_salary": result.net_salary,
            "payable_days": result.payable_days,
        },
    }


def _salary_figures(result: FlatSalaryResult) -> Dict[str, Any]:
    return {
        "base_salary": result.base_salary,
        "per_day_salary": result.per_day_salary,
        "unpaid_deduction": result.unpaid_deduction,
        "net_salary": result.net_salary,
    }


def _leave_row(leave) -> Dict[str, Any]:
    return {
        "id": leave.id,
        "leave_type": leave.leave_type,
        "start_date": leave.start_date,
        "end_date": leave.end_date,
        "days_count": leave.days_count,
    }


def get_employee_report(db: Session, identity: Identity, employee_id: int, month: str) -> Dict[str, Any]:
    """Attendance and flat-mode salary for one employee and month. salary is None when unconfigured."""
    window = parse_month(month)
    employee = get_employee_for(db, identity, employee_id)
    summary = _month_summary(db, employee, window)

    salary = None
    if employee.monthly_salary:
        salary = _salary_figures(_flat_result(employee, window, summary))

    return {
        "employee": {
            "id": employee.id,
            "employee_code": employee.employee_code,
            "full_name": employee.full_name,
            "email": employee.email,
            "department": employee.department,
            "designation": employee.designation,
        },
        "month": window.key,
        "period": window.label,
        "attendance": {
            "total_days": window.days_in_month,
            "leave_days": summary.total_leave_days,
            "unpaid_days": summary.unpaid_days,
            "payable_days": window.days_in_month - summary.unpaid_days,
        },
        "approved_leaves": [_leave_row(l) for l in summary.approved_leaves],
        "salary": salary,
    }


def get_monthly_summary(db: Session, month: str) -> Dict[str, Any]:
    """Flat-mode figures for every employee with a configured salary."""
    window = parse_month(month)
    employees: List[Employee] = (
        db.query(Employee)
        .filter(Employee.monthly_salary.isnot(None), Employee.monthly_salary > 0)
        .order_by(Employee.id)
        .all()
    )

    rows = []
    total = 0.0
    for employee in employees:
        summary = _month_summary(db, employee, window)
        result = _flat_result(employee, window, summary)
        total += result.net_salary
        rows.append({
            "employee_id": employee.id,
            "employee_code": employee.employee_code,
            "full_name": employee.full_name,
            "leave_days": summary.total_leave_days,
            "unpaid_days": summary.unpaid_days,
            "payable_days": result.payable_days,
            **_salary_figures(result),
        })

    return {
        "month": window.key,
        "period": window.label,
        "employee_count": len(rows),
        "total_payroll": total,
        "employees": rows,
    }


def preview_salary_slip(db: Session, employee_id: int, month: str, detailed: bool = False) -> str:
    """Rendered slip HTML without sending it. The detailed preview carries no manual deduction."""
    window = parse_month(month)
    employee = get_employee(db, employee_id)
    summary = _month_summary(db, employee, window)
    if detailed:
        result = _detailed_result(db, employee, window, summary)
        return render_salary_slip(_slip_employee(employee), window.label, result)
    result = _flat_result(employee, window, summary)
    return render_salary_slip(_slip_employee(employee), window.label, result, summary.approved_leaves)
