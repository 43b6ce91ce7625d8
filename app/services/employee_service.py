"""
Employee directory.

Each Employee is linked one-to-one to a login User with the same email.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import AccessDeniedError, InvalidInputError, NotFoundError
from app.core.identity import Identity
from app.models.employee import Employee
from app.models.user import User
from app.schemas.employee import EmployeeCreate, EmployeeUpdate
from app.services import auth as auth_service

logger = logging.getLogger(__name__)


def _next_employee_code(db: Session) -> str:
    prefix = settings.employee_id_prefix
    highest = settings.employee_id_start
    for (code,) in db.query(Employee.employee_code).filter(Employee.employee_code.like(f"{prefix}%")).all():
        suffix = code[len(prefix):]
        if suffix.isdigit():
            highest = max(highest, int(suffix))
    return f"{prefix}{highest + 1}"


def _check_manager(db: Session, manager_id: Optional[int], employee_id: Optional[int] = None) -> None:
    if manager_id is None:
        return
    if manager_id == employee_id:
        raise InvalidInputError("An employee cannot report to themselves")
    if not db.query(Employee.id).filter(Employee.id == manager_id).first():
        raise InvalidInputError(f"Manager {manager_id} does not exist")


def create_employee(db: Session, data: EmployeeCreate) -> Employee:
    email = data.email.lower()
    if db.query(User).filter(User.email == email).first():
        raise InvalidInputError(f"A user with email {email} already exists")
    _check_manager(db, data.manager_id)

    try:
        user = User(
            email=email,
            hashed_password=auth_service.get_password_hash(data.password),
            full_name=data.full_name,
            role=data.role,
            is_active=True,
        )
        db.add(user)
        db.flush()

        employee = Employee(
            user_id=user.id,
            employee_code=_next_employee_code(db),
            email=email,
            full_name=data.full_name,
            department=data.department,
            designation=data.designation,
            phone=data.phone,
            date_of_joining=data.date_of_joining,
            monthly_salary=data.monthly_salary,
            manager_id=data.manager_id,
        )
        db.add(employee)
        db.commit()
        db.refresh(employee)
    except Exception:
        db.rollback()
        raise

    logger.info(f"Created employee {employee.employee_code} for {email}")
    return employee


def list_employees(db: Session) -> List[Employee]:
    return db.query(Employee).order_by(Employee.id).all()


def get_employee(db: Session, employee_id: int) -> Employee:
    employee = db.query(Employee).filter(Employee.id == employee_id).first()
    if not employee:
        raise NotFoundError("Employee not found")
    return employee


def get_employee_for(db: Session, identity: Identity, employee_id: int) -> Employee:
    """Admins and managers see everyone; employees only themselves."""
    if not identity.is_manager and not identity.owns(employee_id):
        raise AccessDeniedError("You can only view your own records")
    return get_employee(db, employee_id)


def require_own_profile(db: Session, identity: Identity) -> Employee:
    if identity.employee_id is None:
        raise NotFoundError("No employee profile linked to this account")
    return get_employee(db, identity.employee_id)


# Columns that cannot be cleared by sending null
_REQUIRED_FIELDS = {"full_name", "is_active"}


def update_employee(
    db: Session, identity: Identity, employee_id: int, data: EmployeeUpdate
) -> Tuple[Employee, Dict[str, Any]]:
    """
    Apply the fields present in the body. Returns the employee and a
    {field: [old, new]} map of what actually changed.
    """
    employee = get_employee(db, employee_id)
    fields = {
        key: value for key, value in data.model_dump(exclude_unset=True).items()
        if value is not None or key not in _REQUIRED_FIELDS
    }
    if "manager_id" in fields:
        _check_manager(db, fields["manager_id"], employee.id)
    if fields.get("is_active") is False and employee.user_id == identity.user_id:
        raise InvalidInputError("You cannot deactivate your own account")

    changes: Dict[str, Any] = {}
    for key, value in fields.items():
        target = employee.user if key == "is_active" else employee
        old = getattr(target, key)
        if old != value:
            setattr(target, key, value)
            changes[key] = [old, value]
    if "full_name" in changes:
        employee.user.full_name = employee.full_name

    if changes:
        try:
            db.commit()
            db.refresh(employee)
        except Exception:
            db.rollback()
            raise
        logger.info(f"Updated {employee.employee_code}: {', '.join(sorted(changes))} by {identity.email}")
    return employee, changes


def deactivate_employee(db: Session, identity: Identity, employee_id: int) -> Employee:
    """Removes access but keeps the profile so payroll and audit history stay intact."""
    employee = get_employee(db, employee_id)
    if employee.user_id == identity.user_id:
        raise InvalidInputError("You cannot remove your own account")
    try:
        employee.user.is_active = False
        db.query(Employee).filter(Employee.manager_id == employee.id).update({Employee.manager_id: None})
        db.commit()
        db.refresh(employee)
    except Exception:
        db.rollback()
        raise
    logger.info(f"Deactivated {employee.employee_code} by {identity.email}")
    return employee


def reports_of(db: Session, manager_employee_id: int) -> List[Employee]:
    return db.query(Employee).filter(Employee.manager_id == manager_employee_id).order_by(Employee.id).all()
