# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import (
    user, employee, leave_request,
    salary_structure, salary_component, salary_template,
    comp_off, reimbursement, password_reset,
    email_outbox, audit_log
)

# Explicit class exports for cleaner imports
from .user import User, UserRole
from .employee import Employee
from .salary_structure import SalaryStructure
from .salary_component import SalaryComponent

__all__ = [
    "User",
    "UserRole",
    "Employee",
    "SalaryStructure",
    "SalaryComponent",
]
