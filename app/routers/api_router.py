from fastapi import APIRouter
from app.routers import (
    auth, employees, leave, salary, payroll, reimbursements,
    comp_off, password_reset, uploads, notifications
)

# Centralized API router hub
# Routers are aggregated here, and main.py only imports this single hub.
api_router = APIRouter()

api_router.include_router(auth.router, tags=["Authentication"])
api_router.include_router(employees.router, tags=["Employees"])
api_router.include_router(leave.router, tags=["Leave"])
api_router.include_router(salary.router, tags=["Salary"])
api_router.include_router(payroll.router, tags=["Payroll"])
api_router.include_router(reimbursements.router, tags=["Reimbursements"])
api_router.include_router(comp_off.router, tags=["Comp-Off"])
api_router.include_router(password_reset.router, tags=["Password Reset"])
api_router.include_router(uploads.router, tags=["Uploads"])
api_router.include_router(notifications.router, tags=["Notifications"])
