from pydantic import BaseModel, Field


class SalarySlipRequest(BaseModel):
    employee_id: int
    month: str = Field(..., description="YYYY-MM")


class DetailedSalarySlipRequest(SalarySlipRequest):
    unpaid_full_days: float = Field(0.0, ge=0)
    unpaid_half_days: float = Field(0.0, ge=0)
    per_full_day_deduction: float = Field(0.0, ge=0)
    per_half_day_deduction: float = Field(0.0, ge=0)
    unpaid_leave_deduction: float = Field(0.0, ge=0)
