from pydantic import BaseModel, ConfigDict, Field
from datetime import date, datetime
from typing import Literal, Optional


class ReimbursementAction(BaseModel):
    action: Literal["approve", "reject", "clear"]
    remarks: Optional[str] = Field(None, max_length=500)


class ReimbursementResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: int
    employee_name: Optional[str] = None
    employee_code: Optional[str] = None
    title: str
    category: str
    amount: float
    description: Optional[str] = None
    expense_date: date
    bill_url: Optional[str] = None
    bill_filename: Optional[str] = None
    status: str
    admin_remarks: Optional[str] = None
    processed_by: Optional[str] = None
    processed_at: Optional[datetime] = None
    cleared_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
