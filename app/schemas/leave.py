from pydantic import BaseModel, ConfigDict, Field, model_validator
from datetime import date, datetime
from typing import Literal, Optional

class LeaveRequestCreate(BaseModel):
    leave_type: str = Field(..., min_length=1, max_length=50)
    start_date: date
    end_date: date
    days_count: float = Field(..., gt=0)
    reason: Optional[str] = Field(None, max_length=500)

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self

class LeaveRequestResponse(BaseModel):
    id: int
    employee_id: int
    leave_type: str
    start_date: date
    end_date: date
    days_count: float
    reason: Optional[str] = None
    status: str
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class LeaveActionRequest(BaseModel):
    action: Literal["approve", "reject", "cancel"]

# Resolve forward references for Pydantic V2
LeaveRequestResponse.model_rebuild()
