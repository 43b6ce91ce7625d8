from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from datetime import date, datetime
from typing import List, Literal, Optional


class CompOffGrant(BaseModel):
    employee_id: int
    days: float = Field(..., gt=0, le=30)
    work_date: date
    reason: Optional[str] = Field(None, max_length=500)


class CompOffRequestCreate(BaseModel):
    work_date: date
    days: float = 1.0
    reason: str = Field(..., min_length=1, max_length=500)

    @field_validator("days")
    @classmethod
    def half_or_full_day(cls, v):
        if v not in (0.5, 1.0):
            raise ValueError("days must be 0.5 or 1")
        return v

    @field_validator("reason")
    @classmethod
    def reason_not_blank(cls, v):
        if not v.strip():
            raise ValueError("reason is required")
        return v.strip()


class CompOffAction(BaseModel):
    action: Literal["approve", "reject"]
    remarks: Optional[str] = Field(None, max_length=500)

    @model_validator(mode="after")
    def remarks_for_rejection(self):
        if self.action == "reject" and not (self.remarks or "").strip():
            raise ValueError("remarks are required when rejecting")
        return self


class CompOffUse(BaseModel):
    days_to_use: float = Field(..., gt=0)


class CompOffRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: int
    employee_name: Optional[str] = None
    days: float
    used: float
    remaining: float
    work_date: date
    reason: Optional[str] = None
    status: str
    requested_by_role: Optional[str] = None
    requested_at: Optional[datetime] = None
    remarks: Optional[str] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    granted_by: Optional[str] = None
    granted_at: Optional[datetime] = None
    expiry_date: Optional[datetime] = None
    expired: bool = False


class CompOffBalance(BaseModel):
    employee_id: int
    total_granted: float
    total_used: float
    remaining: float
    records: List[CompOffRecordResponse] = []
