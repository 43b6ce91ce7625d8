from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import List, Literal, Optional


class TemplateItem(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    order: int = 0


class SalaryTemplatePayload(BaseModel):
    earnings: List[TemplateItem] = []
    deductions: List[TemplateItem] = []


class SalaryTemplateResponse(SalaryTemplatePayload):
    model_config = ConfigDict(from_attributes=True)

    id: str
    updated_by: Optional[str] = None
    updated_at: Optional[datetime] = None


class SalaryComponentPayload(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: Literal["earning", "deduction"]
    amount: float = Field(..., ge=0)
    is_percentage: bool = False
    calculation_base: Literal["basic", "gross"] = "basic"


class SalaryStructurePayload(BaseModel):
    basic_salary: float = Field(0.0, ge=0)
    components: List[SalaryComponentPayload] = []


class SalaryComponentResponse(BaseModel):
    name: str
    type: str
    amount: float
    is_percentage: bool
    calculation_base: str
    calculated_amount: float


class SalaryStructureResponse(BaseModel):
    employee_id: int
    basic_salary: float
    components: List[SalaryComponentResponse] = []
    gross_salary: float
    total_deductions: float
    net_salary: float
    updated_at: Optional[datetime] = None
