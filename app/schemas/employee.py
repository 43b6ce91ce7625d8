from pydantic import BaseModel, ConfigDict, EmailStr, Field
from datetime import date, datetime
from typing import Optional
from app.models.user import UserRole


class EmployeeCreate(BaseModel):
    email: EmailStr
    full_name: str = Field(..., min_length=1, max_length=200)
    password: str = Field(..., min_length=6)
    role: UserRole = UserRole.EMPLOYEE
    department: Optional[str] = Field(None, max_length=100)
    designation: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    date_of_joining: Optional[date] = None
    monthly_salary: Optional[float] = Field(None, ge=0)
    manager_id: Optional[int] = None


class EmployeeUpdate(BaseModel):
    """Partial update: only the fields present in the request body change."""
    full_name: Optional[str] = Field(None, min_length=1, max_length=200)
    department: Optional[str] = Field(None, max_length=100)
    designation: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    date_of_joining: Optional[date] = None
    monthly_salary: Optional[float] = Field(None, ge=0)
    manager_id: Optional[int] = None
    is_active: Optional[bool] = None


class EmployeeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_code: str
    email: EmailStr
    full_name: str
    department: Optional[str] = None
    designation: Optional[str] = None
    phone: Optional[str] = None
    date_of_joining: Optional[date] = None
    monthly_salary: Optional[float] = None
    manager_id: Optional[int] = None
    is_active: bool = True
    profile_picture_url: Optional[str] = None
    government_id_url: Optional[str] = None
    created_at: Optional[datetime] = None
