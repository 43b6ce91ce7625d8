from sqlalchemy import Column, String, DateTime, JSON
from sqlalchemy.sql import func
from app.database import Base

DEFAULT_TEMPLATE_ID = "default_template"

class SalaryTemplate(Base):
    """Global list of default earning/deduction names for salary forms. Not used in calculations."""
    __tablename__ = "salary_templates"

    id = Column(String, primary_key=True, default=DEFAULT_TEMPLATE_ID)
    earnings = Column(JSON, nullable=False, default=list)
    deductions = Column(JSON, nullable=False, default=list)
    updated_by = Column(String, nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
