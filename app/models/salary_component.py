from sqlalchemy import Column, Integer, String, Float, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from app.database import Base
import enum

class ComponentType(str, enum.Enum):
    EARNING = "earning"
    DEDUCTION = "deduction"

class CalculationBase(str, enum.Enum):
    BASIC = "basic"
    GROSS = "gross"

class SalaryComponent(Base):
    __tablename__ = "salary_components"

    id = Column(Integer, primary_key=True, index=True)
    structure_id = Column(Integer, ForeignKey("salary_structures.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    name = Column(String, nullable=False)
    component_type = Column(String, nullable=False)  # Store enum value as string
    amount = Column(Float, nullable=False, default=0.0)
    is_percentage = Column(Boolean, nullable=False, default=False)
    calculation_base = Column(String, nullable=False, default=CalculationBase.BASIC.value)
    calculated_amount = Column(Float, nullable=False, default=0.0)

    structure = relationship("SalaryStructure", back_populates="components")
