from sqlalchemy import Column, Integer, String, Float, Date, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base


class Employee(Base):
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    employee_code = Column(String, unique=True, index=True, nullable=False)  # EMP1001, EMP1002, ...
    email = Column(String, unique=True, index=True, nullable=False)
    full_name = Column(String, nullable=False)
    department = Column(String, nullable=True)
    designation = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    date_of_joining = Column(Date, nullable=True)
    manager_id = Column(Integer, ForeignKey("employees.id", ondelete="SET NULL"), nullable=True, index=True)

    # Base pay when no salary structure exists; overwritten with net_salary when one is saved
    monthly_salary = Column(Float, nullable=True)

    profile_picture_url = Column(String, nullable=True)
    profile_picture_key = Column(String, nullable=True)
    government_id_url = Column(String, nullable=True)
    government_id_key = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("User", back_populates="employee_profile")
    manager = relationship("Employee", remote_side=[id])
    salary_structure = relationship("SalaryStructure", back_populates="employee", uselist=False, cascade="all, delete-orphan")

    @property
    def is_active(self) -> bool:
        return bool(self.user and self.user.is_active)

    def __repr__(self):
        return f"<Employee {self.employee_code} {self.email}>"
