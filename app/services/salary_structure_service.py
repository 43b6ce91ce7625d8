"""
Salary template and per-employee salary structures.

Both are single-row-per-key records replaced in place inside one
transaction, so readers never see a missing structure mid-save.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.core.identity import Identity
from app.models.salary_component import SalaryComponent
from app.models.salary_structure import SalaryStructure
from app.models.salary_template import DEFAULT_TEMPLATE_ID, SalaryTemplate
from app.schemas.salary import SalaryStructurePayload, SalaryTemplatePayload
from app.services.audit import AuditService
from app.services.employee_service import get_employee, get_employee_for
from app.services.salary_calculator import ComponentSpec, evaluate_structure

logger = logging.getLogger(__name__)

DEFAULT_EARNINGS = [
    "Basic",
    "Dearness Allowance",
    "House Rent Allowance",
    "Conveyance Allowance",
    "Medical Allowance",
    "Special Allowance",
]
DEFAULT_DEDUCTIONS = ["Professional Tax", "TDS", "EPF"]


def default_template() -> Dict[str, Any]:
    return {
        "id": DEFAULT_TEMPLATE_ID,
        "earnings": [{"name": name, "order": i} for i, name in enumerate(DEFAULT_EARNINGS)],
        "deductions": [{"name": name, "order": i} for i, name in enumerate(DEFAULT_DEDUCTIONS)],
        "updated_by": None,
        "updated_at": None,
    }


def get_template(db: Session) -> Dict[str, Any]:
    template = db.query(SalaryTemplate).filter(SalaryTemplate.id == DEFAULT_TEMPLATE_ID).first()
    if not template:
        return default_template()
    return {
        "id": template.id,
        "earnings": template.earnings or [],
        "deductions": template.deductions or [],
        "updated_by": template.updated_by,
        "updated_at": template.updated_at,
    }


def save_template(db: Session, identity: Identity, data: SalaryTemplatePayload) -> Dict[str, Any]:
    template = db.query(SalaryTemplate).filter(SalaryTemplate.id == DEFAULT_TEMPLATE_ID).first()
    if template is None:
        template = SalaryTemplate(id=DEFAULT_TEMPLATE_ID)
        db.add(template)

    template.earnings = [item.model_dump() for item in data.earnings]
    template.deductions = [item.model_dump() for item in data.deductions]
    template.updated_by = identity.email
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    AuditService.log_for(db, identity, "salary_template_updated", "salary_template", details={
        "earnings": len(data.earnings),
        "deductions": len(data.deductions),
    })
    return get_template(db)


def specs_from_structure(structure: SalaryStructure) -> List[ComponentSpec]:
    return [
        ComponentSpec(
            name=c.name,
            component_type=c.component_type,
            amount=c.amount,
            is_percentage=c.is_percentage,
            calculation_base=c.calculation_base,
            calculated_amount=c.calculated_amount,
        )
        for c in structure.components
    ]


def serialize_structure(structure: SalaryStructure) -> Dict[str, Any]:
    return {
        "employee_id": structure.employee_id,
        "basic_salary": structure.basic_salary,
        "components": [
            {
                "name": c.name,
                "type": c.component_type,
                "amount": c.amount,
                "is_percentage": c.is_percentage,
                "calculation_base": c.calculation_base,
                "calculated_amount": c.calculated_amount,
            }
            for c in structure.components
        ],
        "gross_salary": structure.gross_salary,
        "total_deductions": structure.total_deductions,
        "net_salary": structure.net_salary,
        "updated_at": structure.updated_at or structure.created_at,
    }


def save_structure(
    db: Session,
    identity: Identity,
    employee_id: int,
    data: SalaryStructurePayload,
) -> Dict[str, Any]:
    """
    Evaluate and store an employee's salary structure.

    The structure row, its components and Employee.monthly_salary (set to
    the new net salary) are written in a single commit.
    """
    employee = get_employee(db, employee_id)
    evaluation = evaluate_structure(
        data.basic_salary,
        [
            ComponentSpec(
                name=c.name.strip(),
                component_type=c.type,
                amount=c.amount,
                is_percentage=c.is_percentage,
                calculation_base=c.calculation_base,
            )
            for c in data.components
        ],
    )

    structure = db.query(SalaryStructure).filter(SalaryStructure.employee_id == employee.id).first()
    if structure is None:
        structure = SalaryStructure(employee_id=employee.id)
        db.add(structure)

    try:
        structure.basic_salary = evaluation.basic_salary
        structure.gross_salary = evaluation.gross_salary
        structure.total_deductions = evaluation.total_deductions
        structure.net_salary = evaluation.net_salary
        structure.updated_by = identity.email
        structure.components = [
            SalaryComponent(
                position=position,
                name=spec.name,
                component_type=spec.component_type,
                amount=spec.amount,
                is_percentage=spec.is_percentage,
                calculation_base=spec.calculation_base,
                calculated_amount=spec.calculated_amount,
            )
            for position, spec in enumerate(evaluation.components)
        ]
        employee.monthly_salary = evaluation.net_salary
        db.commit()
        db.refresh(structure)
    except Exception:
        db.rollback()
        raise

    logger.info(
        f"Salary structure saved for {employee.employee_code}: "
        f"gross={evaluation.gross_salary} net={evaluation.net_salary}"
    )
    AuditService.log_for(db, identity, "salary_structure_saved", "salary_structure", structure.id, details={
        "employee_id": employee.id,
        "basic_salary": evaluation.basic_salary,
        "gross_salary": evaluation.gross_salary,
        "net_salary": evaluation.net_salary,
    })
    return serialize_structure(structure)


def find_structure(db: Session, employee_id: int) -> Optional[SalaryStructure]:
    return db.query(SalaryStructure).filter(SalaryStructure.employee_id == employee_id).first()


def get_structure(db: Session, identity: Identity, employee_id: int) -> Optional[Dict[str, Any]]:
    """
    Stored structure, or a flat stand-in built from monthly_salary, or None.
    """
    employee = get_employee_for(db, identity, employee_id)
    structure = find_structure(db, employee.id)
    if structure:
        return serialize_structure(structure)

    if employee.monthly_salary:
        return {
            "employee_id": employee.id,
            "basic_salary": employee.monthly_salary,
            "components": [],
            "gross_salary": employee.monthly_salary,
            "total_deductions": 0.0,
            "net_salary": employee.monthly_salary,
            "updated_at": None,
        }
    return None
