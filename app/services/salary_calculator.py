"""
Salary Calculator

Pure arithmetic for the two payroll modes:

- Flat mode: a single monthly salary prorated by unpaid leave days.
- Structured mode: basic salary plus earning/deduction components, some of
  them percentages of basic or of gross.

Money is plain float throughout. Nothing is rounded here; rounding is a
display concern of the slip renderer.
"""
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence

from app.core.exceptions import InvalidInputError, UnconfiguredError

EARNING = "earning"
DEDUCTION = "deduction"
BASE_BASIC = "basic"
BASE_GROSS = "gross"


@dataclass(frozen=True)
class ComponentSpec:
    name: str
    component_type: str  # earning | deduction
    amount: float
    is_percentage: bool = False
    calculation_base: str = BASE_BASIC  # only meaningful when is_percentage
    calculated_amount: Optional[float] = None


@dataclass(frozen=True)
class LineItem:
    name: str
    amount: float


@dataclass
class FlatSalaryResult:
    base_salary: float
    total_days_in_month: int
    per_day_salary: float
    unpaid_days: float
    unpaid_deduction: float
    net_salary: float
    payable_days: float
    total_leave_days: float = 0.0


@dataclass
class StructureEvaluation:
    basic_salary: float
    components: List[ComponentSpec]
    gross_salary: float
    total_deductions: float
    net_salary: float


@dataclass
class DetailedSalaryResult:
    basic_salary: float
    earnings: List[LineItem]
    deductions: List[LineItem]
    gross_salary: float
    total_deductions: float
    net_salary: float
    total_days_in_month: int
    payable_days: float
    unpaid_full_days: float = 0.0
    unpaid_half_days: float = 0.0
    per_full_day_deduction: float = 0.0
    per_half_day_deduction: float = 0.0
    unpaid_leave_deduction: float = 0.0
    # Unpaid days found in approved leave records; shown on the slip, not deducted
    recorded_unpaid_days: float = 0.0


def calculate_flat_salary(
    monthly_salary: Optional[float],
    unpaid_days: float,
    days_in_month: int,
    total_leave_days: float = 0.0,
) -> FlatSalaryResult:
    """
    Prorate a monthly salary by unpaid days.

    unpaid_days is not capped at days_in_month; more unpaid days than the
    month has produces a negative net salary.

    Raises:
        UnconfiguredError: monthly_salary is missing or zero.
    """
    if not monthly_salary:
        raise UnconfiguredError("Employee salary not configured")

    per_day_salary = monthly_salary / days_in_month
    unpaid_deduction = unpaid_days * per_day_salary
    return FlatSalaryResult(
        base_salary=monthly_salary,
        total_days_in_month=days_in_month,
        per_day_salary=per_day_salary,
        unpaid_days=unpaid_days,
        unpaid_deduction=unpaid_deduction,
        net_salary=monthly_salary - unpaid_deduction,
        payable_days=days_in_month - unpaid_days,
        total_leave_days=total_leave_days,
    )


def _stored_amount(component: ComponentSpec) -> float:
    if component.calculated_amount is not None:
        return component.calculated_amount
    return component.amount


def resolve_earning(component: ComponentSpec, basic_salary: float) -> float:
    if component.is_percentage and component.calculation_base == BASE_BASIC:
        return basic_salary * component.amount / 100
    if component.is_percentage:
        # A gross-based earning would depend on itself; keep the entered figure
        return _stored_amount(component)
    return component.amount


def resolve_deduction(component: ComponentSpec, basic_salary: float, gross_salary: float) -> float:
    """gross_salary must be the final gross, after every earning has been added."""
    if component.is_percentage and component.calculation_base == BASE_BASIC:
        return basic_salary * component.amount / 100
    if component.is_percentage and component.calculation_base == BASE_GROSS:
        return gross_salary * component.amount / 100
    return component.amount


def evaluate_structure(basic_salary: float, components: Sequence[ComponentSpec]) -> StructureEvaluation:
    """
    Recompute every component's calculated_amount and the structure totals.

    All earnings are summed before any deduction is resolved, so a
    gross-based deduction always sees the final gross. Component order is
    preserved in the result.
    """
    basic_salary = basic_salary or 0.0
    for component in components:
        if component.component_type not in (EARNING, DEDUCTION):
            raise InvalidInputError(f"Unknown component type '{component.component_type}' for {component.name}")

    earning_amounts = {
        index: resolve_earning(c, basic_salary)
        for index, c in enumerate(components)
        if c.component_type == EARNING
    }
    gross_salary = basic_salary + sum(earning_amounts.values())

    resolved: List[ComponentSpec] = []
    total_deductions = 0.0
    for index, component in enumerate(components):
        if component.component_type == EARNING:
            value = earning_amounts[index]
        else:
            value = resolve_deduction(component, basic_salary, gross_salary)
            total_deductions += value
        resolved.append(replace(component, calculated_amount=value))

    return StructureEvaluation(
        basic_salary=basic_salary,
        components=resolved,
        gross_salary=gross_salary,
        total_deductions=total_deductions,
        net_salary=gross_salary - total_deductions,
    )


def calculate_detailed_salary(
    basic_salary: float,
    components: Sequence[ComponentSpec],
    days_in_month: int,
    unpaid_full_days: float = 0.0,
    unpaid_half_days: float = 0.0,
    per_full_day_deduction: float = 0.0,
    per_half_day_deduction: float = 0.0,
    unpaid_leave_deduction: float = 0.0,
    recorded_unpaid_days: float = 0.0,
) -> DetailedSalaryResult:
    """
    Componentized monthly salary for the detailed slip.

    Earnings: basic-percentage components are recomputed from basic_salary;
    everything else uses the stored calculated_amount (falling back to the
    raw amount). Deductions additionally support gross-percentage, resolved
    against the final gross.

    The unpaid-leave deduction is a manual figure entered by an admin and is
    used exactly as given. The per-day rates are carried for display only.
    """
    basic_salary = basic_salary or 0.0

    earnings = [LineItem("Basic Salary", basic_salary)]
    gross_salary = basic_salary
    for component in components:
        if component.component_type != EARNING:
            continue
        if component.is_percentage and component.calculation_base == BASE_BASIC:
            value = basic_salary * component.amount / 100
        else:
            value = _stored_amount(component)
        earnings.append(LineItem(component.name, value))
        gross_salary += value

    deductions: List[LineItem] = []
    total_deductions = 0.0
    for component in components:
        if component.component_type != DEDUCTION:
            continue
        if component.is_percentage and component.calculation_base == BASE_BASIC:
            value = basic_salary * component.amount / 100
        elif component.is_percentage and component.calculation_base == BASE_GROSS:
            value = gross_salary * component.amount / 100
        else:
            value = _stored_amount(component)
        deductions.append(LineItem(component.name, value))
        total_deductions += value

    if unpaid_leave_deduction and unpaid_leave_deduction > 0:
        deductions.append(LineItem(_unpaid_leave_label(unpaid_full_days, unpaid_half_days), unpaid_leave_deduction))
        total_deductions += unpaid_leave_deduction

    return DetailedSalaryResult(
        basic_salary=basic_salary,
        earnings=earnings,
        deductions=deductions,
        gross_salary=gross_salary,
        total_deductions=total_deductions,
        net_salary=gross_salary - total_deductions,
        total_days_in_month=days_in_month,
        payable_days=days_in_month - (unpaid_full_days + unpaid_half_days * 0.5),
        unpaid_full_days=unpaid_full_days,
        unpaid_half_days=unpaid_half_days,
        per_full_day_deduction=per_full_day_deduction,
        per_half_day_deduction=per_half_day_deduction,
        unpaid_leave_deduction=unpaid_leave_deduction or 0.0,
        recorded_unpaid_days=recorded_unpaid_days,
    )


def _unpaid_leave_label(full_days: float, half_days: float) -> str:
    parts = []
    if full_days:
        parts.append(f"{full_days:g} full")
    if half_days:
        parts.append(f"{half_days:g} half")
    return f"Unpaid Leave Deduction ({' + '.join(parts)} days)" if parts else "Unpaid Leave Deduction"
