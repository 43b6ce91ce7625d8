"""
Salary slip rendering.

Turns a computed salary breakdown into an HTML document for email or
preview. Figures are only formatted here, never recalculated. The same
renderer handles both slip variants: a FlatSalaryResult produces the
brief slip, a DetailedSalaryResult the componentized one.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, Optional, Union

from app.core.config import settings
from app.core.security import sanitize_input as escape
from app.services.salary_calculator import DetailedSalaryResult, FlatSalaryResult, LineItem


@dataclass(frozen=True)
class SlipEmployee:
    name: str
    code: str
    department: Optional[str] = None
    designation: Optional[str] = None


def format_currency(amount: float, symbol: Optional[str] = None) -> str:
    symbol = settings.currency_symbol if symbol is None else symbol
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.2f}"


def format_days(days: float) -> str:
    return f"{days:g}"


def _text(value: Any) -> str:
    return escape(str(value)) if value not in (None, "") else "-"


_STYLE = """
        body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 760px; margin: 0 auto; }
        .header { background: #4f46e5; padding: 28px; border-radius: 10px 10px 0 0; text-align: center; }
        .header h1 { color: white; margin: 0; font-size: 26px; }
        .header p { color: #e0e7ff; margin: 5px 0 0 0; }
        .content { background: white; padding: 28px; border: 1px solid #e2e8f0; border-top: none; }
        .info-box { background: #f8fafc; padding: 16px; border-radius: 8px; margin-bottom: 22px; }
        .info-box h2 { margin: 0 0 12px 0; color: #1e293b; font-size: 17px; }
        table { width: 100%; border-collapse: collapse; }
        td, th { padding: 8px 10px; border-bottom: 1px solid #e2e8f0; text-align: left; }
        .amount { text-align: right; }
        .callout { background: #fee2e2; color: #991b1b; }
        .earnings th { background: #10b981; color: white; }
        .deductions th { background: #ef4444; color: white; }
        .total-row { font-weight: 700; background: #f1f5f9; }
        .net { background: #059669; color: white; padding: 22px; border-radius: 8px; text-align: center; margin: 26px 0; }
        .net h1 { margin: 8px 0 0 0; font-size: 34px; }
        .footer { margin-top: 28px; padding-top: 16px; border-top: 2px solid #e2e8f0; text-align: center; color: #64748b; font-size: 12px; }
"""


def _employee_section(employee: SlipEmployee, period_label: str) -> str:
    return f"""
        <div class="info-box">
            <h2>Employee Details</h2>
            <table>
                <tr><td>Employee Name:</td><td><strong>{_text(employee.name)}</strong></td></tr>
                <tr><td>Employee ID:</td><td><strong>{_text(employee.code)}</strong></td></tr>
                <tr><td>Department:</td><td>{_text(employee.department)}</td></tr>
                <tr><td>Designation:</td><td>{_text(employee.designation)}</td></tr>
                <tr><td>Pay Period:</td><td>{escape(period_label)}</td></tr>
            </table>
        </div>"""


def _leave_rows(leaves: Iterable[Any]) -> str:
    rows = ""
    for leave in leaves:
        start = leave.start_date.strftime("%d %b") if leave.start_date else "-"
        end = leave.end_date.strftime("%d %b") if getattr(leave, "end_date", None) else start
        rows += (
            f"<tr><td>{_text(leave.leave_type)}</td>"
            f"<td>{start} - {end}</td>"
            f"<td class='amount'>{format_days(leave.days_count or 0)}</td></tr>"
        )
    return rows


def _brief_body(result: FlatSalaryResult, approved_leaves: Iterable[Any]) -> str:
    unpaid_row = ""
    if result.unpaid_days > 0:
        unpaid_row = (
            f"<tr class='callout'><td>Unpaid Leave Deduction ({format_days(result.unpaid_days)} days):</td>"
            f"<td class='amount'>- {format_currency(result.unpaid_deduction)}</td></tr>"
        )

    leave_rows = _leave_rows(approved_leaves)
    leaves_section = ""
    if leave_rows:
        leaves_section = f"""
        <div class="info-box">
            <h2>Leave Details</h2>
            <table>
                <tr><th>Type</th><th>Dates</th><th class="amount">Days</th></tr>
                {leave_rows}
            </table>
        </div>"""

    return f"""
        <div class="info-box">
            <h2>Attendance Summary</h2>
            <table>
                <tr><td>Total Days in Month:</td><td class="amount">{result.total_days_in_month} days</td></tr>
                <tr><td>Leave Days:</td><td class="amount">{format_days(result.total_leave_days)} days</td></tr>
                <tr class="callout"><td>Unpaid Leaves:</td><td class="amount">{format_days(result.unpaid_days)} days</td></tr>
                <tr class="total-row"><td>Payable Days:</td><td class="amount">{format_days(result.payable_days)} days</td></tr>
            </table>
        </div>
        <div class="info-box">
            <h2>Salary Breakdown</h2>
            <table>
                <tr><td>Base Salary:</td><td class="amount">{format_currency(result.base_salary)}</td></tr>
                <tr><td>Per Day Salary:</td><td class="amount">{format_currency(result.per_day_salary)}</td></tr>
                {unpaid_row}
            </table>
        </div>
        <div class="net">
            <p>Net Salary</p>
            <h1>{format_currency(result.net_salary)}</h1>
        </div>
        {leaves_section}"""


def _line_rows(items: Iterable[LineItem]) -> str:
    return "".join(
        f"<tr><td>{_text(item.name)}</td><td class='amount'>{format_currency(item.amount)}</td></tr>"
        for item in items
    )


def _detailed_body(result: DetailedSalaryResult) -> str:
    deduction_rows = _line_rows(result.deductions) or "<tr><td colspan='2'>No deductions</td></tr>"

    leave_callout = ""
    if result.unpaid_full_days or result.unpaid_half_days:
        leave_callout = f"""
        <div class="info-box callout">
            <h2>Unpaid Leave</h2>
            <table>
                <tr><td>Full days:</td><td class="amount">{format_days(result.unpaid_full_days)} x {format_currency(result.per_full_day_deduction)}</td></tr>
                <tr><td>Half days:</td><td class="amount">{format_days(result.unpaid_half_days)} x {format_currency(result.per_half_day_deduction)}</td></tr>
                <tr class="total-row"><td>Deducted:</td><td class="amount">{format_currency(result.unpaid_leave_deduction)}</td></tr>
            </table>
        </div>"""

    recorded_note = ""
    if result.recorded_unpaid_days:
        recorded_note = (
            f"<p>Approved unpaid leave on record this month: "
            f"{format_days(result.recorded_unpaid_days)} days.</p>"
        )

    return f"""
        <div class="info-box">
            <table>
                <tr><td>Payable Days:</td><td class="amount">{format_days(result.payable_days)} / {result.total_days_in_month}</td></tr>
            </table>
            {recorded_note}
        </div>
        <table class="earnings">
            <tr><th>EARNINGS</th><th class="amount">Amount</th></tr>
            {_line_rows(result.earnings)}
            <tr class="total-row"><td>Gross Earnings</td><td class="amount">{format_currency(result.gross_salary)}</td></tr>
        </table>
        <br/>
        <table class="deductions">
            <tr><th>DEDUCTIONS</th><th class="amount">Amount</th></tr>
            {deduction_rows}
            <tr class="total-row"><td>Total Deductions</td><td class="amount">{format_currency(result.total_deductions)}</td></tr>
        </table>
        {leave_callout}
        <div class="net">
            <p>NET SALARY (Gross - Deductions)</p>
            <h1>{format_currency(result.net_salary)}</h1>
        </div>"""


def render_salary_slip(
    employee: SlipEmployee,
    period_label: str,
    breakdown: Union[FlatSalaryResult, DetailedSalaryResult],
    approved_leaves: Iterable[Any] = (),
    generated_at: Optional[datetime] = None,
) -> str:
    """
    Render a salary slip as a standalone HTML document.

    Pass generated_at for reproducible output; it defaults to now (UTC).
    """
    if isinstance(breakdown, DetailedSalaryResult):
        body = _detailed_body(breakdown)
    elif isinstance(breakdown, FlatSalaryResult):
        body = _brief_body(breakdown, approved_leaves)
    else:
        raise TypeError(f"Unsupported salary breakdown: {type(breakdown).__name__}")

    generated_at = generated_at or datetime.now(timezone.utc)
    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8"/>
    <title>Salary Slip - {escape(period_label)}</title>
    <style>{_STYLE}    </style>
</head>
<body>
    <div class="header">
        <h1>SALARY SLIP</h1>
        <p>{escape(period_label)}</p>
    </div>
    <div class="content">
        {_employee_section(employee, period_label)}
        {body}
        <div class="footer">
            <p>This is a system-generated salary slip. For queries, please contact HR.</p>
            <p>Generated on {generated_at.strftime('%B %d, %Y %H:%M')} UTC</p>
        </div>
    </div>
</body>
</html>
"""
