"""
HTML bodies and subjects for transactional emails.

Every user-supplied value is escaped on the way into the markup.
"""
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from app.core.security import sanitize_input
from app.services.slip_renderer import format_currency, format_days


@dataclass(frozen=True)
class RenderedEmail:
    subject: str
    body: str


def _e(value) -> str:
    return sanitize_input(str(value)) if value is not None else ""


def _fmt_date(value) -> str:
    if isinstance(value, (date, datetime)):
        return value.strftime("%d %b %Y")
    return _e(value)


def _layout(heading: str, color: str, inner: str) -> str:
    return f"""<html>
<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
    <div style="max-width: 600px; margin: 0 auto; padding: 20px; border: 1px solid #e0e0e0; border-radius: 8px;">
        <h2 style="color: {color}; border-bottom: 3px solid {color}; padding-bottom: 10px;">{heading}</h2>
        {inner}
        <p style="color: #64748b; font-size: 12px; margin-top: 30px; border-top: 1px solid #e2e8f0; padding-top: 15px;">
            This is an automated notification from the HRMS system. Please do not reply.
        </p>
    </div>
</body>
</html>
"""


def _rows(pairs) -> str:
    return "".join(
        f"<tr><td style='padding: 8px; border: 1px solid #e2e8f0;'><strong>{label}</strong></td>"
        f"<td style='padding: 8px; border: 1px solid #e2e8f0;'>{value}</td></tr>"
        for label, value in pairs
    )


def reimbursement_cleared_email(
    employee_name: str,
    title: str,
    category: str,
    amount: float,
    cleared_at: datetime,
    remarks: Optional[str] = None,
) -> RenderedEmail:
    details = _rows([
        ("Title", _e(title)),
        ("Category", _e(category)),
        ("Amount", format_currency(amount)),
        ("Cleared On", _fmt_date(cleared_at)),
    ])
    note = ""
    if remarks:
        note = f"<p style='padding: 12px; background: #f0fdf4; border-left: 4px solid #10b981;'><strong>Note:</strong> {_e(remarks)}</p>"
    inner = f"""
        <p>Dear <strong>{_e(employee_name)}</strong>,</p>
        <p>Your reimbursement request has been processed and the payment has been released.</p>
        <table style="width: 100%; border-collapse: collapse; margin: 20px 0;">
            {details}
        </table>
        {note}"""
    return RenderedEmail(
        subject="Reimbursement Cleared - Payment Processed",
        body=_layout("Reimbursement Cleared", "#10b981", inner),
    )


def reimbursement_rejected_email(
    employee_name: str,
    title: str,
    category: str,
    amount: float,
    reason: str,
) -> RenderedEmail:
    details = _rows([
        ("Title", _e(title)),
        ("Category", _e(category)),
        ("Amount", format_currency(amount)),
        ("Reason", _e(reason)),
    ])
    inner = f"""
        <p>Dear <strong>{_e(employee_name)}</strong>,</p>
        <p>Your reimbursement request has been <strong style="color: #ef4444;">REJECTED</strong>.</p>
        <table style="width: 100%; border-collapse: collapse; margin: 20px 0;">
            {details}
        </table>
        <p>Please contact HR if you have questions about this decision.</p>"""
    return RenderedEmail(
        subject="Reimbursement Request Rejected",
        body=_layout("Reimbursement Rejected", "#ef4444", inner),
    )


def password_reset_email(full_name: str, reset_url: str, expiry_hours: int = 24) -> RenderedEmail:
    inner = f"""
        <p>Hello <strong>{_e(full_name)}</strong>,</p>
        <p>We received a request to reset the password for your HRMS account.</p>
        <p style="text-align: center; margin: 30px 0;">
            <a href="{_e(reset_url)}" style="background: #4f46e5; color: white; padding: 12px 28px; border-radius: 6px; text-decoration: none; font-weight: 600;">Reset Password</a>
        </p>
        <p>Or copy this link into your browser:<br/><span style="word-break: break-all; color: #4f46e5;">{_e(reset_url)}</span></p>
        <p style="padding: 12px; background: #fffbeb; border-left: 4px solid #f59e0b;">
            This link expires in {expiry_hours} hours and can be used once.
            If you did not request a reset, you can ignore this email.
        </p>"""
    return RenderedEmail(
        subject="Password Reset Request - HRMS",
        body=_layout("Password Reset", "#4f46e5", inner),
    )


def password_changed_email(full_name: str, changed_at: datetime) -> RenderedEmail:
    inner = f"""
        <p>Hello <strong>{_e(full_name)}</strong>,</p>
        <p>The password for your HRMS account was changed on {changed_at.strftime('%d %b %Y %H:%M')} UTC.</p>
        <p style="padding: 12px; background: #fee2e2; border-left: 4px solid #ef4444;">
            If you did not make this change, contact your HR administrator immediately.
        </p>"""
    return RenderedEmail(
        subject="Password Changed - HRMS",
        body=_layout("Password Changed", "#10b981", inner),
    )


def comp_off_granted_email(
    employee_name: str,
    days: float,
    work_date: date,
    expiry_date: datetime,
    reason: Optional[str] = None,
    granted_by: Optional[str] = None,
) -> RenderedEmail:
    details = _rows([
        ("Days Granted", format_days(days)),
        ("Work Date", _fmt_date(work_date)),
        ("Valid Until", _fmt_date(expiry_date)),
        ("Reason", _e(reason) or "-"),
        ("Granted By", _e(granted_by) or "-"),
    ])
    inner = f"""
        <p>Dear <strong>{_e(employee_name)}</strong>,</p>
        <p>You have been granted compensatory off for working on {_fmt_date(work_date)}.</p>
        <table style="width: 100%; border-collapse: collapse; margin: 20px 0;">
            {details}
        </table>"""
    return RenderedEmail(
        subject="Comp-Off Granted!",
        body=_layout("Comp-Off Granted", "#10b981", inner),
    )


def comp_off_request_email(
    employee_name: str,
    employee_role: str,
    work_date: date,
    days: float,
    reason: str,
) -> RenderedEmail:
    details = _rows([
        ("Work Date", _fmt_date(work_date)),
        ("Days Requested", format_days(days)),
        ("Reason", _e(reason)),
    ])
    inner = f"""
        <p><strong>{_e(employee_name)}</strong> ({_e(employee_role)}) has requested compensatory off and needs your approval.</p>
        <table style="width: 100%; border-collapse: collapse; margin: 20px 0;">
            {details}
        </table>"""
    return RenderedEmail(
        subject=f"Comp-Off Request from {employee_name}",
        body=_layout("New Comp-Off Request", "#7c3aed", inner),
    )


def comp_off_approved_email(
    employee_name: str,
    work_date: date,
    days: float,
    expiry_date: datetime,
    remarks: Optional[str] = None,
) -> RenderedEmail:
    details = _rows([
        ("Work Date", _fmt_date(work_date)),
        ("Days Added", format_days(days)),
        ("Valid Until", _fmt_date(expiry_date)),
    ])
    note = ""
    if remarks:
        note = f"<p style='padding: 12px; background: #f0fdf4; border-left: 4px solid #10b981;'><strong>Remarks:</strong> {_e(remarks)}</p>"
    inner = f"""
        <p>Dear <strong>{_e(employee_name)}</strong>,</p>
        <p>Your comp-off request has been <strong style="color: #10b981;">APPROVED</strong> and added to your balance.</p>
        <table style="width: 100%; border-collapse: collapse; margin: 20px 0;">
            {details}
        </table>
        {note}"""
    return RenderedEmail(
        subject="Comp-Off Request Approved!",
        body=_layout("Comp-Off Approved", "#10b981", inner),
    )


def comp_off_rejected_email(employee_name: str, work_date: date, days: float, reason: str) -> RenderedEmail:
    details = _rows([
        ("Work Date", _fmt_date(work_date)),
        ("Days Requested", format_days(days)),
        ("Reason", _e(reason)),
    ])
    inner = f"""
        <p>Dear <strong>{_e(employee_name)}</strong>,</p>
        <p>Your comp-off request has been <strong style="color: #ef4444;">REJECTED</strong>.</p>
        <table style="width: 100%; border-collapse: collapse; margin: 20px 0;">
            {details}
        </table>"""
    return RenderedEmail(
        subject="Comp-Off Request Rejected",
        body=_layout("Comp-Off Rejected", "#ef4444", inner),
    )


def salary_slip_subject(period_label: str) -> str:
    return f"Salary Slip - {period_label}"
