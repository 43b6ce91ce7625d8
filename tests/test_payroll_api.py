import pytest
from datetime import date

from app.models.email_outbox import EmailOutbox
from app.models.leave_request import LeaveRequest


def add_leave(db, employee, start, days, leave_type="Unpaid Leave", status="approved"):
    db.add(LeaveRequest(
        employee_id=employee.id, leave_type=leave_type, start_date=start, end_date=start,
        days_count=days, status=status,
    ))
    db.commit()


def test_send_salary_slip_february_example(client, db_session, admin_user, employee_user, auth_headers):
    profile = employee_user.employee_profile
    add_leave(db_session, profile, date(2026, 2, 9), 2)
    add_leave(db_session, profile, date(2026, 2, 16), 1, leave_type="Sick Leave")
    add_leave(db_session, profile, date(2026, 2, 20), 3, status="pending")
    add_leave(db_session, profile, date(2026, 3, 2), 1)

    response = client.post("/api/payroll/send-salary-slip", headers=auth_headers(admin_user),
                           json={"employee_id": profile.id, "month": "2026-02"})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    details = body["details"]
    assert details["base_salary"] == 31000
    assert details["net_salary"] == pytest.approx(28785.71, abs=0.01)
    assert details["unpaid_deduction"] == pytest.approx(2214.29, abs=0.01)
    assert details["working_days"] == 26
    assert details["leave_days"] == 3

    db_session.expire_all()
    email = db_session.get(EmailOutbox, body["notification_id"])
    assert email.to_address == employee_user.email
    assert email.subject == "Salary Slip - February 2026"
    assert email.category == "salary_slip"
    assert email.status == "sent"
    assert "₹28,785.71" in email.body


def test_send_salary_slip_requires_configured_salary(client, db_session, admin_user, employee_user, auth_headers):
    employee_user.employee_profile.monthly_salary = None
    db_session.commit()
    response = client.post("/api/payroll/send-salary-slip", headers=auth_headers(admin_user),
                           json={"employee_id": employee_user.employee_profile.id, "month": "2026-02"})
    assert response.status_code == 400
    assert response.json()["errors"][0]["code"] == "SALARY_NOT_CONFIGURED"
    assert db_session.query(EmailOutbox).count() == 0


@pytest.mark.parametrize("month", ["2026-13", "Feb-2026", "2026/02"])
def test_malformed_month_is_invalid_input(client, admin_user, employee_user, auth_headers, month):
    response = client.post("/api/payroll/send-salary-slip", headers=auth_headers(admin_user),
                           json={"employee_id": employee_user.employee_profile.id, "month": month})
    assert response.status_code == 400
    assert response.json()["errors"][0]["code"] == "INVALID_INPUT"


def test_unknown_employee(client, admin_user, auth_headers):
    response = client.post("/api/payroll/send-salary-slip", headers=auth_headers(admin_user),
                           json={"employee_id": 4242, "month": "2026-02"})
    assert response.status_code == 404


def test_only_admin_sends_slips(client, manager_user, employee_user, auth_headers):
    response = client.post("/api/payroll/send-salary-slip", headers=auth_headers(manager_user),
                           json={"employee_id": employee_user.employee_profile.id, "month": "2026-02"})
    assert response.status_code == 403


def test_detailed_slip_requires_structure(client, admin_user, employee_user, auth_headers):
    response = client.post("/api/payroll/send-detailed-salary-slip", headers=auth_headers(admin_user),
                           json={"employee_id": employee_user.employee_profile.id, "month": "2026-02"})
    assert response.status_code == 400
    assert response.json()["errors"][0]["code"] == "SALARY_NOT_CONFIGURED"


def test_detailed_slip_uses_manual_deduction(client, db_session, admin_user, employee_user, auth_headers):
    employee_id = employee_user.employee_profile.id
    headers = auth_headers(admin_user)
    client.post(f"/api/salary-structure/{employee_id}", headers=headers, json={
        "basic_salary": 20000,
        "components": [
            {"name": "House Rent Allowance", "type": "earning", "amount": 40, "is_percentage": True},
            {"name": "EPF", "type": "deduction", "amount": 12, "is_percentage": True},
        ],
    })
    response = client.post("/api/payroll/send-detailed-salary-slip", headers=headers, json={
        "employee_id": employee_id, "month": "2026-03",
        "unpaid_full_days": 1, "unpaid_half_days": 2,
        "per_full_day_deduction": 900, "per_half_day_deduction": 450,
        "unpaid_leave_deduction": 1000,
    })
    assert response.status_code == 200
    details = response.json()["details"]
    assert details["gross_salary"] == 28000
    assert details["total_deductions"] == pytest.approx(2400 + 1000)
    assert details["net_salary"] == pytest.approx(28000 - 3400)
    assert details["payable_days"] == 29

    db_session.expire_all()
    email = db_session.get(EmailOutbox, response.json()["notification_id"])
    assert "Unpaid Leave Deduction (1 full + 2 half days)" in email.body


def test_negative_manual_figures_fail_validation(client, admin_user, employee_user, auth_headers):
    response = client.post("/api/payroll/send-detailed-salary-slip", headers=auth_headers(admin_user), json={
        "employee_id": employee_user.employee_profile.id, "month": "2026-03", "unpaid_leave_deduction": -5,
    })
    assert response.status_code == 422


def test_employee_report_for_self(client, db_session, employee_user, other_employee, auth_headers):
    profile = employee_user.employee_profile
    add_leave(db_session, profile, date(2026, 2, 9), 2)
    headers = auth_headers(employee_user)

    report = client.get(f"/api/payroll/employee-report/{profile.id}/2026-02", headers=headers)
    assert report.status_code == 200
    data = report.json()
    assert data["attendance"] == {"total_days": 28, "leave_days": 2, "unpaid_days": 2, "payable_days": 26}
    assert len(data["approved_leaves"]) == 1
    assert data["salary"]["net_salary"] == pytest.approx(28785.71, abs=0.01)

    other = client.get(f"/api/payroll/employee-report/{other_employee.employee_profile.id}/2026-02", headers=headers)
    assert other.status_code == 403


def test_employee_report_without_salary(client, db_session, manager_user, employee_user, auth_headers):
    employee_user.employee_profile.monthly_salary = None
    db_session.commit()
    data = client.get(f"/api/payroll/employee-report/{employee_user.employee_profile.id}/2026-02",
                      headers=auth_headers(manager_user)).json()
    assert data["salary"] is None


def test_monthly_summary(client, db_session, admin_user, employee_user, other_employee, manager_user, auth_headers):
    add_leave(db_session, employee_user.employee_profile, date(2026, 2, 9), 2)
    data = client.get("/api/payroll/monthly-summary/2026-02", headers=auth_headers(admin_user)).json()
    assert data["employee_count"] == 3
    assert data["period"] == "February 2026"
    assert data["total_payroll"] == pytest.approx(28785.714 + 45000 + 60000, abs=0.01)


def test_slip_preview_returns_html(client, admin_user, employee_user, auth_headers):
    response = client.get(f"/api/payroll/slip-preview/{employee_user.employee_profile.id}/2026-02",
                          headers=auth_headers(admin_user))
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert "SALARY SLIP" in response.text
    assert "February 2026" in response.text
