import pytest
from datetime import date, timedelta

from app.database import utcnow
from app.models.comp_off import CompOffRecord
from app.models.email_outbox import EmailOutbox


def grant(client, headers, employee_id, days=2, work_date="2026-01-10"):
    return client.post("/api/comp-off/grant", headers=headers, json={
        "employee_id": employee_id, "days": days, "work_date": work_date, "reason": "Release weekend",
    })


def test_manager_grants_comp_off(client, db_session, manager_user, employee_user, auth_headers):
    response = grant(client, auth_headers(manager_user), employee_user.employee_profile.id)
    assert response.status_code == 201
    data = response.json()
    assert data["days"] == 2
    assert data["used"] == 0
    assert data["remaining"] == 2
    assert data["granted_by"] == manager_user.email
    assert data["expired"] is False

    record = db_session.get(CompOffRecord, data["id"])
    assert record.expiry_date - record.granted_at == timedelta(days=90)

    db_session.expire_all()
    email = db_session.query(EmailOutbox).filter(EmailOutbox.category == "comp_off_granted").one()
    assert email.to_address == employee_user.email
    assert email.subject == "Comp-Off Granted!"


def test_employee_cannot_grant(client, employee_user, other_employee, auth_headers):
    response = grant(client, auth_headers(employee_user), other_employee.employee_profile.id)
    assert response.status_code == 403


def test_grant_needs_positive_days(client, manager_user, employee_user, auth_headers):
    assert grant(client, auth_headers(manager_user), employee_user.employee_profile.id, days=0).status_code == 422


def test_use_within_balance(client, manager_user, employee_user, auth_headers):
    record = grant(client, auth_headers(manager_user), employee_user.employee_profile.id, days=2).json()
    headers = auth_headers(employee_user)

    used = client.post(f"/api/comp-off/{record['id']}/use", headers=headers, json={"days_to_use": 1.5})
    assert used.status_code == 200
    assert used.json()["remaining"] == 0.5

    too_much = client.post(f"/api/comp-off/{record['id']}/use", headers=headers, json={"days_to_use": 1})
    assert too_much.status_code == 400

    balance = client.get("/api/comp-off/balance", headers=headers).json()
    assert balance["total_granted"] == 2
    assert balance["total_used"] == 1.5
    assert balance["remaining"] == 0.5


def test_only_owner_uses_comp_off(client, manager_user, employee_user, other_employee, auth_headers):
    record = grant(client, auth_headers(manager_user), employee_user.employee_profile.id).json()
    response = client.post(f"/api/comp-off/{record['id']}/use", headers=auth_headers(other_employee), json={"days_to_use": 1})
    assert response.status_code == 403


def test_expired_grant_is_flagged_but_still_usable(client, db_session, manager_user, employee_user, auth_headers):
    record = grant(client, auth_headers(manager_user), employee_user.employee_profile.id).json()
    row = db_session.get(CompOffRecord, record["id"])
    row.expiry_date = utcnow() - timedelta(days=1)
    db_session.commit()

    headers = auth_headers(employee_user)
    balance = client.get("/api/comp-off/balance", headers=headers).json()
    assert balance["records"][0]["expired"] is True

    used = client.post(f"/api/comp-off/{record['id']}/use", headers=headers, json={"days_to_use": 1})
    assert used.status_code == 200
    assert used.json()["expired"] is True


def test_records_listing(client, manager_user, employee_user, other_employee, auth_headers):
    headers = auth_headers(manager_user)
    grant(client, headers, employee_user.employee_profile.id)
    grant(client, headers, other_employee.employee_profile.id)
    assert len(client.get("/api/comp-off/records", headers=headers).json()) == 2
    only_one = client.get(f"/api/comp-off/records?employee_id={other_employee.employee_profile.id}", headers=headers).json()
    assert len(only_one) == 1
    assert client.get("/api/comp-off/records", headers=auth_headers(employee_user)).status_code == 403


def days_ago(n):
    return (date.today() - timedelta(days=n)).isoformat()


def request_comp_off(client, headers, work_date, days=1, reason="Production release on Saturday"):
    return client.post("/api/comp-off/request", headers=headers, json={
        "work_date": work_date, "days": days, "reason": reason,
    })


@pytest.fixture
def team(db_session, manager_user, employee_user):
    employee_user.employee_profile.manager_id = manager_user.employee_profile.id
    db_session.commit()
    return manager_user, employee_user


def test_request_is_pending_and_notifies_manager(client, db_session, team, auth_headers):
    manager, employee = team
    response = request_comp_off(client, auth_headers(employee), days_ago(3), days=0.5)
    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "pending"
    assert data["requested_by_role"] == "employee"
    assert data["expiry_date"] is None
    assert data["employee_name"] == "Ravi Kumar"

    db_session.expire_all()
    email = db_session.query(EmailOutbox).filter(EmailOutbox.category == "comp_off_requested").one()
    assert email.to_address == manager.email
    assert email.subject == "Comp-Off Request from Ravi Kumar"

    balance = client.get("/api/comp-off/balance", headers=auth_headers(employee)).json()
    assert balance["remaining"] == 0


def test_manager_request_goes_to_admin(client, db_session, admin_user, manager_user, auth_headers):
    assert request_comp_off(client, auth_headers(manager_user), days_ago(2)).status_code == 201
    db_session.expire_all()
    email = db_session.query(EmailOutbox).filter(EmailOutbox.category == "comp_off_requested").one()
    assert email.to_address == admin_user.email


def test_request_validation(client, admin_user, employee_user, auth_headers):
    headers = auth_headers(employee_user)
    assert request_comp_off(client, headers, days_ago(1), days=2).status_code == 422
    assert request_comp_off(client, headers, days_ago(1), reason="   ").status_code == 422

    future = request_comp_off(client, headers, (date.today() + timedelta(days=2)).isoformat())
    assert future.status_code == 400

    assert request_comp_off(client, headers, days_ago(1)).status_code == 201
    duplicate = request_comp_off(client, headers, days_ago(1))
    assert duplicate.status_code == 400
    assert "already requested" in duplicate.json()["errors"][0]["msg"]

    assert request_comp_off(client, auth_headers(admin_user), days_ago(1)).status_code == 403


def test_manager_approves_team_request(client, db_session, team, auth_headers):
    manager, employee = team
    work_date = date.today() - timedelta(days=5)
    created = request_comp_off(client, auth_headers(employee), work_date.isoformat()).json()

    response = client.post(f"/api/comp-off/{created['id']}/action", headers=auth_headers(manager),
                           json={"action": "approve", "remarks": "Thanks for covering"})
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "approved"
    assert data["reviewed_by"] == manager.email
    assert data["remarks"] == "Thanks for covering"

    record = db_session.get(CompOffRecord, created["id"])
    assert record.expiry_date.date() == work_date + timedelta(days=90)

    balance = client.get("/api/comp-off/balance", headers=auth_headers(employee)).json()
    assert balance["total_granted"] == 1
    assert balance["remaining"] == 1

    db_session.expire_all()
    email = db_session.query(EmailOutbox).filter(EmailOutbox.category == "comp_off_approved").one()
    assert email.to_address == employee.email
    assert email.subject == "Comp-Off Request Approved!"

    again = client.post(f"/api/comp-off/{created['id']}/action", headers=auth_headers(manager),
                        json={"action": "reject", "remarks": "Changed my mind"})
    assert again.status_code == 400


def test_reject_needs_remarks_and_frees_the_date(client, db_session, team, auth_headers):
    manager, employee = team
    created = request_comp_off(client, auth_headers(employee), days_ago(4)).json()
    url = f"/api/comp-off/{created['id']}/action"

    assert client.post(url, headers=auth_headers(manager), json={"action": "reject"}).status_code == 422
    rejected = client.post(url, headers=auth_headers(manager), json={"action": "reject", "remarks": "Not a holiday"})
    assert rejected.json()["status"] == "rejected"

    db_session.expire_all()
    email = db_session.query(EmailOutbox).filter(EmailOutbox.category == "comp_off_rejected").one()
    assert "Not a holiday" in email.body

    used = client.post(f"/api/comp-off/{created['id']}/use", headers=auth_headers(employee), json={"days_to_use": 1})
    assert used.status_code == 400
    assert request_comp_off(client, auth_headers(employee), days_ago(4)).status_code == 201


def test_review_permissions(client, db_session, admin_user, team, other_employee, auth_headers):
    manager, employee = team
    outsider = request_comp_off(client, auth_headers(other_employee), days_ago(2)).json()
    own = request_comp_off(client, auth_headers(manager), days_ago(2)).json()
    approve = {"action": "approve"}

    assert client.post(f"/api/comp-off/{outsider['id']}/action", headers=auth_headers(manager),
                       json=approve).status_code == 403
    assert client.post(f"/api/comp-off/{own['id']}/action", headers=auth_headers(manager),
                       json=approve).status_code == 403
    assert client.post(f"/api/comp-off/{outsider['id']}/action", headers=auth_headers(employee),
                       json=approve).status_code == 403
    assert client.post("/api/comp-off/9999/action", headers=auth_headers(admin_user),
                       json=approve).status_code == 404

    for record in (outsider, own):
        response = client.post(f"/api/comp-off/{record['id']}/action", headers=auth_headers(admin_user), json=approve)
        assert response.status_code == 200


def test_request_listings(client, admin_user, team, other_employee, auth_headers):
    manager, employee = team
    request_comp_off(client, auth_headers(employee), days_ago(1))
    request_comp_off(client, auth_headers(employee), days_ago(2))
    request_comp_off(client, auth_headers(other_employee), days_ago(1))
    request_comp_off(client, auth_headers(manager), days_ago(1))
    grant(client, auth_headers(manager), employee.employee_profile.id)

    assert len(client.get("/api/comp-off/my-requests", headers=auth_headers(employee)).json()) == 2
    team_view = client.get("/api/comp-off/team-requests", headers=auth_headers(manager)).json()
    assert {r["employee_id"] for r in team_view} == {employee.employee_profile.id}
    assert len(team_view) == 2

    everything = client.get("/api/comp-off/all-requests", headers=auth_headers(admin_user)).json()
    assert len(everything) == 4
    pending = client.get("/api/comp-off/all-requests?status=pending", headers=auth_headers(admin_user)).json()
    assert len(pending) == 4
    assert client.get("/api/comp-off/all-requests", headers=auth_headers(manager)).status_code == 403
    assert client.get("/api/comp-off/team-requests", headers=auth_headers(employee)).status_code == 403


def test_pending_request_cannot_be_used(client, employee_user, auth_headers):
    headers = auth_headers(employee_user)
    created = request_comp_off(client, headers, days_ago(1)).json()
    response = client.post(f"/api/comp-off/{created['id']}/use", headers=headers, json={"days_to_use": 1})
    assert response.status_code == 400


def test_use_balance_draws_soonest_expiring_first(client, db_session, manager_user, employee_user, auth_headers):
    profile_id = employee_user.employee_profile.id
    later = grant(client, auth_headers(manager_user), profile_id, days=2, work_date="2026-01-10").json()
    sooner = grant(client, auth_headers(manager_user), profile_id, days=1, work_date="2026-01-03").json()
    row = db_session.get(CompOffRecord, sooner["id"])
    row.expiry_date = row.expiry_date - timedelta(days=30)
    db_session.commit()

    headers = auth_headers(employee_user)
    response = client.post("/api/comp-off/use-balance", headers=headers, json={"days_to_use": 1.5})
    assert response.status_code == 200
    assert response.json()["remaining"] == 1.5

    db_session.expire_all()
    assert db_session.get(CompOffRecord, sooner["id"]).used == 1
    assert db_session.get(CompOffRecord, later["id"]).used == 0.5

    short = client.post("/api/comp-off/use-balance", headers=headers, json={"days_to_use": 2})
    assert short.status_code == 400
    db_session.expire_all()
    assert db_session.get(CompOffRecord, later["id"]).used == 0.5
    assert client.post("/api/comp-off/use-balance", headers=headers, json={"days_to_use": 0}).status_code == 422
