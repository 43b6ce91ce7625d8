import pytest
from fastapi import status

from app.core.exceptions import DependencyFailureError
from app.models.audit_log import AuditLog
from app.models.email_outbox import EmailOutbox
from app.models.reimbursement import ReimbursementRequest

FORM = {
    "title": "Client visit cab",
    "category": "Travel",
    "amount": "1250.50",
    "expense_date": "2026-02-14",
    "description": "Airport drop",
}


def apply(client, headers, files=None, **overrides):
    return client.post("/api/reimbursements/apply", headers=headers, data={**FORM, **overrides}, files=files)


def act(client, headers, request_id, action, remarks=None):
    payload = {"action": action}
    if remarks is not None:
        payload["remarks"] = remarks
    return client.post(f"/api/reimbursements/{request_id}/action", headers=headers, json=payload)


def test_apply_with_bill(client, employee_user, auth_headers, storage, tmp_path):
    response = apply(client, auth_headers(employee_user), files={"bill_image": ("bill.png", b"\x89PNG data", "image/png")})
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["status"] == "pending"
    assert data["amount"] == 1250.5
    assert data["bill_filename"] == "bill.png"
    assert "/files/hrms_documents/reimbursement_bills/" in data["bill_url"]
    assert (tmp_path / storage.url_to_key(data["bill_url"])).exists()


def test_apply_survives_storage_failure(client, employee_user, auth_headers, storage, monkeypatch):
    def broken_put(*args, **kwargs):
        raise DependencyFailureError("bucket unavailable")
    monkeypatch.setattr(storage, "put", broken_put)

    response = apply(client, auth_headers(employee_user), files={"bill_image": ("bill.pdf", b"%PDF", "application/pdf")})
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["bill_url"] is None


def test_apply_rejects_bad_bill_type(client, employee_user, auth_headers):
    response = apply(client, auth_headers(employee_user), files={"bill_image": ("notes.txt", b"hello", "text/plain")})
    assert response.status_code == 400


@pytest.mark.parametrize("overrides", [{"amount": "0"}, {"amount": "-10"}, {"category": "Parties"}, {"title": "   "}, {"title": "x" * 201}])
def test_apply_validation(client, employee_user, auth_headers, overrides):
    response = apply(client, auth_headers(employee_user), **overrides)
    assert response.status_code == 400
    assert response.json()["errors"][0]["code"] == "INVALID_INPUT"


def test_admin_cannot_apply(client, admin_user, auth_headers):
    assert apply(client, auth_headers(admin_user)).status_code == 403


def test_full_lifecycle_approve_then_clear(client, db_session, admin_user, employee_user, auth_headers):
    created = apply(client, auth_headers(employee_user)).json()
    admin = auth_headers(admin_user)

    approved = act(client, admin, created["id"], "approve")
    assert approved.status_code == 200
    assert approved.json()["status"] == "approved"
    assert approved.json()["processed_by"] == admin_user.email

    # approved -> rejected is not a legal transition
    assert act(client, admin, created["id"], "reject", "Changed my mind").status_code == 400

    cleared = act(client, admin, created["id"], "clear", "Paid with February salary")
    assert cleared.status_code == 200
    assert cleared.json()["status"] == "cleared"
    assert cleared.json()["cleared_at"] is not None

    db_session.expire_all()
    emails = db_session.query(EmailOutbox).filter(EmailOutbox.category == "reimbursement_cleared").all()
    assert len(emails) == 1
    assert emails[0].to_address == employee_user.email
    assert emails[0].status == "sent"
    assert "Paid with February salary" in emails[0].body
    actions = {a.action for a in db_session.query(AuditLog).filter(AuditLog.entity_type == "reimbursement")}
    assert {"reimbursement_submitted", "reimbursement_approved", "reimbursement_cleared"} <= actions


def test_clear_from_pending_is_invalid(client, admin_user, employee_user, auth_headers):
    created = apply(client, auth_headers(employee_user)).json()
    response = act(client, auth_headers(admin_user), created["id"], "clear")
    assert response.status_code == 400
    assert response.json()["errors"][0]["code"] == "INVALID_INPUT"


def test_reject_requires_remarks(client, db_session, admin_user, employee_user, auth_headers):
    created = apply(client, auth_headers(employee_user)).json()
    admin = auth_headers(admin_user)
    assert act(client, admin, created["id"], "reject", "").status_code == 400
    assert act(client, admin, created["id"], "reject").status_code == 400

    rejected = act(client, admin, created["id"], "reject", "Missing receipt")
    assert rejected.json()["status"] == "rejected"
    assert rejected.json()["admin_remarks"] == "Missing receipt"

    db_session.expire_all()
    email = db_session.query(EmailOutbox).filter(EmailOutbox.category == "reimbursement_rejected").one()
    assert "Missing receipt" in email.body


def test_transition_survives_email_failure(client, db_session, admin_user, employee_user, auth_headers, monkeypatch):
    from app.services.email_service import EmailService

    def failing_deliver(self, message):
        raise DependencyFailureError("SMTP down")
    monkeypatch.setattr(EmailService, "deliver", failing_deliver)

    created = apply(client, auth_headers(employee_user)).json()
    rejected = act(client, auth_headers(admin_user), created["id"], "reject", "Duplicate claim")
    assert rejected.status_code == 200

    db_session.expire_all()
    assert db_session.get(ReimbursementRequest, created["id"]).status == "rejected"
    email = db_session.query(EmailOutbox).filter(EmailOutbox.category == "reimbursement_rejected").one()
    assert email.status == "failed"
    assert email.last_error == "SMTP down"


def test_owner_deletes_pending_request_and_bill(client, employee_user, auth_headers, storage, tmp_path):
    headers = auth_headers(employee_user)
    created = apply(client, headers, files={"bill_image": ("bill.png", b"\x89PNG", "image/png")}).json()
    bill_path = tmp_path / storage.url_to_key(created["bill_url"])
    assert bill_path.exists()

    response = client.delete(f"/api/reimbursements/{created['id']}", headers=headers)
    assert response.status_code == 200
    assert not bill_path.exists()
    assert client.get(f"/api/reimbursements/{created['id']}", headers=headers).status_code == 404


def test_delete_succeeds_when_bill_cleanup_fails(client, employee_user, auth_headers, storage, monkeypatch):
    headers = auth_headers(employee_user)
    created = apply(client, headers, files={"bill_image": ("bill.png", b"\x89PNG", "image/png")}).json()

    def broken_delete(key):
        raise DependencyFailureError("cannot delete")
    monkeypatch.setattr(storage, "delete", broken_delete)

    assert client.delete(f"/api/reimbursements/{created['id']}", headers=headers).status_code == 200


def test_cleared_request_delete_rules(client, admin_user, employee_user, auth_headers):
    created = apply(client, auth_headers(employee_user)).json()
    admin = auth_headers(admin_user)
    act(client, admin, created["id"], "approve")
    act(client, admin, created["id"], "clear")

    as_owner = client.delete(f"/api/reimbursements/{created['id']}", headers=auth_headers(employee_user))
    assert as_owner.status_code == 400
    assert as_owner.json()["errors"][0]["code"] == "INVALID_INPUT"

    as_admin = client.delete(f"/api/reimbursements/{created['id']}", headers=admin)
    assert as_admin.status_code == 200


def test_other_employee_cannot_view_or_delete(client, employee_user, other_employee, auth_headers):
    created = apply(client, auth_headers(employee_user)).json()
    other = auth_headers(other_employee)
    assert client.get(f"/api/reimbursements/{created['id']}", headers=other).status_code == 403
    assert client.delete(f"/api/reimbursements/{created['id']}", headers=other).status_code == 403


def test_lists_and_stats(client, admin_user, employee_user, manager_user, auth_headers):
    apply(client, auth_headers(employee_user), amount="100")
    second = apply(client, auth_headers(employee_user), amount="200").json()
    apply(client, auth_headers(manager_user), amount="300")
    admin = auth_headers(admin_user)
    act(client, admin, second["id"], "approve")

    mine = client.get("/api/reimbursements/my", headers=auth_headers(employee_user)).json()
    assert len(mine) == 2
    assert all(r["employee_name"] == "Ravi Kumar" for r in mine)

    pending = client.get("/api/reimbursements/all?status=pending", headers=admin).json()
    assert len(pending) == 2

    stats = client.get("/api/reimbursements/stats", headers=admin).json()
    assert stats["pending"] == {"count": 2, "amount": 400.0}
    assert stats["approved"] == {"count": 1, "amount": 200.0}
    assert stats["cleared"]["count"] == 0
    assert stats["total"] == {"count": 3, "amount": 600.0}


def test_unknown_request(client, admin_user, auth_headers):
    assert act(client, auth_headers(admin_user), 999, "approve").status_code == 404
