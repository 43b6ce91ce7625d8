import pytest

from app.core.exceptions import DependencyFailureError
from app.models.email_outbox import EmailOutbox
from app.services.email_service import EmailService
from app.services.email_templates import RenderedEmail
from app.services.notification import NotificationService


def failing_deliver(self, message):
    raise DependencyFailureError("provider unavailable")


def queue(db, to="someone@example.com"):
    return NotificationService.queue_email(db, to, RenderedEmail("Subject", "<p>Body</p>"), "test")


def test_queue_without_background_stays_pending(db_session):
    entry = queue(db_session)
    assert entry.id is not None
    assert entry.status == "pending"
    assert entry.attempts == 0


def test_deliver_marks_sent(db_session):
    entry = queue(db_session)
    delivered = NotificationService.deliver(db_session, entry.id)
    assert delivered.status == "sent"
    assert delivered.attempts == 1
    assert delivered.sent_at is not None


def test_deliver_failure_is_recorded_not_raised(db_session, monkeypatch):
    monkeypatch.setattr(EmailService, "deliver", failing_deliver)
    entry = queue(db_session)
    delivered = NotificationService.deliver(db_session, entry.id)
    assert delivered.status == "failed"
    assert delivered.last_error == "provider unavailable"


def test_retry_redelivers_failed_rows(db_session, monkeypatch):
    monkeypatch.setattr(EmailService, "deliver", failing_deliver)
    first = queue(db_session, "a@example.com")
    second = queue(db_session, "b@example.com")
    NotificationService.deliver(db_session, first.id)
    NotificationService.deliver(db_session, second.id)

    monkeypatch.setattr(EmailService, "deliver", lambda self, message: None)
    result = NotificationService.retry_failed(db_session, [first.id])
    assert result == {"retried": 1, "sent": 1, "failed": 0}
    assert db_session.get(EmailOutbox, first.id).status == "sent"
    assert db_session.get(EmailOutbox, first.id).attempts == 2
    assert db_session.get(EmailOutbox, second.id).status == "failed"


def test_outbox_endpoints(client, db_session, admin_user, auth_headers, monkeypatch):
    monkeypatch.setattr(EmailService, "deliver", failing_deliver)
    entry = queue(db_session)
    NotificationService.deliver(db_session, entry.id)
    monkeypatch.setattr(EmailService, "deliver", lambda self, message: None)

    headers = auth_headers(admin_user)
    failed = client.get("/api/notifications/outbox?status=failed", headers=headers)
    assert failed.status_code == 200
    assert [e["id"] for e in failed.json()] == [entry.id]

    retried = client.post("/api/notifications/outbox/retry", headers=headers, json={})
    assert retried.json() == {"retried": 1, "sent": 1, "failed": 0}


def test_outbox_is_admin_only(client, employee_user, auth_headers):
    assert client.get("/api/notifications/outbox", headers=auth_headers(employee_user)).status_code == 403


def test_email_service_send_email_reports_failure(monkeypatch):
    from app.services.email_service import EmailMessage
    monkeypatch.setattr(EmailService, "deliver", failing_deliver)
    assert EmailService().send_email(EmailMessage(to=["x@example.com"], subject="s", body_html="b")) is False


def test_mock_provider_delivers():
    from app.services.email_service import EmailMessage
    EmailService().deliver(EmailMessage(to=["x@example.com"], subject="s", body_html="b"))
