import pytest
from django.core import mail
from django.core.cache import cache
from rest_framework.throttling import ScopedRateThrottle

from showcase import tasks

pytestmark = pytest.mark.django_db

MESSAGE = {
    "name": "Ada Lovelace",
    "email": "ada@example.com",
    "subject": "Collaboration",
    "message": "Let's build an analytical engine.",
}


class FakeResponse:
    def __init__(self, status_code, text="OK"):
        self.status_code = status_code
        self.text = text


@pytest.fixture
def emailjs(settings):
    settings.EMAILJS_SERVICE_ID = "service_1"
    settings.EMAILJS_TEMPLATE_ID = "template_1"
    settings.EMAILJS_PUBLIC_KEY = "public_1"
    return settings


def test_contact_sends_email_and_reports_success(api_client):
    resp = api_client.post("/api/contact", MESSAGE, format="json")
    assert resp.status_code == 202
    assert resp.json()["detail"] == "Message sent successfully!"

    assert len(mail.outbox) == 1
    sent = mail.outbox[0]
    assert sent.subject == "Portfolio contact from Ada Lovelace: Collaboration"
    assert sent.to == ["owner@example.com"]
    assert "ada@example.com" in sent.body
    assert "analytical engine" in sent.body


def test_contact_subject_is_optional(api_client):
    data = {k: v for k, v in MESSAGE.items() if k != "subject"}
    resp = api_client.post("/api/contact", data, format="json")
    assert resp.status_code == 202
    assert mail.outbox[0].subject == "Portfolio contact from Ada Lovelace"


def test_contact_rejects_invalid_input(api_client):
    resp = api_client.post("/api/contact", {**MESSAGE, "email": "not-an-email"}, format="json")
    assert resp.status_code == 400
    assert "email" in resp.json()
    assert mail.outbox == []


def test_contact_uses_emailjs_when_configured(api_client, emailjs, monkeypatch):
    calls = []

    def fake_post(url, json=None, timeout=None):
        calls.append((url, json))
        return FakeResponse(200)

    monkeypatch.setattr(tasks.requests, "post", fake_post)
    resp = api_client.post("/api/contact", MESSAGE, format="json")

    assert resp.status_code == 202
    assert mail.outbox == []
    url, payload = calls[0]
    assert url == tasks.EMAILJS_SEND_URL
    assert payload["service_id"] == "service_1"
    assert payload["template_id"] == "template_1"
    assert payload["user_id"] == "public_1"
    assert payload["template_params"] == {
        "name": "Ada Lovelace",
        "email": "ada@example.com",
        "subject": "Collaboration",
        "message": "Let's build an analytical engine.",
    }
    assert "accessToken" not in payload


def test_contact_delivery_failure_returns_generic_error(api_client, emailjs, monkeypatch, caplog):
    monkeypatch.setattr(tasks.requests, "post", lambda *a, **k: FakeResponse(400, "bad template"))
    resp = api_client.post("/api/contact", MESSAGE, format="json")

    assert resp.status_code == 503
    assert resp.json()["detail"] == "Failed to send your message. Please try again later."
    assert "could not be delivered" in caplog.text


@pytest.fixture
def strict_contact_rate(monkeypatch):
    monkeypatch.setitem(ScopedRateThrottle.THROTTLE_RATES, "contact", "1/minute")
    cache.clear()
    yield
    cache.clear()


def test_contact_is_rate_limited(api_client, strict_contact_rate):
    statuses = [api_client.post("/api/contact", MESSAGE, format="json").status_code for _ in range(3)]
    assert statuses == [202, 429, 429]
    assert len(mail.outbox) == 1
