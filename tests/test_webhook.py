"""Tests for the HTTP webhook surface."""

import time
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from src.config import settings
from src.conversation.engine import ConversationEngine
from src.conversation.inbound import InboundRouter
from src.conversation.session_store import SessionStore
from src.inquiry.broker import InquiryBroker, InquiryStore
from src.prompts import messages
from src.schemas.inquiry_schema import Inquiry
from src.server import create_app, purge_expired, twiml_message

from tests.conftest import BUYER


@pytest.fixture
def client(router):
    with TestClient(create_app(router)) as c:
        yield c


def _post(client, sender: str, body: str):
    return client.post("/webhook", data={"From": sender, "Body": body})


def test_twiml_escapes_reply():
    xml = twiml_message("a < b & c")
    assert "<Message>a &lt; b &amp; c</Message>" in xml
    assert xml.startswith('<?xml version="1.0" encoding="UTF-8"?><Response>')


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["ok"] is True
    assert data["sessions"] == 0
    assert data["session_locks"] == 0
    assert data["inquiries"] == 0


def test_webhook_replies_with_twiml(client):
    resp = _post(client, f"whatsapp:{BUYER}", "hello")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/xml")
    assert "Welcome to the" in resp.text


def test_webhook_drives_full_intake(client, transport):
    for text in ("hello", "Sodium", "skip", "skip", "390013"):
        _post(client, f"whatsapp:{BUYER}", text)
    resp = _post(client, f"whatsapp:{BUYER}", "same")
    assert "We have sent your inquiry #" in resp.text
    assert len(transport.outbox) == 2
    assert client.get("/health").json()["inquiries"] == 1


def test_webhook_without_sender(client):
    resp = client.post("/webhook", data={"Body": "hello"})
    assert resp.status_code == 200
    assert messages.GENERIC_ERROR in resp.text


def test_webhook_supplier_reply(client):
    resp = _post(client, "whatsapp:+919825000001", "Quote for #999: Rs 1")
    assert messages.REPLY_INQUIRY_NOT_FOUND in resp.text


def test_health_reports_no_locks_after_goodbye(client):
    _post(client, f"whatsapp:{BUYER}", "hello")
    assert client.get("/health").json()["session_locks"] == 1
    _post(client, f"whatsapp:{BUYER}", "stop")
    data = client.get("/health").json()
    assert data["sessions"] == 0
    assert data["session_locks"] == 0


class TestSweep:
    def _router(self, matcher, dispatcher, transport) -> InboundRouter:
        broker = InquiryBroker(transport, store=InquiryStore(retention_hours=1))
        store = SessionStore(idle_timeout_minutes=30)
        return InboundRouter(ConversationEngine(matcher, broker, dispatcher, store=store), broker)

    def test_purge_expired_drops_idle_sessions_and_old_inquiries(
        self, matcher, dispatcher, transport
    ):
        router = self._router(matcher, dispatcher, transport)
        stale = datetime.now(timezone.utc) - timedelta(hours=2)
        router.engine.store.create("+911").touched_at = stale
        router.engine.store.create("+912")
        router.broker.store.add(Inquiry(inquiry_id="1", buyer="+911", created_at=stale))
        router.broker.store.add(Inquiry(inquiry_id="2", buyer="+912"))

        assert purge_expired(router) == (1, 1)
        assert "+912" in router.engine.store
        assert router.broker.store.get("2") is not None

    def test_sweeper_runs_while_serving(self, monkeypatch, router):
        session = replace(settings.session, sweep_interval_sec=0.01)
        monkeypatch.setattr("src.server.settings", replace(settings, session=session))
        sweeps: list[InboundRouter] = []

        def record(inbound):
            sweeps.append(inbound)
            return 0, 0

        monkeypatch.setattr("src.server.purge_expired", record)
        with TestClient(create_app(router)):
            deadline = time.monotonic() + 2
            while not sweeps and time.monotonic() < deadline:
                time.sleep(0.02)
        assert sweeps
        assert sweeps[0] is router
