"""
Tests for the Asaas webhook: token gate, status reconciliation and replay.
"""
import asyncio
from dataclasses import replace

import pytest
from sqlalchemy import event

from app.core.config import get_settings
from app.main import app
from app.db.models.user import UserProfile
from app.services.billing_service import (
    NOT_FOUND,
    UNCHANGED,
    UNKNOWN_STATUS,
    UPDATED,
    find_profile_by_asaas_subscription,
    reconcile_asaas_event,
)
from app.schemas.webhooks import AsaasWebhookEvent
from tests.conftest import ASAAS_WEBHOOK_TOKEN

URL = "/billing/webhook/asaas"
HEADERS = {"asaas-webhook-token": ASAAS_WEBHOOK_TOKEN}


@pytest.fixture
def profile_updates():
    """Count UPDATE statements issued for subscriber profiles."""
    updates = []

    def record(mapper, connection, target):
        updates.append(target.uid)

    event.listen(UserProfile, "before_update", record)
    try:
        yield updates
    finally:
        event.remove(UserProfile, "before_update", record)


@pytest.fixture
def subscriber(db, make_user):
    profile = make_user(email="doctor@example.com")
    profile.subscription_status = "pending"
    profile.asaas_subscription_id = "sub_123"
    db.commit()
    return profile


def asaas_event(status, subscription_id="sub_123", name="PAYMENT_CONFIRMED"):
    return {"event": name, "subscription": {"id": subscription_id, "status": status}}


def test_confirmed_payment_activates_pending_subscriber(client, db, subscriber):
    response = client.post(URL, json=asaas_event("CONFIRMED"), headers=HEADERS)

    assert response.status_code == 200
    assert response.text == "OK"
    db.refresh(subscriber)
    assert subscriber.subscription_status == "active"


def test_replayed_event_writes_once(client, db, subscriber, profile_updates):
    first = client.post(URL, json=asaas_event("CONFIRMED"), headers=HEADERS)
    second = client.post(URL, json=asaas_event("CONFIRMED"), headers=HEADERS)

    assert first.status_code == 200
    assert second.status_code == 200
    db.refresh(subscriber)
    assert subscriber.subscription_status == "active"
    assert profile_updates == [subscriber.uid]


def test_overdue_moves_active_to_past_due(client, db, subscriber):
    subscriber.subscription_status = "active"
    db.commit()

    response = client.post(URL, json=asaas_event("OVERDUE", name="PAYMENT_OVERDUE"), headers=HEADERS)

    assert response.status_code == 200
    db.refresh(subscriber)
    assert subscriber.subscription_status == "past_due"


def test_unknown_status_leaves_status_unchanged(client, db, subscriber, profile_updates):
    response = client.post(URL, json=asaas_event("WEIRD_STATUS"), headers=HEADERS)

    assert response.status_code == 200
    db.refresh(subscriber)
    assert subscriber.subscription_status == "pending"
    assert profile_updates == []


def test_unknown_subscription_is_acknowledged_without_write(client, db, subscriber, profile_updates):
    response = client.post(URL, json=asaas_event("CONFIRMED", subscription_id="sub_missing"), headers=HEADERS)

    assert response.status_code == 200
    assert response.text == "OK"
    assert profile_updates == []
    db.refresh(subscriber)
    assert subscriber.subscription_status == "pending"


@pytest.mark.parametrize("headers", [
    {},
    {"asaas-webhook-token": "wrong-token"},
    {"asaas-webhook-token": ""},
])
def test_bad_token_is_rejected_without_write(client, db, subscriber, profile_updates, headers):
    response = client.post(URL, json=asaas_event("CONFIRMED"), headers=headers)

    assert response.status_code == 403
    assert response.text == "Forbidden: invalid webhook token"
    assert profile_updates == []
    db.refresh(subscriber)
    assert subscriber.subscription_status == "pending"


def test_unconfigured_token_rejects_everything(client, db, settings, subscriber):
    app.dependency_overrides[get_settings] = lambda: replace(settings, asaas_webhook_token=None)

    response = client.post(URL, json=asaas_event("CONFIRMED"), headers=HEADERS)

    assert response.status_code == 403
    db.refresh(subscriber)
    assert subscriber.subscription_status == "pending"


@pytest.mark.parametrize("body", [
    {"event": "PAYMENT_CONFIRMED"},
    {"event": "PAYMENT_CONFIRMED", "subscription": {"id": "sub_123"}},
    {"event": "PAYMENT_CONFIRMED", "subscription": {"id": "", "status": "CONFIRMED"}},
    {"subscription": {"id": "sub_123", "status": "CONFIRMED"}},
])
def test_malformed_event_is_rejected(client, db, subscriber, body):
    response = client.post(URL, json=body, headers=HEADERS)

    assert response.status_code == 400
    assert response.text == "Bad Request: invalid event structure"
    db.refresh(subscriber)
    assert subscriber.subscription_status == "pending"


def test_non_json_body_is_rejected(client, subscriber):
    response = client.post(URL, content=b"not json", headers={**HEADERS, "Content-Type": "application/json"})

    assert response.status_code == 400


def test_processing_error_is_acknowledged(client, subscriber, monkeypatch):
    def explode(db, event):
        raise RuntimeError("database down")

    monkeypatch.setattr("app.api.routes.billing_webhook.reconcile_asaas_event", explode)

    response = client.post(URL, json=asaas_event("CONFIRMED"), headers=HEADERS)

    assert response.status_code == 200
    assert response.text == "OK (error processing subscription sub_123)"


def test_duplicate_subscription_updates_first_profile_only(db, make_user, caplog):
    first = make_user(email="first@example.com")
    second = make_user(email="second@example.com")
    for profile in (first, second):
        profile.asaas_subscription_id = "sub_dup"
        profile.subscription_status = "pending"
    db.commit()

    found = find_profile_by_asaas_subscription(db, "sub_dup")
    result = reconcile_asaas_event(db, AsaasWebhookEvent.model_validate(asaas_event("ACTIVE", subscription_id="sub_dup")))

    assert found is not None
    assert result.outcome == UPDATED
    assert result.uid == found.uid
    statuses = sorted(p.subscription_status for p in (first, second))
    assert statuses == ["active", "pending"]
    assert "linked to more than one user" in caplog.text


def test_reconcile_outcomes(db, subscriber):
    confirmed = AsaasWebhookEvent.model_validate(asaas_event("CONFIRMED"))

    assert reconcile_asaas_event(db, confirmed).outcome == UPDATED
    assert reconcile_asaas_event(db, confirmed).outcome == UNCHANGED
    assert reconcile_asaas_event(db, AsaasWebhookEvent.model_validate(asaas_event("WEIRD"))).outcome == UNKNOWN_STATUS
    missing = AsaasWebhookEvent.model_validate(asaas_event("CONFIRMED", subscription_id="nope"))
    assert reconcile_asaas_event(db, missing).outcome == NOT_FOUND


def test_reconciliation_runs_off_the_event_loop(client, db, subscriber, monkeypatch):
    seen = []

    def reconcile(db, event):
        try:
            asyncio.get_running_loop()
            seen.append("event loop")
        except RuntimeError:
            seen.append("worker thread")
        return reconcile_asaas_event(db, event)

    monkeypatch.setattr("app.api.routes.billing_webhook.reconcile_asaas_event", reconcile)

    response = client.post(URL, json=asaas_event("CONFIRMED"), headers=HEADERS)

    assert response.text == "OK"
    assert seen == ["worker thread"]
    db.refresh(subscriber)
    assert subscriber.subscription_status == "active"
