"""
Tests for checkout initiation with Asaas and Stripe.
"""
from dataclasses import replace
from types import SimpleNamespace

import httpx
import pytest
import stripe

from app.api.routes.billing import get_asaas_client
from app.core.exceptions import PaymentGatewayError
from app.main import app
from app.services.asaas_service import AsaasClient
from app.services.checkout_service import find_or_create_asaas_customer, get_or_create_stripe_customer
from app.services.stripe_service import StripeGateway

CHECKOUT_FAILED = "Could not process the subscription. Please try again later."


@pytest.fixture
def doctor(db, make_user):
    return make_user(email="doctor@example.com", display_name="Dr. Ana", role="doctor", cpf="12345678901")


@pytest.fixture
def stripe_api(monkeypatch):
    """Fake Stripe customer and checkout session creation."""
    calls = SimpleNamespace(customers=[], sessions=[], fail=False)

    def create_customer(**kwargs):
        if calls.fail:
            raise stripe.APIConnectionError("Network down")
        calls.customers.append(kwargs)
        return SimpleNamespace(id=f"cus_stripe_{len(calls.customers)}")

    def create_session(**kwargs):
        calls.sessions.append(kwargs)
        return SimpleNamespace(id="cs_test_1", url="https://checkout.stripe.com/c/pay/cs_test_1")

    monkeypatch.setattr(stripe.Customer, "create", create_customer)
    monkeypatch.setattr(stripe.checkout.Session, "create", create_session)
    return calls


# ============================================
# Asaas
# ============================================

def test_asaas_subscription_marks_subscriber_pending(client, db, doctor, auth_headers, asaas_stub):
    response = client.post(
        "/billing/asaas/subscription",
        json={"planId": "plan_pro"},
        headers=auth_headers(doctor),
    )

    assert response.status_code == 200
    assert response.json() == {"checkoutUrl": asaas_stub.checkout_url}
    db.refresh(doctor)
    assert doctor.subscription_status == "pending"
    assert doctor.subscription_plan == "plan_pro"
    assert doctor.asaas_customer_id == asaas_stub.customer_id
    assert doctor.asaas_subscription_id == asaas_stub.subscription_id

    assert asaas_stub.paths() == ["/api/v3/customers", "/api/v3/subscriptions"]
    _, token, subscription_body = asaas_stub.requests[1]
    assert token == "asaas_test_key"
    assert subscription_body["customer"] == asaas_stub.customer_id
    assert subscription_body["plan"] == "plan_pro"
    assert subscription_body["billingType"] == "UNDEFINED"


def test_asaas_customer_is_created_once(db, doctor, asaas_client, asaas_stub):
    first = find_or_create_asaas_customer(db, doctor, asaas_client)
    second = find_or_create_asaas_customer(db, doctor, asaas_client)

    assert first == second == asaas_stub.customer_id
    assert asaas_stub.paths() == ["/api/v3/customers"]
    db.refresh(doctor)
    assert doctor.asaas_customer_id == first


def test_asaas_existing_customer_is_reused(client, db, doctor, auth_headers, asaas_stub):
    doctor.asaas_customer_id = "cus_existing"
    db.commit()

    response = client.post(
        "/billing/asaas/subscription",
        json={"planId": "plan_pro", "billingType": "PIX"},
        headers=auth_headers(doctor),
    )

    assert response.status_code == 200
    assert asaas_stub.paths() == ["/api/v3/subscriptions"]
    assert asaas_stub.requests[0][2]["customer"] == "cus_existing"
    assert asaas_stub.requests[0][2]["billingType"] == "PIX"


def test_asaas_gateway_error_is_opaque(client, db, doctor, auth_headers, asaas_stub):
    asaas_stub.fail_with = 400

    response = client.post(
        "/billing/asaas/subscription",
        json={"planId": "plan_pro"},
        headers=auth_headers(doctor),
    )

    assert response.status_code == 500
    assert response.json() == {"detail": CHECKOUT_FAILED}
    assert "Gateway says no" not in response.text
    db.refresh(doctor)
    assert doctor.subscription_status == "free"
    assert doctor.asaas_subscription_id is None


def test_asaas_missing_plan_is_rejected(client, doctor, auth_headers, asaas_stub):
    response = client.post("/billing/asaas/subscription", json={}, headers=auth_headers(doctor))

    assert response.status_code == 422
    assert asaas_stub.requests == []


def test_asaas_requires_authentication(client, asaas_stub):
    response = client.post("/billing/asaas/subscription", json={"planId": "plan_pro"})

    assert response.status_code == 401
    assert asaas_stub.requests == []


def test_asaas_unknown_profile_is_404(client, db, doctor, auth_headers, asaas_stub):
    headers = auth_headers(doctor)
    db.delete(doctor)
    db.commit()

    response = client.post("/billing/asaas/subscription", json={"planId": "plan_pro"}, headers=headers)

    assert response.status_code == 404
    assert asaas_stub.requests == []


def test_asaas_connections_are_closed_after_each_request(client, doctor, auth_headers, asaas_stub, monkeypatch):
    app.dependency_overrides.pop(get_asaas_client)
    real_client = httpx.Client
    opened = []

    def make_client(**kwargs):
        http_client = real_client(transport=httpx.MockTransport(asaas_stub.handler), **kwargs)
        opened.append(http_client)
        return http_client

    monkeypatch.setattr("app.services.asaas_service.httpx.Client", make_client)

    for _ in range(3):
        response = client.post("/billing/asaas/subscription", json={"planId": "plan_pro"}, headers=auth_headers(doctor))
        assert response.status_code == 200

    assert len(opened) == 3
    assert [http_client.is_closed for http_client in opened] == [True, True, True]


def test_asaas_client_closes_only_its_own_connections(settings):
    with AsaasClient(settings) as owned:
        pass
    assert owned._client.is_closed

    injected = httpx.Client(base_url=settings.asaas_api_url)
    with AsaasClient(settings, http_client=injected):
        pass
    assert not injected.is_closed
    injected.close()


# ============================================
# Stripe
# ============================================

def test_stripe_checkout_creates_customer_and_session(client, db, doctor, auth_headers, stripe_api):
    response = client.post(
        "/billing/stripe/checkout",
        json={"planId": "price_123_plano_pro"},
        headers=auth_headers(doctor),
    )

    assert response.status_code == 200
    assert response.json() == {
        "sessionId": "cs_test_1",
        "checkoutUrl": "https://checkout.stripe.com/c/pay/cs_test_1",
    }
    assert stripe_api.customers[0]["metadata"] == {"user_uid": doctor.uid}
    session = stripe_api.sessions[0]
    assert session["customer"] == "cus_stripe_1"
    assert session["mode"] == "subscription"
    assert session["line_items"] == [{"price": "price_123_plano_pro", "quantity": 1}]
    assert session["success_url"] == "http://frontend.test/dashboard/success"
    assert session["cancel_url"] == "http://frontend.test/profile"
    assert session["api_key"] == "sk_test_123"

    db.refresh(doctor)
    assert doctor.stripe_customer_id == "cus_stripe_1"
    assert doctor.subscription_status == "free"


def test_stripe_checkout_uses_custom_urls(client, doctor, auth_headers, stripe_api):
    response = client.post(
        "/billing/stripe/checkout",
        json={
            "planId": "price_123_plano_pro",
            "successUrl": "https://app.test/ok",
            "cancelUrl": "https://app.test/back",
        },
        headers=auth_headers(doctor),
    )

    assert response.status_code == 200
    assert stripe_api.sessions[0]["success_url"] == "https://app.test/ok"
    assert stripe_api.sessions[0]["cancel_url"] == "https://app.test/back"


def test_stripe_customer_is_created_once(db, doctor, settings, stripe_api):
    gateway = StripeGateway(settings)

    first = get_or_create_stripe_customer(db, doctor, gateway)
    second = get_or_create_stripe_customer(db, doctor, gateway)

    assert first == second == "cus_stripe_1"
    assert len(stripe_api.customers) == 1


def test_stripe_gateway_error_is_opaque(client, db, doctor, auth_headers, stripe_api):
    stripe_api.fail = True

    response = client.post(
        "/billing/stripe/checkout",
        json={"planId": "price_123_plano_pro"},
        headers=auth_headers(doctor),
    )

    assert response.status_code == 500
    assert response.json() == {"detail": CHECKOUT_FAILED}
    assert "Network down" not in response.text
    db.refresh(doctor)
    assert doctor.stripe_customer_id is None


def test_stripe_without_api_key_fails(db, doctor, settings):
    gateway = StripeGateway(replace(settings, stripe_secret_key=None))

    with pytest.raises(PaymentGatewayError):
        get_or_create_stripe_customer(db, doctor, gateway)


def test_current_subscription(client, db, doctor, auth_headers):
    doctor.subscription_status = "active"
    doctor.subscription_plan = "price_123_plano_pro"
    doctor.patient_limit = 50
    db.commit()

    response = client.get("/billing/subscription", headers=auth_headers(doctor))

    assert response.status_code == 200
    assert response.json() == {"status": "active", "plan": "price_123_plano_pro", "patientLimit": 50}
