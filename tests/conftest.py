"""
Shared fixtures: in-memory database, test settings and fake gateways.
"""
import hashlib
import hmac
import json
import os
import time

# Environment defaults must be in place before the app is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.routes.billing import get_asaas_client
from app.api.routes.users import get_email_service
from app.core.auth_dependency import get_db
from app.core.config import Settings, get_settings
from app.core.exceptions import EmailDeliveryError
from app.core.security import create_user_token
from app.db.base import Base
from app.main import app
from app.services.asaas_service import AsaasClient
from app.services.email_service import EmailService
from app.services.user_service import initialize_profile

TEST_DATABASE_URL = "sqlite:///:memory:"
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

STRIPE_WEBHOOK_SECRET = "whsec_test_secret"
ASAAS_WEBHOOK_TOKEN = "asaas-test-token"
N8N_SECRET_KEY = "n8n-test-secret"


@pytest.fixture
def settings():
    return Settings(
        database_url=TEST_DATABASE_URL,
        secret_key="test-secret-key",
        frontend_url="http://frontend.test",
        stripe_secret_key="sk_test_123",
        stripe_webhook_secret=STRIPE_WEBHOOK_SECRET,
        asaas_api_key="asaas_test_key",
        asaas_api_url="https://asaas.test/api/v3",
        asaas_webhook_token=ASAAS_WEBHOOK_TOKEN,
        n8n_secret_key=N8N_SECRET_KEY,
    )


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=test_engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


class RecordingEmailService(EmailService):
    """Dev-mode email service that remembers what it was asked to send."""

    def __init__(self, settings: Settings, fail: bool = False):
        super().__init__(settings)
        self.fail = fail
        self.sent = []

    def send(self, to, subject, html_body, text_body, tag=None):
        if self.fail:
            raise EmailDeliveryError("Postmark unavailable")
        self.sent.append({"to": to, "subject": subject, "html": html_body, "text": text_body, "tag": tag})
        return None


@pytest.fixture
def email_service(settings):
    return RecordingEmailService(settings)


class AsaasStub:
    """Records Asaas API calls and answers them through httpx.MockTransport."""

    def __init__(self):
        self.requests = []
        self.fail_with = None
        self.customer_id = "cus_asaas_1"
        self.subscription_id = "sub_asaas_1"
        self.checkout_url = "https://sandbox.asaas.com/c/abc123"

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else {}
        self.requests.append((request.url.path, request.headers.get("access_token"), body))
        if self.fail_with is not None:
            return httpx.Response(self.fail_with, json={"errors": [{"code": "invalid", "description": "Gateway says no"}]})
        if request.url.path.endswith("/customers"):
            return httpx.Response(200, json={"id": self.customer_id})
        if request.url.path.endswith("/subscriptions"):
            return httpx.Response(200, json={"id": self.subscription_id, "checkoutUrl": self.checkout_url})
        return httpx.Response(404, json={})

    def paths(self):
        return [path for path, _, _ in self.requests]


@pytest.fixture
def asaas_stub():
    return AsaasStub()


@pytest.fixture
def asaas_client(settings, asaas_stub):
    http_client = httpx.Client(
        base_url=settings.asaas_api_url,
        transport=httpx.MockTransport(asaas_stub.handler),
    )
    return AsaasClient(settings, http_client=http_client)


@pytest.fixture
def client(db, settings, email_service, asaas_client):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_email_service] = lambda: email_service
    app.dependency_overrides[get_asaas_client] = lambda: asaas_client
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make_user(email="patient@example.com", password="secret123", display_name="Test User", **fields):
        return initialize_profile(db, email=email, password=password, display_name=display_name, **fields)

    return _make_user


@pytest.fixture
def auth_headers(settings):
    def _auth_headers(profile):
        return {"Authorization": f"Bearer {create_user_token(profile, settings)}"}

    return _auth_headers


def stripe_signature_header(payload: str, secret: str = STRIPE_WEBHOOK_SECRET, timestamp: int = None) -> str:
    """Build a Stripe-Signature header the way Stripe signs webhook deliveries."""
    timestamp = timestamp or int(time.time())
    signed = f"{timestamp}.{payload}".encode("utf-8")
    signature = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"
