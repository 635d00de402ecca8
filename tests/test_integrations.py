"""
Tests for the n8n onboarding and log import endpoints.
"""
from dataclasses import replace
from datetime import datetime

import pytest

from app.api.routes.users import get_email_service
from app.core.config import get_settings
from app.core.security import verify_password
from app.db.models.health_log import ErectileLog, PSALog, UrinaryLog
from app.db.models.signup_status import SignupStatus
from app.db.models.user import UserProfile
from app.main import app
from app.services.log_import_service import parse_log_date
from tests.conftest import N8N_SECRET_KEY, RecordingEmailService

AUTH = {"Authorization": f"Bearer {N8N_SECRET_KEY}"}
CLINIC = "12345678000199"


@pytest.fixture
def staged(db):
    record = SignupStatus(
        phone_number="5511999998888",
        clinic_id=CLINIC,
        email="whatsapp.user@example.com",
        name="Paciente WhatsApp",
        cpf="11122233344",
    )
    db.add(record)
    db.commit()
    return record


def test_requests_without_secret_are_unauthorized(client):
    response = client.post("/integrations/signups", json={"phoneNumber": "+5511999998888", "clinicId": CLINIC})

    assert response.status_code == 401


def test_requests_with_wrong_secret_are_unauthorized(client):
    response = client.post(
        "/integrations/signups",
        json={"phoneNumber": "+5511999998888", "clinicId": CLINIC},
        headers={"Authorization": "Bearer wrong"},
    )

    assert response.status_code == 401


def test_missing_secret_configuration_is_server_error(client, settings):
    app.dependency_overrides[get_settings] = lambda: replace(settings, n8n_secret_key=None)

    response = client.post("/integrations/signups", json={"phoneNumber": "+55", "clinicId": CLINIC}, headers=AUTH)

    assert response.status_code == 500


def test_stage_signup_strips_plus(client, db):
    response = client.post(
        "/integrations/signups",
        json={"phoneNumber": "+5511999998888", "clinicId": CLINIC, "email": "a@example.com", "name": "A"},
        headers=AUTH,
    )

    assert response.status_code == 201
    record = db.query(SignupStatus).filter(SignupStatus.phone_number == "5511999998888").first()
    assert record is not None
    assert record.clinic_id == CLINIC


def test_create_user_from_staging(client, db, staged, email_service):
    response = client.post("/integrations/users", json={"phoneNumber": "+5511999998888"}, headers=AUTH)

    assert response.status_code == 201
    data = response.json()
    assert data["emailSent"] is True

    user = db.query(UserProfile).filter(UserProfile.uid == data["uid"]).first()
    assert user.email == "whatsapp.user@example.com"
    assert user.clinic_id == CLINIC
    assert user.role == "user"
    assert user.subscription_status == "free"

    sent = email_service.sent[0]
    assert sent["to"] == "whatsapp.user@example.com"
    password = sent["text"].split("Senha provisória: ")[1].strip()
    assert len(password) == 10
    assert password.isalnum() and password == password.lower()
    assert verify_password(password, user.password_hash)


def test_user_kept_when_password_email_fails(client, db, settings, staged):
    app.dependency_overrides[get_email_service] = lambda: RecordingEmailService(settings, fail=True)

    response = client.post("/integrations/users", json={"phoneNumber": "5511999998888"}, headers=AUTH)

    assert response.status_code == 201
    assert response.json()["emailSent"] is False
    assert db.query(UserProfile).filter(UserProfile.email == "whatsapp.user@example.com").count() == 1


def test_create_user_without_staging(client):
    response = client.post("/integrations/users", json={"phoneNumber": "+5511000000000"}, headers=AUTH)

    assert response.status_code == 404


def test_create_user_with_incomplete_staging(client, db, staged):
    staged.email = None
    db.commit()

    response = client.post("/integrations/users", json={"phoneNumber": "+5511999998888"}, headers=AUTH)

    assert response.status_code == 400


def test_create_user_duplicate_email(client, staged, make_user):
    make_user(email="whatsapp.user@example.com")

    response = client.post("/integrations/users", json={"phoneNumber": "+5511999998888"}, headers=AUTH)

    assert response.status_code == 409


def test_import_logs(client, db, make_user):
    user = make_user(email="patient@example.com")

    response = client.post(
        "/integrations/logs",
        json={
            "userId": user.uid,
            "logs": {
                "urinaryLogs": [
                    {"date": "2024-03-10", "urgency": True, "lossGrams": 12.5, "padChanges": 3},
                    {"date": 20240311, "urgency": False},
                ],
                "erectileLogs": [{"date": "2024-03-10T22:15:00Z", "erectionQuality": "good"}],
                "psaLogs": [{"date": "2024-02-01", "psaValue": 0.02}],
            },
        },
        headers=AUTH,
    )

    assert response.status_code == 200
    assert response.json() == {"status": "success", "imported": 3}
    urinary = db.query(UrinaryLog).filter(UrinaryLog.user_uid == user.uid).all()
    assert len(urinary) == 1
    assert urinary[0].date == datetime(2024, 3, 10, 12, 0, 0)
    assert urinary[0].pad_changes == 3
    assert db.query(ErectileLog).one().date == datetime(2024, 3, 10, 12, 0, 0)
    assert db.query(PSALog).one().psa_value == 0.02


def test_import_without_valid_logs(client, make_user):
    user = make_user(email="patient@example.com")

    response = client.post(
        "/integrations/logs",
        json={"userId": user.uid, "logs": {"urinaryLogs": [{"urgency": True}]}},
        headers=AUTH,
    )

    assert response.status_code == 400
    assert response.json() == {"status": "no_logs"}


def test_import_for_unknown_user(client):
    response = client.post(
        "/integrations/logs",
        json={"userId": "missing", "logs": {"psaLogs": [{"date": "2024-01-01", "psaValue": 1.0}]}},
        headers=AUTH,
    )

    assert response.status_code == 404


@pytest.mark.parametrize("value,expected", [
    ("2024-03-10", datetime(2024, 3, 10, 12)),
    ("2024-03-10T23:59:59-03:00", datetime(2024, 3, 10, 12)),
    ("2024-02-30", None),
    ("10/03/2024", None),
    (None, None),
    (20240310, None),
])
def test_parse_log_date(value, expected):
    assert parse_log_date(value) == expected
