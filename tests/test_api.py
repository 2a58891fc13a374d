"""Tests for the training payment HTTP endpoints."""

from __future__ import annotations

import httpx
import pytest
import pytest_asyncio

from prepwise_payments.api.router import get_email_service
from prepwise_payments.database.engine import get_session
from prepwise_payments.main import app


@pytest_asyncio.fixture
async def client(session_factory, trainings, email_service):
    """HTTP client wired to the app with the test database and mocked email."""

    async def _test_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = _test_session
    app.dependency_overrides[get_email_service] = lambda: email_service
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


def _sent_code(email_service) -> str:
    return email_service.send_payment_code.await_args.kwargs["code"]


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_get_training(client):
    resp = await client.get("/api/trainings/comm-201")
    assert resp.status_code == 200
    body = resp.json()
    assert body["trainingType"] == "soft skills"
    assert body["availableSpots"] == 5
    assert body["isFullyBooked"] is False

    resp = await client.get("/api/trainings/missing")
    assert resp.status_code == 404
    assert resp.json()["success"] is False


@pytest.mark.asyncio
async def test_send_then_verify(client, email_service, send_json, verify_json):
    resp = await client.post("/api/trainings/send-payment-otp", json=send_json())
    assert resp.status_code == 200
    body = resp.json()
    assert body == {
        "success": True,
        "message": "Payment verification code sent to your email",
        "expiresInSeconds": 300,
    }
    code = _sent_code(email_service)
    assert code not in resp.text

    resp = await client.post("/api/trainings/verify-payment-otp", json=verify_json(code))
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["data"]["confirmationCode"].startswith("TRN")
    assert body["data"]["trainingLink"] == "https://meet.example.com/py-101"
    assert body["data"]["availableSpots"] == 9

    resp = await client.post("/api/trainings/verify-payment-otp", json=verify_json(code))
    assert resp.status_code == 409
    assert resp.json() == {
        "success": False,
        "message": "This verification code has already been used.",
        "code": "already_consumed",
    }


@pytest.mark.asyncio
async def test_wrong_code_counts_down_to_lockout(client, email_service, send_json, verify_json):
    await client.post("/api/trainings/send-payment-otp", json=send_json())
    code = _sent_code(email_service)
    wrong = "000000" if code != "000000" else "111111"

    resp = await client.post("/api/trainings/verify-payment-otp", json=verify_json(wrong))
    assert resp.status_code == 400
    assert resp.json()["code"] == "invalid_code"
    assert "2 attempts remaining" in resp.json()["message"]

    await client.post("/api/trainings/verify-payment-otp", json=verify_json(wrong))
    resp = await client.post("/api/trainings/verify-payment-otp", json=verify_json(wrong))
    assert resp.status_code == 429
    assert resp.json()["code"] == "attempts_exceeded"

    resp = await client.post("/api/trainings/verify-payment-otp", json=verify_json(code))
    assert resp.json()["code"] == "no_active_challenge"


@pytest.mark.asyncio
async def test_malformed_code_is_invalid_input(client, verify_json):
    resp = await client.post("/api/trainings/verify-payment-otp", json=verify_json("12345"))
    assert resp.status_code == 400
    assert resp.json()["code"] == "invalid_input"


@pytest.mark.asyncio
async def test_schema_violation_is_invalid_input(client, send_json):
    body = send_json()
    body["registrationData"]["participantInfo"]["affiliation"] = "astronaut"
    resp = await client.post("/api/trainings/send-payment-otp", json=body)
    assert resp.status_code == 400
    assert resp.json()["success"] is False
    assert resp.json()["code"] == "invalid_input"


@pytest.mark.asyncio
async def test_edited_payload_does_not_leak_into_next_request(client, send_json):
    body = send_json()
    body["registrationData"]["participantInfo"]["affiliation"] = "astronaut"
    assert send_json()["registrationData"]["participantInfo"]["affiliation"] == "undergraduate"

    resp = await client.post("/api/trainings/send-payment-otp", json=send_json())
    assert resp.status_code == 200
    assert resp.json()["success"] is True


@pytest.mark.asyncio
async def test_delivery_failure_is_503(client, email_service, send_json):
    email_service.send_payment_code.side_effect = OSError("smtp unreachable")
    resp = await client.post("/api/trainings/send-payment-otp", json=send_json())
    assert resp.status_code == 503
    assert resp.json()["code"] == "delivery_failed"


@pytest.mark.asyncio
async def test_missing_training_on_send(client, send_json):
    resp = await client.post(
        "/api/trainings/send-payment-otp", json=send_json(training_id="missing")
    )
    assert resp.status_code == 404
    assert resp.json()["message"] == "Training not found"
