from __future__ import annotations

import json
from uuid import uuid4

import pytest

from app.config import settings
from app.models.company import MediaType

OWNER = "founder@example.com"
HEADERS = {"x-user-email": OWNER}


def _create_company(client, company_fields, headers=HEADERS):
    response = client.post("/api/company", json=company_fields, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def _upload(client, name="deck.pdf", media_type=MediaType.PDF.value, headers=HEADERS):
    return client.post(
        "/api/files",
        json={"name": name, "media_type": media_type, "size": 4096},
        headers=headers,
    )


def test_full_onboarding_flow_reaches_excellent_score(client, company_fields):
    company = _create_company(client, company_fields)
    assert company["owner_email"] == OWNER
    assert company["kyc_verified"] is False
    assert company["document_count"] == 0

    kyc = client.post("/api/kyc/verify", json={"email": OWNER})
    assert kyc.status_code == 200
    assert kyc.json()["verified"] is True

    linked = client.post("/api/financials/link", json={"token": "public-sandbox-token"}, headers=HEADERS)
    assert linked.status_code == 200
    assert linked.json()["financials_linked"] is True
    assert linked.json()["company"]["kyc_verified"] is True

    for name in ("deck.pdf", "model.xlsx", "pitch.pptx"):
        media_type = {
            "pdf": MediaType.PDF,
            "xlsx": MediaType.SPREADSHEET,
            "pptx": MediaType.PRESENTATION,
        }[name.rsplit(".", 1)[1]]
        assert _upload(client, name, media_type.value).status_code == 201

    score = client.get("/api/score", headers=HEADERS)
    assert score.status_code == 200
    body = score.json()
    assert body["score"] == 81
    assert body["recommendation"] == "Excellent! Your company is highly investable."
    assert body["breakdown"] == {"kyc": 30, "financials": 20, "documents": 25, "revenue": 6}
    assert body["reasons"][2] == "Documentation complete (3 files)"

    files = client.get("/api/files", headers=HEADERS)
    assert [item["name"] for item in files.json()] == ["deck.pdf", "model.xlsx", "pitch.pptx"]

    notifications = client.get("/api/notifications", headers=HEADERS).json()
    assert len(notifications) == 6
    assert notifications[-1]["message"] == 'Company profile "Acme Robotics" created'
    assert notifications[0]["message"] == 'File "pitch.pptx" uploaded successfully'


def test_missing_identity_header_is_rejected(client, company_fields, monkeypatch):
    monkeypatch.setattr(settings, "default_owner_email", None)

    response = client.post("/api/company", json=company_fields)

    assert response.status_code == 400
    assert response.json()["detail"] == "x-user-email header is required."


def test_configured_default_identity_applies_at_transport_boundary(client, company_fields, monkeypatch):
    monkeypatch.setattr(settings, "default_owner_email", "Demo@Example.com")

    _create_company(client, company_fields, headers={})

    assert client.get("/api/company", headers={"x-user-email": "demo@example.com"}).status_code == 200


def test_get_company_before_creation_is_not_found(client):
    response = client.get("/api/company", headers=HEADERS)

    assert response.status_code == 404
    assert response.json()["detail"] == "Company not found."


def test_steps_before_profile_exist_return_not_found(client):
    assert client.post("/api/kyc/verify", json={"email": OWNER}).status_code == 404
    assert client.post("/api/financials/link", json={"token": "t"}, headers=HEADERS).status_code == 404
    assert _upload(client).status_code == 404
    assert client.get("/api/score", headers=HEADERS).status_code == 404


def test_first_create_with_missing_fields_is_unprocessable(client):
    response = client.post("/api/company", json={"name": "Half Done"}, headers=HEADERS)

    assert response.status_code == 422
    assert "sector" in response.json()["detail"]


def test_negative_revenue_is_unprocessable(client, company_fields):
    response = client.post("/api/company", json={**company_fields, "revenue": -5}, headers=HEADERS)

    assert response.status_code == 422


def test_partial_update_keeps_other_fields(client, company_fields):
    _create_company(client, company_fields)

    response = client.post("/api/company", json={"targetRaise": 3_500_000}, headers=HEADERS)

    assert response.status_code == 201
    assert response.json()["target_raise"] == 3_500_000
    assert response.json()["name"] == "Acme Robotics"
    assert len(client.get("/api/notifications", headers=HEADERS).json()) == 1


def test_invalid_kyc_email_is_unprocessable(client):
    assert client.post("/api/kyc/verify", json={"email": "not-an-email"}).status_code == 422


def test_blank_financials_token_is_unprocessable(client, company_fields):
    _create_company(client, company_fields)

    response = client.post("/api/financials/link", json={"token": " "}, headers=HEADERS)

    assert response.status_code == 422


def test_disallowed_file_type_is_unprocessable(client, company_fields):
    _create_company(client, company_fields)

    response = _upload(client, "notes.txt", "text/plain")

    assert response.status_code == 422
    assert response.json()["detail"] == "Invalid file type. Only PDF, PPTX, and XLSX files are allowed."
    assert client.get("/api/files", headers=HEADERS).json() == []


def test_fresh_profile_score(client, company_fields):
    _create_company(client, company_fields)

    body = client.get("/api/score", headers=HEADERS).json()

    assert body["score"] == 6
    assert body["recommendation"] == "Early stage. Complete the onboarding steps to improve your score."
    assert body["reasons"][3] == "Revenue contribution: 6.3 points"


def test_mark_notification_read(client, company_fields):
    _create_company(client, company_fields)
    notification = client.get("/api/notifications", headers=HEADERS).json()[0]
    assert notification["read"] is False

    response = client.patch(f"/api/notifications/{notification['id']}/read", headers=HEADERS)

    assert response.status_code == 204
    assert client.get("/api/notifications", headers=HEADERS).json()[0]["read"] is True


def test_mark_unknown_notification_read_is_not_found(client):
    response = client.patch(f"/api/notifications/{uuid4()}/read", headers=HEADERS)

    assert response.status_code == 404


def test_other_owner_cannot_acknowledge_notification(client, company_fields):
    _create_company(client, company_fields)
    notification = client.get("/api/notifications", headers=HEADERS).json()[0]

    response = client.patch(
        f"/api/notifications/{notification['id']}/read",
        headers={"x-user-email": "intruder@example.com"},
    )

    assert response.status_code == 404


def test_mark_all_notifications_read(client, company_fields):
    _create_company(client, company_fields)
    _upload(client)

    response = client.patch("/api/notifications/read-all", headers=HEADERS)

    assert response.status_code == 204
    assert all(item["read"] for item in client.get("/api/notifications", headers=HEADERS).json())


def test_health_endpoints(client):
    health = client.get("/health")
    assert health.status_code == 200
    assert health.json()["status"] == "healthy"

    root = client.get("/")
    assert root.status_code == 200
    assert settings.app_name in root.json()["message"]


@pytest.mark.parametrize("field", ["targetRaise", "revenue"])
def test_overflowing_json_amount_is_unprocessable(client, company_fields, field):
    amounts = {"targetRaise": "2000000", "revenue": "250000", field: "1e999"}
    raw = (
        f'{{"name": {json.dumps(company_fields["name"])}, "sector": {json.dumps(company_fields["sector"])}, '
        f'"targetRaise": {amounts["targetRaise"]}, "revenue": {amounts["revenue"]}}}'
    )

    response = client.post(
        "/api/company",
        content=raw,
        headers={**HEADERS, "content-type": "application/json"},
    )

    assert response.status_code == 422
    assert "input" not in response.json()["detail"][0]
    assert client.get("/api/company", headers=HEADERS).status_code == 404


def test_infinite_amount_update_is_unprocessable(client, company_fields):
    _create_company(client, company_fields)

    response = client.post(
        "/api/company",
        content='{"revenue": Infinity}',
        headers={**HEADERS, "content-type": "application/json"},
    )

    assert response.status_code == 422
    assert client.get("/api/company", headers=HEADERS).json()["revenue"] == 250_000


def test_overlong_company_name_is_unprocessable(client, company_fields):
    response = client.post("/api/company", json={**company_fields, "name": "n" * 256}, headers=HEADERS)

    assert response.status_code == 422


@pytest.mark.parametrize(
    "overrides",
    [
        {"size": 2**70},
        {"name": "d" * 513},
        {"storage_locator": "l" * 1025},
        {"owner": "someone-else"},
    ],
)
def test_out_of_range_file_metadata_is_unprocessable(client, company_fields, overrides):
    _create_company(client, company_fields)
    body = {"name": "deck.pdf", "media_type": MediaType.PDF.value, "size": 10, **overrides}

    response = client.post("/api/files", json=body, headers=HEADERS)

    assert response.status_code == 422
    assert client.get("/api/files", headers=HEADERS).json() == []
