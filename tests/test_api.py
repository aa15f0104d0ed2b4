import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from certichain.api import deps
from certichain.core.security_password import hash_password
from certichain.core.tokens import create_access_token
from certichain.crud import audit
from certichain.db.session import SessionLocal
from certichain.main import api
from certichain.models.audit import AuditLog
from certichain.models.ledger_event import LedgerEventRow

from conftest import INSTITUTION, JANE, OTHER_INSTITUTION, STUDENT


@pytest.fixture
def api_settings(settings):
    return settings.model_copy(update={"OPERATOR_PASSWORD_HASH": hash_password("s3cret"), "PUBLIC_BASE_URL": ""})


def _client(ledger, api_settings):
    api.dependency_overrides[deps.get_settings] = lambda: api_settings
    api.dependency_overrides[deps.get_ledger] = lambda: ledger
    api.dependency_overrides[deps.get_metadata_store] = lambda: None
    return TestClient(api)


@pytest.fixture
def client(ledger, api_settings):
    yield _client(ledger, api_settings)
    api.dependency_overrides.clear()


@pytest.fixture
def owner_client(owner_ledger, api_settings):
    yield _client(owner_ledger, api_settings)
    api.dependency_overrides.clear()


@pytest.fixture
def auth(api_settings):
    token = create_access_token(sub="operator", settings=api_settings)
    return {"Authorization": f"Bearer {token}"}


def _issue_body(**overrides):
    return {
        "subject_address": STUDENT,
        "subject_name": JANE["name"],
        "subject_email": JANE["email"],
        "course": JANE["course"],
        "enrollment_date": JANE["enrollment_date"],
        **overrides,
    }


def test_healthz(client):
    assert client.get("/healthz").json() == {"status": "ok"}


def test_login(client):
    ok = client.post("/api/v1/auth/token", json={"username": "operator", "password": "s3cret"})
    assert ok.status_code == 200
    assert ok.json()["token_type"] == "bearer"
    bad = client.post("/api/v1/auth/token", json={"username": "operator", "password": "nope"})
    assert bad.status_code == 401


def test_writes_require_operator_token(client):
    assert client.post("/api/v1/certificates", json=_issue_body()).status_code == 401
    bad = client.post("/api/v1/certificates", json=_issue_body(), headers={"Authorization": "Bearer junk"})
    assert bad.status_code == 401


def test_issue_then_verify(client, auth):
    issued = client.post("/api/v1/certificates", json=_issue_body(), headers=auth)
    assert issued.status_code == 201
    record_id = issued.json()["record_id"]

    by_id = client.get(f"/api/v1/verify/{record_id}").json()
    assert by_id["status"] == "valid"
    assert by_id["authentic"] is True
    assert by_id["certificate"]["issuer"] == INSTITUTION

    by_data = client.post("/api/v1/verify/by-data", json=JANE).json()
    assert by_data["status"] == "valid"
    assert by_data["certificate"]["record_id"] == record_id
    assert "Jane" not in str(by_data)

    with SessionLocal() as db:
        row = db.query(AuditLog).filter(AuditLog.entity_id == str(record_id), AuditLog.action == "issue").first()
        assert row is not None and row.outcome == "ok"


def test_data_miss_reveals_nothing(client, auth):
    client.post("/api/v1/certificates", json=_issue_body(), headers=auth)
    miss = client.post("/api/v1/verify/by-data", json=dict(JANE, email="jane@example.org"))
    assert miss.status_code == 200
    body = miss.json()
    assert body["status"] == "not_found"
    assert body["certificate"] is None
    assert "email" not in body["message"].lower()


def test_error_mapping(client, auth):
    client.post("/api/v1/certificates", json=_issue_body(), headers=auth)
    dup = client.post("/api/v1/certificates", json=_issue_body(), headers=auth)
    assert dup.status_code == 409
    assert dup.json()["code"] == "DUPLICATE_COMMITMENT"

    bad_date = client.post("/api/v1/certificates", json=_issue_body(enrollment_date="soon"), headers=auth)
    assert bad_date.status_code == 422
    assert bad_date.json()["details"] == {"field": "enrollment_date"}

    assert client.get("/api/v1/verify/-1").status_code == 422


def test_unauthorized_institution_gets_403(owner_ledger, api_settings, auth):
    client = _client(owner_ledger.connect(OTHER_INSTITUTION), api_settings)
    try:
        res = client.post("/api/v1/certificates", json=_issue_body(), headers=auth)
    finally:
        api.dependency_overrides.clear()
    assert res.status_code == 403
    assert res.json()["code"] == "UNAUTHORIZED"


def test_revoke_flow(client, auth):
    record_id = client.post("/api/v1/certificates", json=_issue_body(), headers=auth).json()["record_id"]
    ok = client.post(f"/api/v1/certificates/{record_id}/revoke", json={"reason": "Issued in error"}, headers=auth)
    assert ok.status_code == 200
    again = client.post(f"/api/v1/certificates/{record_id}/revoke", json={"reason": "again"}, headers=auth)
    assert again.status_code == 409
    assert again.json()["code"] == "ALREADY_REVOKED"

    verdict = client.get(f"/api/v1/verify/{record_id}").json()
    assert verdict["status"] == "revoked"
    assert verdict["certificate"]["revoke_reason"] == "Issued in error"


def test_idempotent_issue_is_replayed(client, ledger, auth):
    headers = dict(auth, **{"Idempotency-Key": uuid.uuid4().hex})
    first = client.post("/api/v1/certificates", json=_issue_body(course="Replay 101"), headers=headers)
    second = client.post("/api/v1/certificates", json=_issue_body(course="Replay 101"), headers=headers)
    assert first.status_code == second.status_code == 201
    assert second.headers.get("Idempotent-Replay") == "true"
    assert second.json() == first.json()


def test_institution_admin(owner_client, auth):
    listed = owner_client.get("/api/v1/institutions").json()
    assert listed == [{"address": INSTITUTION, "is_active": True}]
    assert owner_client.get("/api/v1/institutions/owner").status_code == 200

    added = owner_client.post("/api/v1/institutions", json={"address": OTHER_INSTITUTION, "name": "Other"}, headers=auth)
    assert added.status_code == 201
    assert owner_client.get(f"/api/v1/institutions/{OTHER_INSTITUTION}").json()["is_active"] is True

    removed = owner_client.delete(f"/api/v1/institutions/{OTHER_INSTITUTION}", headers=auth)
    assert removed.status_code == 200
    assert owner_client.get(f"/api/v1/institutions/{OTHER_INSTITUTION}").json()["is_active"] is False


def test_history_sync_and_feed(client, auth):
    with SessionLocal() as db:
        db.query(LedgerEventRow).delete()
        db.commit()
    record_id = client.post("/api/v1/certificates", json=_issue_body(), headers=auth).json()["record_id"]
    synced = client.post("/api/v1/history/sync", headers=auth)
    assert synced.json() == {"added": 2}

    feed = client.get("/api/v1/history", params={"record_id": record_id}).json()
    assert [e["kind"] for e in feed] == ["issued"]
    assert feed[0]["subject"] == STUDENT
    assert client.get("/api/v1/history", params={"kind": "bogus"}).status_code == 422


def test_metadata_and_qr(client):
    doc = client.post(
        "/api/v1/certificates/metadata",
        json={"subject_name": "Jane Doe", "course": "Math", "enrollment_date": "2020-09-01"},
    ).json()
    assert doc["name"] == "Certificate: Math"

    qr = client.get("/api/v1/certificates/7/qr")
    assert qr.status_code == 200
    assert qr.headers["content-type"] == "image/png"
    assert qr.content.startswith(b"\x89PNG")


def test_auth_failures_are_not_replayed(client, auth):
    headers = {"Idempotency-Key": uuid.uuid4().hex}
    body = _issue_body(course="Retry After Login")
    assert client.post("/api/v1/certificates", json=body, headers=headers).status_code == 401

    retried = client.post("/api/v1/certificates", json=body, headers=dict(auth, **headers))
    assert retried.status_code == 201
    assert retried.headers.get("Idempotent-Replay") is None


def test_audit_failure_does_not_fail_issuance(client, auth, monkeypatch):
    def broken_create(db, obj_in):
        raise OperationalError("INSERT INTO audit_logs", {}, Exception("disk full"))

    monkeypatch.setattr(audit.audit_log, "create", broken_create)
    headers = dict(auth, **{"Idempotency-Key": uuid.uuid4().hex})
    body = _issue_body(course="Audit Outage 101")

    first = client.post("/api/v1/certificates", json=body, headers=headers)
    assert first.status_code == 201
    again = client.post("/api/v1/certificates", json=body, headers=headers)
    assert again.headers.get("Idempotent-Replay") == "true"
    assert again.json() == first.json()


def test_malformed_date_on_public_verify_is_422(client):
    res = client.post("/api/v1/verify/by-data", json=dict(JANE, enrollment_date="²"))
    assert res.status_code == 422
    assert res.json()["details"] == {"field": "enrollment_date"}
