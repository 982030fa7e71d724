import json
import logging

from fastapi.testclient import TestClient

from fakes import FakeSupabase, platform_tables
from tenant_access.auth.dependencies import get_gateway
from tenant_access.auth.jwt import create_identifier_token
from tenant_access.gateway import RecordStoreGateway
from tenant_access.main import app
from tenant_access.models.users import PrincipalCreate
from tenant_access.observability import (
    bind_request_id,
    incr_metric,
    log_event,
    metric_key,
    metrics_snapshot,
    record_store_failure,
    reset_metrics,
    unbind_request_id,
)


def test_metric_key_orders_labels() -> None:
    assert metric_key("login") == "login"
    assert metric_key("authz_denied", reason="permission_denied", module="crm") == (
        "authz_denied|module=crm,reason=permission_denied"
    )


def test_incr_metric_accumulates_and_resets() -> None:
    incr_metric("login", outcome="failure")
    incr_metric("login", outcome="failure")
    incr_metric("login", 3, outcome="success")

    assert metrics_snapshot() == {"login|outcome=failure": 2, "login|outcome=success": 3}

    reset_metrics()

    assert metrics_snapshot() == {}


def test_log_event_emits_json_line(caplog) -> None:
    caplog.set_level(logging.INFO, logger="tenant_access")

    log_event("admin_context_selected", request_id="req-1", modules=frozenset({"crm"}), organization_id="org-acme")

    payload = json.loads(caplog.records[-1].getMessage())
    assert payload == {
        "event": "admin_context_selected",
        "request_id": "req-1",
        "modules": ["crm"],
        "organization_id": "org-acme",
    }


def test_request_id_is_echoed() -> None:
    client = TestClient(app)
    generated = client.get("/health")
    echoed = client.get("/", headers={"X-Request-ID": "req-42"})

    assert generated.headers["X-Request-ID"]
    assert echoed.headers["X-Request-ID"] == "req-42"
    assert echoed.json() == {"status": "ok", "service": "tenant-access"}


def test_principal_create_row_shape() -> None:
    row = PrincipalCreate(email="Root@Platform.io", name="Root", password="pw", is_platform_super_admin=True).to_row()

    assert row["email"] == "root@platform.io"
    assert row["password_hash"] == "pw"
    assert row["temp_password"] is True
    assert row["is_active"] is True


def test_bound_request_id_is_attached_to_events(caplog) -> None:
    caplog.set_level(logging.INFO, logger="tenant_access")

    token = bind_request_id("req-7")
    try:
        log_event("login_failed")
    finally:
        unbind_request_id(token)
    log_event("login_failed")

    first, second = (json.loads(record.getMessage()) for record in caplog.records[-2:])
    assert first["request_id"] == "req-7"
    assert "request_id" not in second


def test_store_failures_are_logged_and_counted(caplog) -> None:
    caplog.set_level(logging.WARNING, logger="tenant_access")

    record_store_failure("membership_lookup_failed", "membership", ConnectionError("down"), principal_id="u-1")

    payload = json.loads(caplog.records[-1].getMessage())
    assert payload["step"] == "membership"
    assert payload["error"] == "down"
    assert metrics_snapshot() == {"store_failures|step=membership": 1}


def test_metrics_endpoint_is_platform_admin_only() -> None:
    db = FakeSupabase(platform_tables())
    app.dependency_overrides[get_gateway] = lambda: RecordStoreGateway(db)
    client = TestClient(app)
    client.post("/api/auth/login", json={"identifier": "alice@acme.com", "credential": "nope"})
    member = client.get("/api/access/metrics", headers={"Authorization": f"Bearer {create_identifier_token('alice@acme.com')}"})
    admin = client.get("/api/access/metrics", headers={"Authorization": f"Bearer {create_identifier_token('root@platform.io')}"})
    app.dependency_overrides.clear()

    assert member.status_code == 403
    assert admin.status_code == 200
    assert admin.json()["counters"]["login|outcome=failure"] == 1
