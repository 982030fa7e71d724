import asyncio

import pytest

from fakes import FakeSupabase, platform_tables, user_row
from tenant_access.auth.identifier_store import FileIdentifierStore, MemoryIdentifierStore
from tenant_access.auth.lifecycle import (
    DEV_ADMIN_IDENTIFIER,
    INVALID_CREDENTIALS,
    LoginStatus,
    SessionManager,
    credentials_match,
)
from tenant_access.config import Settings
from tenant_access.domain.errors import DevLoginDisabledError
from tenant_access.gateway import RecordStoreGateway
from tenant_access.observability import metrics_snapshot


def _manager(tables=None, identifier=None, failing_tables=(), source="store", **kwargs) -> SessionManager:
    gateway = RecordStoreGateway(FakeSupabase(tables if tables is not None else platform_tables(), failing_tables))
    return SessionManager(gateway, MemoryIdentifierStore(identifier, source), **kwargs)


def test_credentials_match() -> None:
    assert credentials_match("wonderland", "wonderland") is True
    assert credentials_match("wonderland", "Wonderland") is False
    assert credentials_match(None, "") is False
    assert credentials_match("", "") is False


def test_login_success_publishes_session_and_persists_email() -> None:
    manager = _manager()

    result = asyncio.run(manager.login("alice", "wonderland"))

    assert result.status is LoginStatus.SUCCESS
    assert result.success is True
    assert manager.is_authenticated is True
    assert manager.session.organization.slug == "acme"
    assert manager.identifier == "alice@acme.com"
    assert manager.identifier_store.load() == "alice@acme.com"
    assert manager.access.can("read", "bookings", "bookings") is True
    assert metrics_snapshot()["login|outcome=success"] == 1


def test_login_with_temporary_credential_requires_change() -> None:
    manager = _manager()

    result = asyncio.run(manager.login("temp@acme.com", "temp-pass"))

    assert result.status is LoginStatus.MUST_CHANGE_CREDENTIAL
    assert result.success is True
    assert manager.session.requires_credential_change is True


@pytest.mark.parametrize("identifier,credential", [
    ("alice@acme.com", "wrong"),
    ("nobody@acme.com", "wonderland"),
    ("gone@acme.com", "gone-pass"),
])
def test_login_failures_share_one_message(identifier: str, credential: str) -> None:
    manager = _manager()

    result = asyncio.run(manager.login(identifier, credential))

    assert result.status is LoginStatus.FAILURE
    assert result.reason == INVALID_CREDENTIALS
    assert manager.session is None
    assert manager.identifier_store.load() is None


def test_failed_login_keeps_existing_session() -> None:
    manager = _manager()
    asyncio.run(manager.login("alice@acme.com", "wonderland"))

    asyncio.run(manager.login("sam@acme.com", "wrong"))

    assert manager.session.principal_id == "u-alice"


def test_login_store_outage_fails_unless_bootstrap_account() -> None:
    manager = _manager(failing_tables={"users"})

    assert asyncio.run(manager.login("alice@acme.com", "wonderland")).status is LoginStatus.FAILURE

    result = asyncio.run(manager.login("platform-bootstrap", "bootstrap-change-me!"))

    assert result.status is LoginStatus.SUCCESS
    assert manager.session.ephemeral is True
    assert manager.access.is_platform_admin() is True
    assert manager.identifier_store.load() == "platform-bootstrap"
    assert manager.identifier_store.load_record().is_bootstrap is True
    assert manager.identifier_source == "bootstrap"


def test_bootstrap_account_not_consulted_when_principal_exists() -> None:
    tables = platform_tables()
    tables["users"][0]["email"] = "platform-bootstrap"
    manager = _manager(tables)

    result = asyncio.run(manager.login("platform-bootstrap", "bootstrap-change-me!"))

    assert result.status is LoginStatus.FAILURE


def test_login_clears_admin_selection() -> None:
    manager = _manager()
    asyncio.run(manager.login("root@platform.io", "root-pass"))
    asyncio.run(manager.admin.select("org-acme"))

    asyncio.run(manager.login("ops@platform.io", "ops-pass"))

    assert manager.admin.context is None
    assert manager.access.effective_organization_id is None


def test_logout_drops_everything() -> None:
    manager = _manager()
    asyncio.run(manager.login("root@platform.io", "root-pass"))
    asyncio.run(manager.admin.select("org-acme"))

    manager.logout()

    assert manager.session is None
    assert manager.identifier is None
    assert manager.admin.context is None
    assert manager.identifier_store.load() is None
    assert manager.access.can("read", "bookings", "bookings") is False


def test_restore_rebuilds_from_store() -> None:
    manager = _manager(identifier="sam@acme.com")

    session = asyncio.run(manager.restore_session())

    assert session.principal_id == "u-sam"
    assert manager.identifier == "sam@acme.com"
    assert metrics_snapshot()["session_restore|outcome=success"] == 1


def test_restore_runs_once() -> None:
    manager = _manager(identifier="sam@acme.com")
    first = asyncio.run(manager.restore_session())
    manager.gateway.client.tables["users"] = []

    assert asyncio.run(manager.restore_session()) is first


def test_restore_without_identifier_is_anonymous() -> None:
    manager = _manager()

    assert asyncio.run(manager.restore_session()) is None
    assert manager.gateway.client.calls == []


def test_failed_restore_discards_identifier() -> None:
    manager = _manager(identifier="gone@acme.com")

    assert asyncio.run(manager.restore_session()) is None
    assert manager.identifier_store.load() is None
    assert metrics_snapshot()["session_restore|outcome=failure"] == 1


def test_restore_bootstrap_identifier() -> None:
    manager = _manager(identifier="ops@platform.local", source="bootstrap", failing_tables={"users"})

    session = asyncio.run(manager.restore_session())

    assert session.ephemeral is True
    assert session.name == "Operations"
    assert manager.identifier_source == "bootstrap"
    assert manager.gateway.client.calls == []


def test_store_principal_sharing_bootstrap_identifier_is_not_promoted_on_outage() -> None:
    tables = platform_tables()
    tables["users"].append(user_row("u-ops-local", "ops@platform.local", "own-pass"))
    store = MemoryIdentifierStore()
    manager = SessionManager(RecordStoreGateway(FakeSupabase(tables)), store)
    assert asyncio.run(manager.login("ops@platform.local", "own-pass")).status is LoginStatus.SUCCESS
    assert manager.access.is_platform_admin() is False
    assert store.load_record().source == "store"

    restarted = SessionManager(RecordStoreGateway(FakeSupabase(tables, {"users"})), store)

    assert asyncio.run(restarted.restore_session()) is None
    assert restarted.access.is_platform_admin() is False
    assert store.load() is None
    assert metrics_snapshot()["session_restore|outcome=failure"] == 1


def test_store_identifier_matching_bootstrap_account_is_not_synthesized() -> None:
    manager = _manager(identifier="platform-bootstrap")

    assert asyncio.run(manager.restore_session()) is None
    assert manager.identifier_store.load() is None


def test_refresh_of_store_principal_during_outage_logs_out() -> None:
    tables = platform_tables()
    tables["users"].append(user_row("u-ops-local", "ops@platform.local", "own-pass"))
    manager = _manager(tables)
    asyncio.run(manager.login("ops@platform.local", "own-pass"))
    manager.gateway.client.failing_tables.add("users")

    assert asyncio.run(manager.refresh()) is None
    assert manager.session is None


def test_refresh_picks_up_store_changes() -> None:
    manager = _manager()
    asyncio.run(manager.login("alice@acme.com", "wonderland"))
    manager.gateway.client.tables["role_permissions"] = []

    session = asyncio.run(manager.refresh())

    assert session.permissions == ()
    assert manager.access.can("read", "bookings", "bookings") is False


def test_refresh_logs_out_deactivated_principal() -> None:
    manager = _manager()
    asyncio.run(manager.login("alice@acme.com", "wonderland"))
    manager.gateway.client.tables["users"][0]["is_active"] = False

    assert asyncio.run(manager.refresh()) is None
    assert manager.session is None
    assert manager.identifier_store.load() is None


def test_dev_login_disabled() -> None:
    manager = _manager()

    with pytest.raises(DevLoginDisabledError):
        asyncio.run(manager.dev_login())
    assert manager.session is None


def test_dev_login_uses_first_super_admin() -> None:
    manager = _manager(dev_login_enabled=True)

    session = asyncio.run(manager.dev_login())

    assert session.principal_id == "u-root"
    assert manager.identifier_store.load() == "root@platform.io"


def test_dev_login_without_super_admin_is_ephemeral() -> None:
    tables = platform_tables()
    tables["users"] = [row for row in tables["users"] if not row["is_platform_super_admin"]]
    manager = _manager(tables, identifier="alice@acme.com", dev_login_enabled=True)

    session = asyncio.run(manager.dev_login())

    assert session.ephemeral is True
    assert session.email == DEV_ADMIN_IDENTIFIER
    assert manager.identifier is None
    assert manager.identifier_store.load() is None


def test_from_settings_respects_production_guard() -> None:
    gateway = RecordStoreGateway(FakeSupabase(platform_tables()))
    production = Settings(environment="production", enable_dev_login=True, position_override_mode="exclusive")
    development = Settings(environment="development", enable_dev_login=True)

    assert SessionManager.from_settings(gateway, production, MemoryIdentifierStore()).dev_login_enabled is False
    assert SessionManager.from_settings(gateway, production, MemoryIdentifierStore()).override_mode == "exclusive"
    assert SessionManager.from_settings(gateway, development, MemoryIdentifierStore()).dev_login_enabled is True


def test_from_settings_defaults_to_file_store(tmp_path) -> None:
    path = tmp_path / "identifier.json"
    gateway = RecordStoreGateway(FakeSupabase(platform_tables()))
    local = Settings(identifier_store_path=str(path))

    manager = SessionManager.from_settings(gateway, local)
    asyncio.run(manager.login("alice@acme.com", "wonderland"))

    assert isinstance(manager.identifier_store, FileIdentifierStore)
    restored = SessionManager.from_settings(gateway, local)
    assert asyncio.run(restored.restore_session()).principal_id == "u-alice"
