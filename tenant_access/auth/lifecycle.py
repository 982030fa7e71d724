"""
Session lifecycle: login, logout, restore, dev login.

SessionManager is the composition root for one principal session. It owns the
current Session value and the admin context switch, and hands feature code an
AccessControl bound to both. A Session is only ever published whole.

Credential check is plaintext equality against the stored value, followed by a
fallback to the fixed bootstrap accounts. Both are known weaknesses kept on
purpose until product decides how to replace them; see DESIGN.md.
"""
from __future__ import annotations

import asyncio
import logging
import secrets
from dataclasses import dataclass
from enum import Enum

from tenant_access.auth.access import AccessControl
from tenant_access.auth.admin_context import AdminContextSwitch
from tenant_access.auth.bootstrap import find_bootstrap_account, match_bootstrap_account
from tenant_access.auth.context import Session
from tenant_access.auth.identifier_store import FileIdentifierStore, IdentifierSource, IdentifierStore
from tenant_access.auth.identity import resolve_principal
from tenant_access.auth.permissions import OverrideMode
from tenant_access.auth.session import build_session, synthesize_admin_session
from tenant_access.config import Settings
from tenant_access.domain.errors import DevLoginDisabledError, RecordMappingError, StoreUnavailableError
from tenant_access.gateway import RecordStoreGateway
from tenant_access.observability import incr_metric, log_event

INVALID_CREDENTIALS = "Invalid identifier or credential"
DEV_ADMIN_IDENTIFIER = "dev-admin@localhost"


class LoginStatus(str, Enum):
    SUCCESS = "success"
    MUST_CHANGE_CREDENTIAL = "must_change_credential"
    FAILURE = "failure"


@dataclass(frozen=True)
class LoginResult:
    status: LoginStatus
    reason: str | None = None

    @property
    def success(self) -> bool:
        return self.status != LoginStatus.FAILURE


def credentials_match(stored: str | None, supplied: str | None) -> bool:
    if not stored or supplied is None:
        return False
    return secrets.compare_digest(stored.encode(), supplied.encode())


class SessionManager:
    def __init__(
        self,
        gateway: RecordStoreGateway,
        identifier_store: IdentifierStore,
        *,
        override_mode: OverrideMode = "covered",
        dev_login_enabled: bool = False,
    ):
        self.gateway = gateway
        self.identifier_store = identifier_store
        self.override_mode = override_mode
        self.dev_login_enabled = dev_login_enabled
        self._session: Session | None = None
        self._identifier: str | None = None
        self._identifier_source: IdentifierSource = "store"
        self._restore_attempted = False
        self.admin = AdminContextSwitch(gateway, self._is_platform_admin)
        self.access = AccessControl(lambda: self._session, lambda: self.admin.context)

    @classmethod
    def from_settings(
        cls,
        gateway: RecordStoreGateway,
        settings: Settings,
        identifier_store: IdentifierStore | None = None,
    ) -> "SessionManager":
        """Local clients omit the store and get the JSON file at IDENTIFIER_STORE_PATH."""
        return cls(
            gateway,
            identifier_store if identifier_store is not None else FileIdentifierStore(settings.identifier_store_path),
            override_mode=settings.position_override_mode,
            dev_login_enabled=settings.dev_login_enabled,
        )

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def identifier(self) -> str | None:
        return self._identifier

    @property
    def identifier_source(self) -> IdentifierSource:
        return self._identifier_source

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    def _is_platform_admin(self) -> bool:
        return self._session is not None and self._session.is_platform_admin

    def _publish(self, session: Session, identifier: str | None, source: IdentifierSource = "store") -> None:
        if identifier is not None:
            try:
                self.identifier_store.save(identifier, source)
            except OSError as exc:
                log_event("identifier_persist_failed", level=logging.WARNING, error=str(exc))
        self._session = session
        self._identifier = identifier
        self._identifier_source = source

    def _forget_identifier(self) -> None:
        try:
            self.identifier_store.clear()
        except OSError as exc:
            log_event("identifier_clear_failed", level=logging.WARNING, error=str(exc))

    async def _rebuild(self, identifier: str, source: IdentifierSource) -> Session | None:
        # A bootstrap session is only re-synthesized for an identifier a bootstrap
        # login saved; store identifiers never fall back to the allow-list.
        if source == "bootstrap":
            account = find_bootstrap_account(identifier)
            return synthesize_admin_session(account.identifier, account.name) if account else None

        principal = await resolve_principal(self.gateway, identifier)
        if principal is None:
            return None
        return await build_session(self.gateway, principal, override_mode=self.override_mode)

    async def login(self, identifier: str, credential: str) -> LoginResult:
        principal = await resolve_principal(self.gateway, identifier)

        if principal is None:
            account = match_bootstrap_account(identifier, credential)
            if account is None:
                incr_metric("login", outcome="failure")
                log_event("login_failed", level=logging.WARNING)
                return LoginResult(LoginStatus.FAILURE, INVALID_CREDENTIALS)

            log_event("bootstrap_login", level=logging.WARNING, identifier=account.identifier)
            incr_metric("login", outcome="bootstrap")
            self.admin.clear()
            self._publish(
                synthesize_admin_session(account.identifier, account.name),
                account.identifier,
                "bootstrap",
            )
            return LoginResult(LoginStatus.SUCCESS)

        if not credentials_match(principal.credential, credential):
            incr_metric("login", outcome="failure")
            log_event("login_failed", level=logging.WARNING)
            return LoginResult(LoginStatus.FAILURE, INVALID_CREDENTIALS)

        session = await build_session(self.gateway, principal, override_mode=self.override_mode)
        self.admin.clear()
        self._publish(session, principal.email)
        log_event(
            "login_succeeded",
            principal_id=principal.id,
            organization_id=session.membership_organization_id,
            platform_admin=session.is_platform_admin,
        )

        if session.requires_credential_change:
            incr_metric("login", outcome="must_change_credential")
            return LoginResult(LoginStatus.MUST_CHANGE_CREDENTIAL, "Credential change required")
        incr_metric("login", outcome="success")
        return LoginResult(LoginStatus.SUCCESS)

    def logout(self) -> None:
        self._session = None
        self._identifier = None
        self._identifier_source = "store"
        self.admin.clear()
        self._forget_identifier()

    async def restore_session(self) -> Session | None:
        """
        Rebuild the session from the persisted identifier, once per start.

        Later calls return the current session without touching the store. A
        failed rebuild discards the persisted identifier.
        """
        if self._restore_attempted:
            return self._session
        self._restore_attempted = True

        try:
            record = self.identifier_store.load_record()
        except OSError as exc:
            log_event("identifier_load_failed", level=logging.WARNING, error=str(exc))
            record = None
        if record is None:
            return None

        session = await self._rebuild(record.identifier, record.source)
        if session is None:
            log_event("session_restore_failed", level=logging.WARNING)
            incr_metric("session_restore", outcome="failure")
            self._forget_identifier()
            return None

        incr_metric("session_restore", outcome="success")
        self._session = session
        self._identifier = record.identifier
        self._identifier_source = record.source
        return session

    async def refresh(self) -> Session | None:
        """Rebuild the current session from scratch. Logs out if the principal is gone."""
        if self._identifier is None:
            return self._session

        session = await self._rebuild(self._identifier, self._identifier_source)
        if session is None:
            self.logout()
            return None
        self._session = session
        return session

    async def dev_login(self) -> Session:
        """Sign in as the first active platform super-admin, or as a throwaway admin."""
        if not self.dev_login_enabled:
            raise DevLoginDisabledError("Dev login is only available in non-production builds")

        try:
            principal = await asyncio.to_thread(self.gateway.first_active_super_admin)
        except (StoreUnavailableError, RecordMappingError) as exc:
            log_event("dev_login_lookup_failed", level=logging.WARNING, error=str(exc))
            principal = None

        self.admin.clear()
        if principal is not None:
            session = await build_session(self.gateway, principal, override_mode=self.override_mode)
            self._publish(session, principal.email)
        else:
            session = synthesize_admin_session(DEV_ADMIN_IDENTIFIER, "Dev Admin")
            self._forget_identifier()
            self._publish(session, None)

        log_event("dev_login", level=logging.WARNING, principal_id=session.principal_id)
        return session
