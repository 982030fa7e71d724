"""
Acting-organization switch for platform admins ("view as tenant").

Two states: no selection, or a selected organization. Explicit select()/clear()
calls bump a generation counter; the one-shot sync from the `org` URL parameter
only applies its result when no explicit call happened while it was fetching,
so a user action always beats the automatic sync.
"""
import asyncio
import logging
from typing import Callable

from tenant_access.auth.context import AdminContext
from tenant_access.domain.errors import RecordMappingError, StoreUnavailableError
from tenant_access.domain.records import Organization
from tenant_access.gateway import RecordStoreGateway
from tenant_access.observability import log_event, record_store_failure


class AdminContextSwitch:
    def __init__(self, gateway: RecordStoreGateway, is_platform_admin: Callable[[], bool]):
        self.gateway = gateway
        self._is_platform_admin = is_platform_admin
        self._context: AdminContext | None = None
        self._generation = 0
        self._url_sync_started = False

    @property
    def context(self) -> AdminContext | None:
        return self._context

    @property
    def selected_organization(self) -> Organization | None:
        return self._context.selected_organization if self._context else None

    @property
    def selected_organization_id(self) -> str | None:
        return self._context.selected_organization_id if self._context else None

    async def _fetch(self, lookup: Callable[[str], Organization | None], value: str) -> Organization | None:
        try:
            return await asyncio.to_thread(lookup, value)
        except (StoreUnavailableError, RecordMappingError) as exc:
            record_store_failure("organization_lookup_failed", "admin_context", exc, value=value)
            return None

    async def select(self, organization_id: str) -> bool:
        """Act on an organization. Returns False, leaving the state unchanged, on any failure."""
        if not self._is_platform_admin():
            log_event("admin_context_select_rejected", level=logging.WARNING, organization_id=organization_id)
            return False

        self._generation += 1
        generation = self._generation

        organization = await self._fetch(self.gateway.organization_by_id, organization_id)
        if organization is None:
            log_event("admin_context_select_failed", level=logging.WARNING, organization_id=organization_id)
            return False
        if generation != self._generation:
            # superseded by a later select() or clear()
            return False

        self._context = AdminContext(selected_organization=organization)
        log_event("admin_context_selected", organization_id=organization.id, slug=organization.slug)
        return True

    def clear(self) -> None:
        self._generation += 1
        self._context = None

    async def sync_from_url(self, slug: str | None) -> bool:
        """
        Adopt the organization named by the `org` query parameter.

        Runs at most once per switch instance, never replaces an existing
        selection, and drops its result if select() or clear() ran meanwhile.
        """
        if self._url_sync_started:
            return False
        self._url_sync_started = True

        if not slug or not self._is_platform_admin() or self._context is not None:
            return False

        generation = self._generation
        organization = await self._fetch(self.gateway.organization_by_slug, slug)
        if organization is None:
            log_event("admin_context_sync_not_found", level=logging.WARNING, slug=slug)
            return False
        if generation != self._generation or self._context is not None:
            return False

        self._context = AdminContext(selected_organization=organization)
        log_event("admin_context_synced", organization_id=organization.id, slug=slug)
        return True
