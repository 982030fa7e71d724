import asyncio

from tenant_access.auth.permissions import (
    PermissionAction,
    aggregate_permissions,
    parse_action,
    permission_allows,
    resolve_permissions,
)
from tenant_access.domain.records import Grant, Position, ResolvedPermission
from tenant_access.gateway import RecordStoreGateway
from tenant_access.observability import metrics_snapshot

from fakes import FakeSupabase, platform_tables


def _role(module: str, resource: str, **flags) -> Grant:
    return Grant(owner_id="role-1", module_code=module, resource_type=resource, **flags)


def _override(module: str, resource: str, **flags) -> Grant:
    return Grant(owner_id="pos-1", module_code=module, resource_type=resource, **flags)


def test_role_grants_pass_through_without_overrides() -> None:
    resolved = aggregate_permissions([_role("bookings", "bookings", can_read=True)])

    assert resolved == (ResolvedPermission("bookings", "bookings", can_read=True),)


def test_override_replaces_the_whole_row_for_its_key() -> None:
    resolved = aggregate_permissions(
        [_role("crm", "leads", can_create=False, can_read=True)],
        [_override("crm", "leads", can_create=True)],
    )

    assert resolved == (ResolvedPermission("crm", "leads", can_create=True),)


def test_covered_mode_keeps_role_rows_for_uncovered_keys() -> None:
    resolved = aggregate_permissions(
        [_role("crm", "leads", can_read=True), _role("crm", "customers", can_read=True)],
        [_override("crm", "leads", can_create=True)],
        mode="covered",
    )

    assert [p.key for p in resolved] == [("crm", "customers"), ("crm", "leads")]
    assert resolved[0].can_read is True
    assert resolved[1].can_read is False


def test_exclusive_mode_uses_only_overrides() -> None:
    resolved = aggregate_permissions(
        [_role("crm", "leads", can_read=True), _role("crm", "customers", can_read=True)],
        [_override("crm", "leads", can_create=True)],
        mode="exclusive",
    )

    assert resolved == (ResolvedPermission("crm", "leads", can_create=True),)


def test_exclusive_mode_without_overrides_falls_back_to_role() -> None:
    resolved = aggregate_permissions([_role("crm", "leads", can_read=True)], [], mode="exclusive")

    assert resolved == (ResolvedPermission("crm", "leads", can_read=True),)


def test_disabled_mode_ignores_overrides() -> None:
    resolved = aggregate_permissions(
        [_role("crm", "leads", can_read=True)],
        [_override("crm", "leads", can_create=True)],
        mode="disabled",
    )

    assert resolved == (ResolvedPermission("crm", "leads", can_read=True),)


def test_duplicate_rows_for_one_key_are_or_combined() -> None:
    resolved = aggregate_permissions([
        _role("crm", "leads", can_read=True),
        _role("crm", "leads", can_delete=True),
    ])

    assert resolved == (ResolvedPermission("crm", "leads", can_read=True, can_delete=True),)


def test_output_order_does_not_depend_on_input_order() -> None:
    grants = [
        _role("transportation", "vehicles", can_read=True),
        _role("bookings", "experiences", can_read=True),
        _role("bookings", "bookings", can_update=True),
    ]

    assert aggregate_permissions(grants) == aggregate_permissions(list(reversed(grants)))
    assert [p.key for p in aggregate_permissions(grants)] == [
        ("bookings", "bookings"),
        ("bookings", "experiences"),
        ("transportation", "vehicles"),
    ]


def test_parse_action_accepts_enum_and_strings() -> None:
    assert parse_action(PermissionAction.DELETE) is PermissionAction.DELETE
    assert parse_action(" Read ") is PermissionAction.READ
    assert parse_action("approve") is None
    assert parse_action(None) is None


def test_permission_allows_reads_the_matching_flag() -> None:
    permission = ResolvedPermission("crm", "leads", can_read=True)

    assert permission_allows(permission, "read") is True
    assert permission_allows(permission, PermissionAction.UPDATE) is False
    assert permission_allows(permission, "approve") is False


def test_resolve_permissions_for_position_with_overrides() -> None:
    gateway = RecordStoreGateway(FakeSupabase(platform_tables()))
    sales = Position(id="pos-sales", name="Sales", default_role_id="role-sales")

    resolved = asyncio.run(resolve_permissions(gateway, sales))

    by_key = {p.key: p for p in resolved}
    assert by_key[("crm", "leads")] == ResolvedPermission("crm", "leads", can_create=True)
    assert by_key[("crm", "customers")].can_update is True


def test_resolve_permissions_without_role_uses_overrides_only() -> None:
    gateway = RecordStoreGateway(FakeSupabase(platform_tables()))
    position = Position(id="pos-sales", name="Sales", default_role_id=None)

    resolved = asyncio.run(resolve_permissions(gateway, position))

    assert [p.key for p in resolved] == [("crm", "leads")]


def test_resolve_permissions_degrades_to_empty_on_store_failure() -> None:
    gateway = RecordStoreGateway(FakeSupabase(platform_tables(), failing_tables={"position_permissions"}))
    sales = Position(id="pos-sales", name="Sales", default_role_id="role-sales")

    assert asyncio.run(resolve_permissions(gateway, sales)) == ()
    assert metrics_snapshot()["store_failures|step=permissions"] == 1


def test_resolve_permissions_without_position() -> None:
    gateway = RecordStoreGateway(FakeSupabase(platform_tables()))

    assert asyncio.run(resolve_permissions(gateway, None)) == ()
    assert gateway.client.calls == []
