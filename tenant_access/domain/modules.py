from __future__ import annotations

from dataclasses import dataclass
from typing import Final

CRUD: Final[tuple[str, ...]] = ("create", "read", "update", "delete")


@dataclass(frozen=True)
class ResourceDefinition:
    code: str
    name: str
    actions: tuple[str, ...] = CRUD


@dataclass(frozen=True)
class ModuleDefinition:
    code: str
    name: str
    description: str
    resources: tuple[ResourceDefinition, ...]


_registry: dict[str, ModuleDefinition] = {}


def register_module(module: ModuleDefinition) -> None:
    _registry[module.code] = module


def registered_modules() -> list[ModuleDefinition]:
    return list(_registry.values())


def get_module(code: str) -> ModuleDefinition | None:
    return _registry.get(code)


def module_resources(code: str) -> tuple[ResourceDefinition, ...]:
    module = _registry.get(code)
    return module.resources if module else ()


register_module(ModuleDefinition(
    code="crm",
    name="CRM",
    description="Customer relationship management",
    resources=(
        ResourceDefinition("customers", "Customers"),
        ResourceDefinition("customer_types", "Customer Types"),
        ResourceDefinition("leads", "Leads"),
    ),
))

register_module(ModuleDefinition(
    code="bookings",
    name="Bookings Platform",
    description="Experience booking and availability management",
    resources=(
        ResourceDefinition("bookings", "Bookings"),
        ResourceDefinition("experiences", "Experiences"),
        ResourceDefinition("availabilities", "Availabilities"),
        ResourceDefinition("booking_options", "Booking Options"),
    ),
))

register_module(ModuleDefinition(
    code="transportation",
    name="Transportation",
    description="Vehicles, vendors, and logistics",
    resources=(
        ResourceDefinition("vehicles", "Vehicles"),
        ResourceDefinition("vendors", "Vendors"),
        ResourceDefinition("pickup_points", "Pickup Points"),
        ResourceDefinition("hotels", "Hotels"),
        ResourceDefinition("schedules", "Schedules"),
    ),
))

register_module(ModuleDefinition(
    code="communications",
    name="Communications",
    description="Phone system, AI agents, live agents",
    resources=(
        ResourceDefinition("phone_system", "Phone System", ("read", "update")),
        ResourceDefinition("ai_agents", "AI Agents"),
        ResourceDefinition("live_agents", "Live Agents"),
    ),
))

register_module(ModuleDefinition(
    code="visibility",
    name="Visibility",
    description="OTA, website, social media, blog",
    resources=(
        ResourceDefinition("ota", "OTA Manager", ("read", "update")),
        ResourceDefinition("website", "Website Manager"),
        ResourceDefinition("social_media", "Social Media"),
        ResourceDefinition("blog", "Blog Manager"),
    ),
))

register_module(ModuleDefinition(
    code="finance",
    name="Finance",
    description="Billing, bank accounts, partners, reports",
    resources=(
        ResourceDefinition("billing", "Billing"),
        ResourceDefinition("bank_accounts", "Bank Accounts"),
        ResourceDefinition("partners", "Partners"),
        ResourceDefinition("reports", "Reports", ("read",)),
        ResourceDefinition("invoices", "Invoices"),
        ResourceDefinition("pricing", "Pricing Schedules"),
    ),
))

register_module(ModuleDefinition(
    code="settings",
    name="Settings",
    description="System configuration",
    resources=(
        ResourceDefinition("custom_fields", "Custom Fields"),
        ResourceDefinition("pricing_variations", "Pricing Variations"),
        ResourceDefinition("users", "Users"),
        ResourceDefinition("permission_groups", "Permission Groups"),
        ResourceDefinition("positions", "Staff Positions"),
    ),
))
