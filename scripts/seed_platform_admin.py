#!/usr/bin/env python3
"""
Seed the first platform super-admin principal.

Reads PLATFORM_ADMIN_EMAIL, PLATFORM_ADMIN_PASSWORD and optional PLATFORM_ADMIN_NAME
from the .env file. Run from project root: python scripts/seed_platform_admin.py
"""

import sys
import os

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

# Load .env file
from dotenv import load_dotenv
load_dotenv(os.path.join(project_root, ".env"))

from tenant_access.db import get_supabase
from tenant_access.gateway import RecordStoreGateway
from tenant_access.models.users import PrincipalCreate


def seed(gateway: RecordStoreGateway, email: str, password: str, name: str = "Super Admin"):
    """Create the super-admin unless a principal with that email already exists."""
    data = PrincipalCreate(
        email=email,
        name=name,
        password=password,
        temp_password=True,
        is_platform_super_admin=True,
    )
    if gateway.find_active_principals("email", data.email):
        return None
    return gateway.create_principal(data.to_row())


def main():
    email = os.getenv("PLATFORM_ADMIN_EMAIL")
    password = os.getenv("PLATFORM_ADMIN_PASSWORD")

    if not email or not password:
        print("Error: PLATFORM_ADMIN_EMAIL and PLATFORM_ADMIN_PASSWORD must be set in .env")
        sys.exit(1)

    principal = seed(
        RecordStoreGateway(get_supabase()),
        email,
        password,
        os.getenv("PLATFORM_ADMIN_NAME") or "Super Admin",
    )
    if principal is None:
        print(f"Principal with email '{email}' already exists.")
        sys.exit(0)

    print("Created platform super-admin:")
    print(f"  ID: {principal.id}")
    print(f"  Email: {principal.email}")
    print("  Must change password on first login.")


if __name__ == "__main__":
    main()
