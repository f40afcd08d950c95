# mazao/seed.py

from __future__ import annotations

from typing import Any, Dict, Optional

import click
from flask import current_app
from flask.cli import with_appcontext

from mazao.errors import Result
from mazao.models.user_models import RegisterRequest, Role
from mazao.mongo import Store, get_store
from mazao.services.auth_service import AuthService


def seed_admin(
    store: Store,
    email: str,
    password: str,
    full_name: str,
    location: Optional[str] = None,
    contact: Optional[str] = None,
) -> Result[Dict[str, Any]]:
    """
    Create the initial ADMIN (with profile) unless the email already exists.
    Returns the stored document either way; running it twice is a no-op.
    """
    existing = store.users.find_one({"email": email.strip().lower()})
    if existing:
        return Result.success(existing)

    req = RegisterRequest(
        email=email,
        password=password,
        fullName=full_name,
        location=location,
        contactInfo=contact,
    )
    return AuthService(store).create_account(req, Role.ADMIN)


@click.command("seed-admin")
@with_appcontext
def seed_admin_command():
    """Create the initial admin account from ADMIN_* settings."""
    cfg = current_app.config
    store = get_store()
    before = store.users.count_documents({"email": cfg["ADMIN_EMAIL"].strip().lower()})

    result = seed_admin(
        store,
        email=cfg["ADMIN_EMAIL"],
        password=cfg["ADMIN_PASSWORD"],
        full_name=cfg["ADMIN_FULL_NAME"],
        location=cfg.get("ADMIN_LOCATION"),
        contact=cfg.get("ADMIN_CONTACT"),
    )
    if not result.ok:
        raise click.ClickException(result.failure.detail)

    if before:
        click.echo(f"Admin {result.value['email']} already exists")
    else:
        click.echo(f"Admin {result.value['email']} created")
