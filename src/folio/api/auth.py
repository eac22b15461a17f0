"""Admin gate: bearer token (local/dev) or upstream identity header (production).

Resolution order for a request under ``/api/admin/``:
  1. ``Authorization: Bearer <token>`` equal to FOLIO_ADMIN_TOKEN -> owner
  2. The configured identity header naming a row in ``users`` -> that user's role
  3. Otherwise 401

An identity the store doesn't know is a 403, as is any write by a ``viewer``.
"""

from __future__ import annotations

import hmac
from dataclasses import dataclass

from flask import Request, g, request

from folio.api import services
from folio.api.errors import Forbidden, Unauthorized
from folio.core.config import Settings
from folio.core.database import Store

ROLES = ("owner", "editor", "viewer")
WRITE_ROLES = {"owner", "editor"}
READ_METHODS = {"GET", "HEAD", "OPTIONS"}
TOKEN_ACTOR_EMAIL = "admin@localhost"


@dataclass(frozen=True)
class Actor:
    """The authenticated caller of an admin request."""

    email: str
    role: str

    @property
    def can_write(self) -> bool:
        return self.role in WRITE_ROLES


def bearer_token(header_value: str | None) -> str:
    """Extract the token from an ``Authorization: Bearer ...`` header, or ''."""
    if not header_value or not header_value.startswith("Bearer "):
        return ""
    return header_value[len("Bearer "):].strip()


def authenticate(request: Request, settings: Settings, store: Store) -> Actor:
    """Resolve the caller or raise Unauthorized/Forbidden."""
    supplied = bearer_token(request.headers.get("Authorization"))
    if supplied and settings.admin_token and hmac.compare_digest(supplied, settings.admin_token):
        return Actor(email=TOKEN_ACTOR_EMAIL, role="owner")

    email = ""
    if settings.identity_header:
        email = (request.headers.get(settings.identity_header) or "").strip()
    if not email:
        raise Unauthorized("Unauthorized")

    user = store.get_user(email)
    if user is None:
        raise Forbidden(f"{email} is not allowed to use the admin panel")
    return Actor(email=user["email"], role=user["role"])


def authorize(actor: Actor, method: str) -> None:
    """Raise Forbidden when *actor* attempts a write it isn't allowed."""
    if method.upper() not in READ_METHODS and not actor.can_write:
        raise Forbidden(f"Role {actor.role!r} is read-only")


def require_admin() -> None:
    """``before_request`` hook for admin blueprints; sets ``g.actor``."""
    svc = services()
    actor = authenticate(request, svc.settings, svc.store)
    authorize(actor, request.method)
    g.actor = actor


def current_actor() -> Actor:
    actor: Actor = g.actor
    return actor
