"""Caller roles and role gating."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from cyberpulse.errors import AuthorizationError


class Role(str, Enum):
    ADMIN = "admin"
    ANALYST = "analyst"
    ANALYST_NOTES = "analyst_notes"
    ACCOUNT_MANAGER = "account_manager"
    USER = "user"


@dataclass(frozen=True)
class Actor:
    """The authenticated caller, as supplied by the auth collaborator."""

    user_id: str
    role: Role


def require_role(actor: Actor, allowed: set[Role], action: str) -> None:
    """Raise AuthorizationError unless the actor's role is in ``allowed``."""
    if actor.role not in allowed:
        raise AuthorizationError(f"Role '{actor.role.value}' may not {action}")
