"""Shared request dependencies."""

from __future__ import annotations

from fastapi import Header, HTTPException, Request

from cyberpulse.roles import Actor, Role
from cyberpulse.services.integrations import Integrations


async def get_actor(
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> Actor:
    """Caller identity forwarded by the authenticating gateway."""
    if not x_user_id or not x_user_role:
        raise HTTPException(status_code=401, detail="Missing X-User-Id or X-User-Role header")
    try:
        role = Role(x_user_role)
    except ValueError:
        raise HTTPException(status_code=401, detail=f"Unknown role '{x_user_role}'") from None
    return Actor(user_id=x_user_id, role=role)


def get_integrations(request: Request) -> Integrations:
    return request.app.state.integrations
