# tracker/api/deps.py
from __future__ import annotations

from uuid import UUID

from fastapi import Depends, Header, HTTPException

from tracker.core.rbac import Actor


# -----------------------------------------------------------------------------
# MVP auth headers (identity/role come from an external auth provider later)
# -----------------------------------------------------------------------------


def get_current_user_id(
    x_actor_user_id: str | None = Header(
        default=None,
        alias="X-Actor-User-Id",
        description="UUID of the acting user. Temporary MVP auth.",
        examples=["33333333-3333-3333-3333-333333333333"],
    ),
) -> UUID:
    """MVP auth: X-Actor-User-Id header."""
    if not x_actor_user_id:
        raise HTTPException(status_code=401, detail="Missing X-Actor-User-Id header")
    try:
        return UUID(x_actor_user_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail="Invalid X-Actor-User-Id format (must be UUID)") from e


def get_actor_role(
    x_role: str | None = Header(
        default=None,
        alias="X-Role",
        description="Project role of the caller: supplier, customer, admin, contributor, viewer.",
        examples=["supplier", "customer", "admin", "contributor", "viewer"],
    )
) -> str:
    if not x_role or not x_role.strip():
        raise HTTPException(status_code=401, detail="Missing X-Role header")
    return x_role.strip()


def get_actor(
    actor_user_id: UUID = Depends(get_current_user_id),
    role: str = Depends(get_actor_role),
) -> Actor:
    return Actor(user_id=actor_user_id, role=role)
