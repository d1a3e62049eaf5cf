# backend/tutorbook/api/dependencies/auth.py
"""
Caller identity dependencies.

Authentication happens upstream; the gateway forwards the resolved caller
in the ``X-Actor-Role`` and ``X-Actor-Id`` headers.
"""

from typing import Optional

from fastapi import Depends, Header, HTTPException, status

from ...core.actor import Actor
from ...core.enums import ActorRole


def get_current_actor(
    x_actor_role: Optional[str] = Header(None),
    x_actor_id: Optional[str] = Header(None),
) -> Actor:
    if not x_actor_role or not x_actor_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": "Caller identity headers are missing", "code": "UNAUTHENTICATED"},
        )
    try:
        role = ActorRole(x_actor_role.strip().lower())
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": f"Unknown role: {x_actor_role}", "code": "UNAUTHENTICATED"},
        )
    return Actor(role=role, id=x_actor_id.strip())


def require_admin(actor: Actor = Depends(get_current_actor)) -> Actor:
    if not actor.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"message": "Administrator access required", "code": "NOT_AUTHORIZED"},
        )
    return actor
