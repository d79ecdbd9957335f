"""Dependency injection for FastAPI endpoints"""

from typing import List
from fastapi import Depends, Header, HTTPException, Request, status
from qurban_savings.domain.models import Actor
from qurban_savings.infrastructure.clients.catalog import CatalogClient
from qurban_savings.infrastructure.clients.ledger import LedgerClient


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_catalog_client() -> CatalogClient:
    """Provide package catalog client instance"""
    return CatalogClient()


def get_ledger_client() -> LedgerClient:
    """Provide accounting webhook client instance"""
    return LedgerClient()


def get_actor(
    x_actor_id: str | None = Header(default=None),
    x_actor_roles: str | None = Header(default=None),
) -> Actor:
    """
    Staff identity forwarded by the authenticating gateway.

    Raises:
        HTTPException 401 if no actor id was forwarded
    """
    if not x_actor_id or not x_actor_id.strip():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing actor identity")

    roles = [role.strip() for role in (x_actor_roles or "").split(",") if role.strip()]
    return Actor(id=x_actor_id.strip(), roles=roles)


def require_role(allowed_roles: List[str]):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.post("/deposits/{deposit_id}/verify")
        def verify(actor: Actor = Depends(require_role(VERIFIER_ROLES))):
            ...

    Raises:
        HTTPException 403 if none of the actor's roles is allowed
    """

    def role_checker(actor: Actor = Depends(get_actor)) -> Actor:
        if not actor.has_any_role(allowed_roles):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required role: {', '.join(allowed_roles)}",
            )
        return actor

    return role_checker
