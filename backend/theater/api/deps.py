"""
Request dependencies: who is calling, what they may do, and the per-app
state (inventories, rate limiter) the routes work against.
"""

from typing import Optional

import structlog
from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from theater.core.exceptions import AuthenticationError
from theater.core.rate_limit import RateLimiter
from theater.core.security import Permission, Principal, decode_principal_token
from theater.db.session import get_db
from theater.services.auth_service import principal_for, validate_api_key
from theater.services.inventory_registry import InventoryRegistry


def get_registry(request: Request) -> InventoryRegistry:
    return request.app.state.inventory_registry


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


async def get_current_principal(
    authorization: Optional[str] = Header(default=None),
    db: AsyncSession = Depends(get_db),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> Principal:
    """
    Resolve the Authorization header to a Principal.

    Accepted schemes:
      Bearer <jwt>     token from /auth/token
      ApiKey <key>     the raw API key, checked against the database
    """
    if not authorization:
        raise AuthenticationError("Missing Authorization header")

    scheme, _, credentials = authorization.partition(" ")
    credentials = credentials.strip()
    if not credentials:
        raise AuthenticationError("Malformed Authorization header")

    if scheme.lower() == "bearer":
        principal = decode_principal_token(credentials)
    elif scheme.lower() == "apikey":
        key = await validate_api_key(db, credentials)
        if key is None:
            raise AuthenticationError("Invalid API key")
        principal = principal_for(key)
    else:
        raise AuthenticationError(f"Unsupported authorization scheme '{scheme}'")

    limiter.hit(principal.id, principal.rate_limit)
    structlog.contextvars.bind_contextvars(api_key_id=principal.id)
    return principal


def require_permission(permission: Permission):
    """Dependency factory: the caller must hold `permission` (admin holds all)."""

    async def dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        principal.require(permission)
        return principal

    return dependency
