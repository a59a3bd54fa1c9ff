"""
Authentication service: API key issuing, validation and token exchange.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from theater.models.api_key import ApiKey
from theater.core.config import get_settings
from theater.core.exceptions import AuthenticationError
from theater.core.security import (
    Principal,
    api_key_lookup_prefix,
    create_principal_token,
    generate_api_key,
    hash_api_key,
    normalize_permissions,
    verify_api_key,
)
from theater.core.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()


def principal_for(key: ApiKey) -> Principal:
    return Principal(
        id=key.id,
        name=key.name,
        permissions=frozenset(key.permissions or []),
        rate_limit=key.rate_limit,
    )


async def create_api_key(
    db: AsyncSession,
    name: str,
    permissions,
    rate_limit: Optional[int] = None,
) -> tuple[ApiKey, str]:
    """
    Create a key and return (record, plain key).
    The plain key is not stored and cannot be recovered later.
    """
    plain = generate_api_key()
    key = ApiKey(
        name=name,
        key_prefix=api_key_lookup_prefix(plain),
        key_hash=hash_api_key(plain),
        permissions=normalize_permissions(permissions),
        rate_limit=rate_limit or settings.DEFAULT_RATE_LIMIT_PER_MINUTE,
        is_active=True,
    )
    db.add(key)
    await db.flush()
    await db.refresh(key)

    logger.info("api_key_created", api_key_id=key.id, name=name, permissions=key.permissions)
    return key, plain


async def validate_api_key(db: AsyncSession, api_key: str) -> Optional[ApiKey]:
    """Return the active key matching api_key, or None."""
    if not api_key.startswith(settings.API_KEY_PREFIX):
        return None

    result = await db.execute(
        select(ApiKey).where(
            ApiKey.key_prefix == api_key_lookup_prefix(api_key),
            ApiKey.is_active.is_(True),
        )
    )
    for key in result.scalars().all():
        if verify_api_key(api_key, key.key_hash):
            key.last_used_at = datetime.now(timezone.utc)
            await db.flush()
            return key
    return None


async def issue_token(db: AsyncSession, api_key: str) -> tuple[str, Principal]:
    """
    Exchange an API key for a JWT access token.
    Raises 401 if the key is unknown or inactive.
    """
    key = await validate_api_key(db, api_key)
    if key is None:
        logger.warning("token_request_rejected", key_prefix=api_key[:6])
        raise AuthenticationError("Invalid API key")

    principal = principal_for(key)
    token = create_principal_token(principal)
    logger.info("token_issued", api_key_id=key.id, permissions=sorted(principal.permissions))
    return token, principal
