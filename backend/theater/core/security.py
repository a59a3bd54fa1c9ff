"""
Credentials: API keys, JWT access tokens and permission checks.

External integrations hold an API key. They either exchange it for a
short-lived JWT at /auth/token and send `Authorization: Bearer <jwt>`, or
send the key itself as `Authorization: ApiKey <key>`.
"""

import enum
import secrets
import string
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from jose import JWTError, jwt

from theater.core.config import get_settings
from theater.core.exceptions import AuthenticationError, ForbiddenError

settings = get_settings()

_KEY_ALPHABET = string.ascii_letters + string.digits
KEY_BODY_LENGTH = 32
KEY_LOOKUP_LENGTH = 8


class Permission(str, enum.Enum):
    READ = "read"
    BOOK = "book"
    CANCEL = "cancel"
    ADMIN = "admin"


@dataclass(frozen=True)
class Principal:
    """The authenticated caller: an API key and what it may do."""

    id: str
    name: str
    permissions: frozenset = field(default_factory=frozenset)
    rate_limit: int = 100

    def can(self, permission: Permission) -> bool:
        return Permission.ADMIN.value in self.permissions or permission.value in self.permissions

    def require(self, permission: Permission) -> None:
        if not self.can(permission):
            raise ForbiddenError(
                f"API key does not have the '{permission.value}' permission",
                {"required": permission.value},
            )


def normalize_permissions(permissions) -> list[str]:
    """Accept a list of names or the {name: bool} shape older keys use."""
    if isinstance(permissions, dict):
        names = [name for name, granted in permissions.items() if granted]
    else:
        names = list(permissions or [])
    valid = {p.value for p in Permission}
    unknown = [name for name in names if name not in valid]
    if unknown:
        raise ValueError(f"Unknown permissions: {', '.join(unknown)}")
    return sorted(set(names))


# ----------------------------------------------------------------------
# API keys
# ----------------------------------------------------------------------

def generate_api_key() -> str:
    body = "".join(secrets.choice(_KEY_ALPHABET) for _ in range(KEY_BODY_LENGTH))
    return f"{settings.API_KEY_PREFIX}{body}"


def api_key_lookup_prefix(api_key: str) -> str:
    return api_key[len(settings.API_KEY_PREFIX):][:KEY_LOOKUP_LENGTH]


def hash_api_key(api_key: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.API_KEY_HASH_ROUNDS)
    return bcrypt.hashpw(api_key.encode("utf-8"), salt).decode("utf-8")


def verify_api_key(api_key: str, key_hash: str) -> bool:
    return bcrypt.checkpw(api_key.encode("utf-8"), key_hash.encode("utf-8"))


# ----------------------------------------------------------------------
# JWT
# ----------------------------------------------------------------------

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode["exp"] = expire
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_principal_token(principal: Principal) -> str:
    return create_access_token(
        {
            "sub": principal.id,
            "name": principal.name,
            "permissions": sorted(principal.permissions),
            "rate_limit": principal.rate_limit,
        }
    )


def decode_principal_token(token: str) -> Principal:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise AuthenticationError("Invalid or expired token")

    subject = payload.get("sub")
    if not subject:
        raise AuthenticationError("Token has no subject")
    return Principal(
        id=subject,
        name=payload.get("name", ""),
        permissions=frozenset(payload.get("permissions", [])),
        rate_limit=int(payload.get("rate_limit", settings.DEFAULT_RATE_LIMIT_PER_MINUTE)),
    )
