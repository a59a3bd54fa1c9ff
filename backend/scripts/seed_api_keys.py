"""
Create the standard API keys for external integrations.

  python scripts/seed_api_keys.py            # from backend/

Prints each plain key once; only bcrypt hashes are stored, so a lost key
has to be replaced, not recovered.
"""

import asyncio

from theater.core.logging import setup_logging
from theater.db.base import Base
from theater.db.session import AsyncSessionLocal, engine
from theater.services.auth_service import create_api_key

import theater.models  # noqa: F401

KEYS = [
    ("Read Only Integration", ["read"], 100),
    ("Booking Partner", ["read", "book", "cancel"], 200),
    ("Administrator", ["admin"], 1000),
]


async def seed() -> list[tuple[str, list[str], str]]:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    created = []
    async with AsyncSessionLocal() as session:
        for name, permissions, rate_limit in KEYS:
            _, plain = await create_api_key(session, name, permissions, rate_limit=rate_limit)
            created.append((name, permissions, plain))
        await session.commit()
    await engine.dispose()
    return created


def main() -> None:
    setup_logging()
    created = asyncio.run(seed())

    print("\n" + "=" * 60)
    print("API keys created. Store them now, they are not shown again.")
    print("=" * 60)
    for name, permissions, plain in created:
        print(f"\n{name} ({', '.join(permissions)})")
        print(f"  {plain}")
    print("\nUse as:  Authorization: ApiKey <key>")
    print("or exchange at POST /api/v1/auth/token for a bearer token.\n")


if __name__ == "__main__":
    main()
