"""Script to create an initial admin access key."""

import asyncio

from translation_service.auth.security import create_access_key
from translation_service.db.session import async_session_maker, init_db


async def main():
    """Create initial admin access key."""
    print("Initializing database...")
    await init_db()

    print("Creating admin access key...")
    async with async_session_maker() as db:
        access_key, full_key = await create_access_key(
            db,
            name="Admin Key",
            owner="admin",
            scopes=["read", "manage"],
            rate_limit_per_minute=1000,
            rate_limit_per_hour=10000,
            expires_in_days=None,  # Never expires
        )
        await db.commit()

        print("\n" + "=" * 60)
        print("ADMIN ACCESS KEY CREATED SUCCESSFULLY")
        print("=" * 60)
        print(f"\nAccess Key: {full_key}")
        print(f"Key ID:     {access_key.id}")
        print(f"Prefix:     {access_key.key_prefix}")
        print("\nSAVE THIS KEY NOW - IT WILL NOT BE SHOWN AGAIN!")
        print("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
