"""Script to initialize the database."""

import asyncio

from booking_engine.database import create_tables, engine


async def init_db() -> None:
    """Initialize the database by creating all booking tables."""
    await create_tables()
    await engine.dispose()
    print("✓ Database initialized successfully!")


if __name__ == "__main__":
    asyncio.run(init_db())
