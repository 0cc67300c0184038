#!/usr/bin/env python3
"""
Initialize the commission engine tables.

Creates every table known to the models (checkfirst) and optionally seeds
the commission percentage settings with their defaults. Existing settings
are left as they are.

Usage:
    python scripts/init_database.py
    python scripts/init_database.py --seed-rates

Production databases should be migrated with `alembic upgrade head`.
"""

import argparse
import asyncio
import sys

from loguru import logger

from commission_engine.config.business_constants import (
    COMMISSION_SETTING_KEYS,
    DEFAULT_COMMISSION_RATES,
)
from commission_engine.config.database import (
    create_engine_from_url,
    create_session_factory,
)
from commission_engine.config.settings import settings
from commission_engine.models import Base
from commission_engine.repositories.system_setting_repository import (
    SystemSettingRepository,
)


# Configure logger for script
logger.remove()
logger.add(sys.stderr, level="INFO", format="{time:HH:mm:ss} | {level} | {message}")


async def seed_rates(session_factory) -> int:
    """Insert missing commission settings; returns how many were added."""
    added = 0
    async with session_factory() as session:
        repo = SystemSettingRepository(session)
        existing = await repo.get_values(COMMISSION_SETTING_KEYS.values())
        for name, key in COMMISSION_SETTING_KEYS.items():
            if key in existing:
                logger.info(f"  {key} = {existing[key]} (kept)")
                continue
            value = str(DEFAULT_COMMISSION_RATES[name])
            await repo.set_value(
                key, value, description=f"{name.replace('_', ' ')} commission (%)"
            )
            logger.info(f"  {key} = {value} (added)")
            added += 1
        await session.commit()
    return added


async def init_database(with_rates: bool) -> None:
    """Create all database tables."""
    logger.info("Connecting to database...")
    engine = create_engine_from_url(settings.database_url)

    try:
        async with engine.begin() as conn:
            logger.info("Creating tables (checkfirst=True)...")
            await conn.run_sync(Base.metadata.create_all, checkfirst=True)

        if with_rates:
            logger.info("Seeding commission settings...")
            added = await seed_rates(create_session_factory(engine))
            logger.info(f"Added {added} commission setting(s)")
    finally:
        await engine.dispose()

    logger.success("Database initialized successfully!")


def main():
    parser = argparse.ArgumentParser(
        description="Create commission engine tables"
    )
    parser.add_argument(
        "--seed-rates",
        action="store_true",
        help="Insert default commission percentages that are missing"
    )
    args = parser.parse_args()
    asyncio.run(init_database(with_rates=args.seed_rates))


if __name__ == "__main__":
    main()
