"""
Store capability probe.

Run once at startup; the result selects query variants so no query has to
be retried after a schema error.
"""

from dataclasses import dataclass

from loguru import logger
from sqlalchemy import inspect
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import AsyncEngine


@dataclass(frozen=True)
class StoreCapabilities:
    """
    What the connected database supports.

    Attributes:
        row_locking: SELECT ... FOR UPDATE is honoured
        lead_ownership: properties.owner_id links sales to leads, so lead
            referrals can earn commission
    """
    row_locking: bool = True
    lead_ownership: bool = True


def _has_owner_column(connection: Connection) -> bool:
    inspector = inspect(connection)
    if not inspector.has_table("properties"):
        return False
    return any(
        column["name"] == "owner_id"
        for column in inspector.get_columns("properties")
    )


async def probe_capabilities(engine: AsyncEngine) -> StoreCapabilities:
    """
    Inspect the database behind `engine`.

    Args:
        engine: Async engine

    Returns:
        Detected capabilities
    """
    async with engine.connect() as connection:
        lead_ownership = await connection.run_sync(_has_owner_column)

    capabilities = StoreCapabilities(
        row_locking=engine.dialect.name != "sqlite",
        lead_ownership=lead_ownership,
    )
    logger.info(
        f"Store capabilities ({engine.dialect.name}): "
        f"row_locking={capabilities.row_locking}, "
        f"lead_ownership={capabilities.lead_ownership}"
    )
    if not capabilities.lead_ownership:
        logger.warning(
            "properties.owner_id is missing: lead referrals will not "
            "earn commission"
        )
    return capabilities
