"""Database setup helpers shared by the API and the indexer script."""

import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from app.models import Base

logger = structlog.get_logger(__name__)


async def create_tables(engine: AsyncEngine) -> None:
    """Create all tables, plus the trigram name index on PostgreSQL."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("database_tables_verified")

    if engine.dialect.name != "postgresql":
        return

    try:
        async with engine.begin() as conn:
            await conn.execute(text("CREATE EXTENSION IF NOT EXISTS pg_trgm"))
            await conn.execute(text(
                "CREATE INDEX IF NOT EXISTS idx_live_results_name_trgm "
                "ON live_results USING gin (lower(name) gin_trgm_ops)"
            ))
        logger.info("trigram_index_created")
    except Exception as e:
        logger.warning("trigram_index_failed", error=str(e))


async def check_database_health(engine: AsyncEngine) -> dict:
    """Check if database is accessible and responsive.

    Returns:
        dict with 'healthy' boolean and optional 'error' message
    """
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return {"healthy": True}
    except Exception as e:
        return {"healthy": False, "error": str(e)}
