"""Standalone cron runner for the hot-news refresh.

Runs one refresh of every enabled platform against the database directly,
then purges batches that fell out of the retention window. Meant to be
invoked by a scheduler such as cron.

Usage:
    python -m app.cli.cron_runner

Exit codes:
    0 - Success (individual platforms may still have failed)
    1 - Failure (check logs for details)
"""

import asyncio
import logging
import sys
from datetime import datetime, timezone

from app.config import settings
from app.logging_config import setup_logging
from app.services.batch_refresh_service import purge_expired_news
from app.services.news_ingestion_service import run_ingestion_cycle
from app.services.news_store import SqlNewsStore
from app.utils.db_async import session_scope

setup_logging(level=settings.log_level, access_log=False)
logger = logging.getLogger("app.cli.cron_runner")


async def main() -> int:
    """Run one refresh cycle and the retention purge.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    start_time = datetime.now(timezone.utc)
    logger.info("Starting scheduled news refresh")

    try:
        async with session_scope() as db:
            store = SqlNewsStore(db)
            result = await run_ingestion_cycle(store)
            cutoff, deleted = await purge_expired_news(
                store,
                today=start_time.date(),
                retention_days=settings.news_retention_days,
            )

        elapsed = (datetime.now(timezone.utc) - start_time).total_seconds()

        logger.info(
            f"Refresh complete in {elapsed:.1f}s: "
            f"{result.total_succeeded}/{result.total_requested} platforms, "
            f"{result.total_inserted} items inserted"
        )
        for failed in result.failed_platforms:
            logger.warning(f"Platform failed: {failed}")
        for warning in result.warnings:
            logger.warning(f"Old batch not cleared: {warning}")
        if cutoff is not None:
            logger.info(f"Retention purge removed {deleted} rows before {cutoff}")

        return 0

    except Exception as e:
        elapsed = (datetime.now(timezone.utc) - start_time).total_seconds()
        logger.error(f"Refresh failed after {elapsed:.1f}s: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    exit_code = asyncio.run(main())
    sys.exit(exit_code)
