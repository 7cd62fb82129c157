"""
FastAPI application for the hot-news aggregator.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.config import settings
from app.logging_config import setup_logging
from app.routes import admin, favorites, news, platforms, search
from app.utils.db_async import DATABASE_URL, describe_database_url, dispose_engine, init_db

setup_logging(level=settings.log_level, access_log=settings.access_log)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"DB target: {describe_database_url(DATABASE_URL)}")
    logger.info(
        f"Provider {settings.hot_news_api_url} "
        f"(timeout {settings.hot_news_timeout_seconds:.0f}s, "
        f"scoring={settings.score_strategy}, retention={settings.news_retention_days}d)"
    )

    # Migrations own the schema outside dev
    if settings.is_dev and settings.auto_init_db:
        try:
            await init_db()
            logger.info("Tables ready")
        except Exception:
            logger.exception("init_db failed")
            raise

    yield

    await dispose_engine()
    logger.info("DB engine disposed")


app = FastAPI(title="Hot News Aggregator", lifespan=lifespan)

for module in (news, platforms, favorites, search, admin):
    app.include_router(module.router)


@app.get("/health")
async def health_check():
    """Health Check Endpoint"""
    return {"status": "ok", "env": settings.env}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8080)
