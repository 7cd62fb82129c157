"""Async SQLAlchemy engine and session helpers."""

import ssl
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, AsyncIterator, Callable, Dict, Optional, Tuple

from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from app.config import settings

# libpq query args asyncpg rejects as connect kwargs
_UNSUPPORTED_QUERY_ARGS = ("sslmode", "channel_binding")


def _unverified_context() -> ssl.SSLContext:
    context = ssl.create_default_context()
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE
    return context


def _ca_only_context() -> ssl.SSLContext:
    context = ssl.create_default_context()
    context.check_hostname = False
    return context


# sslmode -> factory for the asyncpg ``ssl`` argument; None leaves negotiation to the driver
_SSL_MODES: Dict[str, Optional[Callable[[], Any]]] = {
    "disable": lambda: False,
    "allow": None,
    "prefer": None,
    "require": _unverified_context,
    "verify-ca": _ca_only_context,
    "verify-full": ssl.create_default_context,
}


def _as_async_url(url: URL) -> URL:
    """Select asyncpg for bare ``postgres``/``postgresql`` URLs."""
    if url.drivername in ("postgres", "postgresql"):
        return url.set(drivername="postgresql+asyncpg")
    return url


def _prepare_asyncpg_connection(raw_url: str) -> Tuple[str, Dict[str, Any]]:
    """Return a driver-ready URL plus asyncpg ``connect_args``.

    Hosted Postgres providers hand out libpq-style URLs
    (``?sslmode=require&channel_binding=require``); asyncpg wants TLS passed
    as an ``ssl`` argument instead, so those query args are translated here.
    """
    url = _as_async_url(make_url(raw_url))
    sslmode = url.query.get("sslmode")
    url = url.difference_update_query(_UNSUPPORTED_QUERY_ARGS)

    connect_args: Dict[str, Any] = {}
    if isinstance(sslmode, str):
        # Unknown modes get the strictest context
        factory = _SSL_MODES.get(sslmode.lower(), ssl.create_default_context)
        if factory is not None:
            connect_args["ssl"] = factory()

    return url.render_as_string(hide_password=False), connect_args


DATABASE_URL, CONNECT_ARGS = _prepare_asyncpg_connection(settings.database_url)

engine = create_async_engine(
    DATABASE_URL,
    echo=settings.sql_echo,
    pool_pre_ping=True,
    connect_args=CONNECT_ARGS,
)
SessionLocal = async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async database session (FastAPI dependency)."""
    async with SessionLocal() as session:
        yield session


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """Session for jobs run outside a request; the engine is disposed on exit."""
    try:
        async with SessionLocal() as session:
            yield session
    finally:
        await dispose_engine()


async def init_db():
    """Create any missing tables."""
    # Imported here so every table is registered on SQLModel.metadata
    from app.schemas import (  # noqa: F401
        news,
        platforms,
        search_history,
        system_config,
        user_favorites,
        user_preferences,
    )

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def dispose_engine() -> None:
    await engine.dispose()


def describe_database_url(url: str) -> str:
    """Return the DB URL without credentials, for startup logging."""
    try:
        u = make_url(url)
    except ArgumentError:
        return "<unparseable database URL>"
    port = f":{u.port}" if u.port else ""
    return f"{u.drivername}://{u.username or '?'}@{u.host or '?'}{port}/{u.database or '?'}"
