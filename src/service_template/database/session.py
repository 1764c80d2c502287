"""
Engines and sessions for the command (write) and query (read) databases.

Engines are created on first use from settings, so importing this module
never opens a connection. When QUERY_DATABASE_URL equals DATABASE_URL both
sides share one engine.

FastAPI dependencies:

    async def create_item(db: AsyncSession = Depends(get_command_session)): ...
    async def list_items(db: AsyncSession = Depends(get_query_session)): ...
"""

import logging
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from service_template.config.settings import Settings, get_settings

logger = logging.getLogger(__name__)

_engines: dict[str, AsyncEngine] = {}
_session_makers: dict[str, async_sessionmaker[AsyncSession]] = {}

COMMAND = "command"
QUERY = "query"


def _build_engine(url: str, settings: Settings) -> AsyncEngine:
    kwargs = {"echo": settings.SQLALCHEMY_ECHO, "future": True}
    if not url.startswith("sqlite"):
        # Connection health checks; SQLite's static pools do not need them.
        kwargs["pool_pre_ping"] = True
    return create_async_engine(url, **kwargs)


def get_engine(role: str = COMMAND, settings: Settings | None = None) -> AsyncEngine:
    if role not in _engines:
        settings = settings or get_settings()
        url = settings.DATABASE_URL if role == COMMAND else settings.QUERY_DATABASE_URL
        if role == QUERY and url == settings.DATABASE_URL:
            _engines[QUERY] = get_engine(COMMAND, settings)
        else:
            _engines[role] = _build_engine(url, settings)
        logger.info("db.engine.created", extra={"role": role, "dialect": _engines[role].dialect.name})
    return _engines[role]


def get_session_maker(role: str = COMMAND) -> async_sessionmaker[AsyncSession]:
    if role not in _session_makers:
        _session_makers[role] = async_sessionmaker(
            bind=get_engine(role),
            class_=AsyncSession,
            expire_on_commit=False,
        )
    return _session_makers[role]


async def get_command_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Session for writes. Commits when the request finishes cleanly, rolls back otherwise.
    """
    async with get_session_maker(COMMAND)() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_query_session() -> AsyncGenerator[AsyncSession, None]:
    """Session for reads; nothing is committed."""
    async with get_session_maker(QUERY)() as session:
        yield session


async def dispose_engines() -> None:
    """Close every pool. Called from the application lifespan on shutdown."""
    disposed: set[int] = set()
    for role, engine in list(_engines.items()):
        if id(engine) in disposed:
            continue
        await engine.dispose()
        disposed.add(id(engine))
        logger.info("db.engine.disposed", extra={"role": role})
    _engines.clear()
    _session_makers.clear()


__all__ = [
    "COMMAND",
    "QUERY",
    "get_engine",
    "get_session_maker",
    "get_command_session",
    "get_query_session",
    "dispose_engines",
]
