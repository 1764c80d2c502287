"""
Core pytest configuration for the entire test suite.

Database setup and logging live here. Domain fixtures live in
tests/test_fixtures/ and are imported at the bottom of this module so every
test module can use them.
"""

import logging
from typing import AsyncGenerator

# -------------------------------
# Early logging tuning
# -------------------------------
# Silence noisy third-party loggers before importing modules that may
# initialize them (Faker, SQLAlchemy, ...).
NOISY_LOGGERS = (
    "faker",
    "faker.factory",
    "sqlalchemy",
    "sqlalchemy.engine",
    "sqlalchemy.engine.Engine",
    "asyncio",
    "httpx",
    "aiosqlite",
)
for _name in NOISY_LOGGERS:
    logging.getLogger(_name).setLevel(logging.WARNING)

import pytest
from pytest import FixtureRequest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from service_template.config.settings import Settings
from service_template.core.logging.builder import setup_logging
from service_template.database.base import Base
from .test_fixtures import models  # noqa: F401 - registers test models with Base.metadata
from .test_fixtures.app_fixtures import make_settings


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return make_settings()


@pytest.fixture(scope="session", autouse=True)
def configure_logging(request: FixtureRequest, test_settings: Settings):
    """
    Install application logging for the whole session.

    dictConfig drops pytest's capture handler from the root logger; it is
    re-attached so `caplog.records` keeps working.
    """
    setup_logging(test_settings)

    caplog_plugin = request.config.pluginmanager.getplugin("logging-plugin")
    handler = getattr(caplog_plugin, "caplog_handler", None)
    if handler is not None:
        logging.getLogger().addHandler(handler)

    yield


# ------------------------------------------------------------------------------------------------
# DATABASE FIXTURES
# ------------------------------------------------------------------------------------------------

@pytest.fixture()
async def async_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """A fresh SQLite database file per test."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", future=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture()
async def db_session(async_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    maker = async_sessionmaker(bind=async_engine, class_=AsyncSession, expire_on_commit=False)
    async with maker() as session:
        yield session


# ------------------------------------------------------------------------------------------------
# Domain fixtures (imported here so they are available suite-wide)
# ------------------------------------------------------------------------------------------------
from .test_fixtures.app_fixtures import app, client  # noqa: E402,F401
from .test_fixtures.pipeline_fixtures import item_store  # noqa: E402,F401
from .test_fixtures.repository_fixtures import (  # noqa: E402,F401
    command_repo,
    create_item,
    query_repo,
    sample_item_data,
)
