"""Fixtures for repository tests."""

import pytest
from faker import Faker
from sqlalchemy.ext.asyncio import AsyncSession

from service_template.repositories import CommandRepository, QueryRepository

from .models import Item

# NOTE: All fixtures in this file depend on the `db_session` fixture defined in conftest.py


@pytest.fixture
def command_repo(db_session: AsyncSession) -> CommandRepository[Item, int]:
    return CommandRepository(Item, db_session)


@pytest.fixture
def query_repo(db_session: AsyncSession) -> QueryRepository[Item, int]:
    return QueryRepository(Item, db_session)


@pytest.fixture
def sample_item_data() -> dict:
    return {"sku": "SKU-001", "name": "Anvil", "category": "tools", "quantity": 3}


@pytest.fixture
def create_item(command_repo: CommandRepository[Item, int]):
    """
    Factory for persisted items with Faker-generated fields.

    Usage:
        item = await create_item(category="books")
    """
    fake = Faker()

    async def _create(**overrides) -> Item:
        data = {
            "sku": fake.unique.bothify("SKU-####-??"),
            "name": fake.word().title(),
            "category": "tools",
            "quantity": fake.random_int(min=0, max=50),
        }
        data.update(overrides)
        return await command_repo.create(**data)

    return _create
