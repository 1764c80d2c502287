import pytest
from sqlalchemy import Integer, String, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from service_template.tests.test_fixtures.models import Item
from service_template.validators.model_validators import (
    column_attribute_names,
    find_unique_conflicts,
    find_unknown_model_kwargs,
    get_required_columns,
    get_unique_column_sets,
    primary_key_column,
)


class OtherBase(DeclarativeBase):
    pass


class Shelf(OtherBase):
    __tablename__ = "shelves"
    __table_args__ = (UniqueConstraint("label", "slot"),)

    aisle: Mapped[int] = mapped_column(Integer, primary_key=True)
    slot: Mapped[int] = mapped_column(Integer, primary_key=True)
    label: Mapped[str] = mapped_column(String(20), nullable=False)


def test_required_columns_skip_defaults_and_auto_pk():
    assert get_required_columns(Item) == ["sku", "name"]


def test_unique_sets():
    assert ["sku"] in get_unique_column_sets(Item)
    assert ["label", "slot"] in get_unique_column_sets(Shelf)


def test_column_names_and_unknown_kwargs():
    assert column_attribute_names(Item) == ["id", "sku", "name", "category", "quantity"]
    assert find_unknown_model_kwargs(Item, {"sku": "x", "colour": "red", "size": 3}) == ["colour", "size"]


def test_primary_key_column():
    assert primary_key_column(Item).name == "id"
    with pytest.raises(TypeError, match="exactly one primary key"):
        primary_key_column(Shelf)


async def test_find_unique_conflicts(db_session):
    db_session.add(Item(sku="DUP-1", name="First"))
    await db_session.flush()

    assert await find_unique_conflicts(db_session, Item, {"sku": "DUP-1", "name": "Other"}) == {"sku"}
    assert await find_unique_conflicts(db_session, Item, {"sku": "NEW-1"}) == set()
    assert await find_unique_conflicts(db_session, Item, {"name": "First"}) == set()
