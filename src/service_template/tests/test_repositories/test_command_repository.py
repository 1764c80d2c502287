import pytest
from sqlalchemy import select

from service_template.exceptions import DuplicateError, InvalidFieldError, NotFoundError, RepositoryError
from service_template.i18n.message_keys import MessageKeys
from service_template.tests.test_fixtures.models import Item


@pytest.mark.asyncio
class TestCommandRepositoryCreate:

    async def test_create_success(self, command_repo, sample_item_data):
        """
        Behavior:
            - create(**fields) with valid data returns the persisted entity.

        Importance:
            - Happy path of instantiate, add, flush and refresh; the id comes
              from the database.
        """
        item = await command_repo.create(**sample_item_data)

        assert item.id is not None
        assert item.sku == sample_item_data["sku"]
        assert item.quantity == 3

    async def test_create_applies_column_defaults(self, command_repo):
        item = await command_repo.create(sku="D-1", name="Defaulted")
        assert item.quantity == 0
        assert item.category is None

    async def test_create_rejects_unknown_fields(self, command_repo, sample_item_data):
        with pytest.raises(InvalidFieldError) as excinfo:
            await command_repo.create(**sample_item_data, colour="red")

        assert excinfo.value.fields == ["colour"]
        assert excinfo.value.message_key == MessageKeys.ERROR_UNKNOWN_FIELDS
        assert excinfo.value.http_status() == 422

    async def test_create_rejects_missing_required_fields(self, command_repo):
        with pytest.raises(RepositoryError) as excinfo:
            await command_repo.create(sku="M-1")

        assert excinfo.value.fields == ["name"]
        assert excinfo.value.message_key == MessageKeys.ERROR_MISSING_FIELDS
        assert excinfo.value.http_status() == 400

    async def test_create_detects_duplicates_before_insert(self, command_repo, sample_item_data):
        await command_repo.create(**sample_item_data)

        with pytest.raises(DuplicateError) as excinfo:
            await command_repo.create(**{**sample_item_data, "name": "Other"})

        assert excinfo.value.fields == ["sku"]
        assert excinfo.value.http_status() == 409

    async def test_integrity_error_on_save_is_mapped(self, command_repo, db_session, sample_item_data):
        """
        Behavior:
            - save() skips the duplicate pre-check, so the database raises an
              IntegrityError, which db_error_handler turns into DuplicateError.
        """
        await command_repo.create(**sample_item_data)

        with pytest.raises(DuplicateError):
            await command_repo.save(Item(sku=sample_item_data["sku"], name="Clash"))

        # The session was rolled back and is usable again.
        count = len((await db_session.execute(select(Item))).scalars().all())
        assert count == 0


@pytest.mark.asyncio
class TestCommandRepositorySave:

    async def test_save_all(self, command_repo):
        items = await command_repo.save_all([Item(sku="S-1", name="One"), Item(sku="S-2", name="Two")])

        assert [i.sku for i in items] == ["S-1", "S-2"]
        assert all(i.id is not None for i in items)

    async def test_save_all_empty(self, command_repo):
        assert await command_repo.save_all([]) == []


@pytest.mark.asyncio
class TestCommandRepositoryUpdate:

    async def test_update_detached_entity(self, command_repo, create_item, db_session):
        item = await create_item(name="Old")

        updated = await command_repo.update(Item(id=item.id, name="New"))

        assert updated.id == item.id
        assert updated.name == "New"
        # Attributes not set on the detached copy keep their stored values.
        assert updated.sku == item.sku

    async def test_update_missing_entity(self, command_repo):
        with pytest.raises(NotFoundError) as excinfo:
            await command_repo.update(Item(id=9999, name="Ghost"))

        assert excinfo.value.message_key == MessageKeys.ERROR_INFRASTRUCTURE_NO_RECORD_BY_ID
        assert excinfo.value.params == (9999,)
        assert excinfo.value.http_status() == 404

    async def test_update_all(self, command_repo, create_item):
        first = await create_item()
        second = await create_item()

        updated = await command_repo.update_all(
            [Item(id=first.id, quantity=100), Item(id=second.id, quantity=200)]
        )

        assert [u.quantity for u in updated] == [100, 200]

    async def test_update_all_checks_every_key_first(self, command_repo, create_item):
        item = await create_item(quantity=1)

        with pytest.raises(NotFoundError):
            await command_repo.update_all([Item(id=item.id, quantity=5), Item(id=424242, quantity=6)])

        assert item.quantity == 1


@pytest.mark.asyncio
class TestCommandRepositoryDelete:

    async def test_delete(self, command_repo, create_item, db_session):
        item = await create_item()

        await command_repo.delete(item.id)

        assert await db_session.get(Item, item.id) is None

    async def test_delete_missing_raises_not_found(self, command_repo):
        with pytest.raises(NotFoundError):
            await command_repo.delete(12345)

    async def test_delete_all_ignores_missing_keys(self, command_repo, create_item, db_session):
        first = await create_item()
        second = await create_item()
        keep = await create_item()

        deleted = await command_repo.delete_all([first.id, second.id, 999999])

        assert deleted == 2
        remaining = (await db_session.execute(select(Item.id))).scalars().all()
        assert remaining == [keep.id]

    async def test_delete_all_empty(self, command_repo):
        assert await command_repo.delete_all([]) == 0
