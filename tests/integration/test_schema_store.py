"""Integration tests for SchemaStore and the installation catalog stores."""

from __future__ import annotations

import pytest
import pytest_asyncio
from sqlalchemy import select

from transitops.db.models import InstallationSchemaModel
from transitops.errors import NotFoundError
from transitops.installations.catalog import InstallationStore, InstallationTypeStore
from transitops.installations.schema_store import SchemaStore, UniquenessCheck
from transitops.models import (
    CreateInstallationSchemaPayload,
    FieldType,
    UpdateInstallationSchemaPayload,
)


@pytest_asyncio.fixture()
async def terminal_id(db_session) -> int:
    installation_type = await InstallationTypeStore(db_session).create("Terminal de Pasajeros", "TERMINAL")
    return installation_type.id


@pytest_asyncio.fixture()
async def capacity(db_session, terminal_id):
    return await SchemaStore(db_session).create(
        CreateInstallationSchemaPayload(
            installation_type_id=terminal_id,
            name="capacity",
            description="Número máximo de pasajeros",
            type=FieldType.NUMBER,
            required=True,
        )
    )


class TestSchemaStore:
    @pytest.mark.asyncio
    async def test_create_and_find(self, db_session, capacity):
        found = await SchemaStore(db_session).find_one(capacity.id)

        assert found.name == "capacity"
        assert found.type == FieldType.NUMBER
        assert found.options == {}
        assert found.created_at is not None

    @pytest.mark.asyncio
    async def test_find_missing(self, db_session):
        with pytest.raises(NotFoundError):
            await SchemaStore(db_session).find_one(12345)

    @pytest.mark.asyncio
    async def test_update_applies_only_set_fields(self, db_session, capacity):
        updated = await SchemaStore(db_session).update(
            capacity.id, UpdateInstallationSchemaPayload(required=False)
        )

        assert updated.required is False
        assert updated.description == "Número máximo de pasajeros"
        assert updated.installation_type_id == capacity.installation_type_id

    @pytest.mark.asyncio
    async def test_soft_delete_hides_schema(self, db_session, terminal_id, capacity):
        store = SchemaStore(db_session)

        await store.delete(capacity.id)

        assert await store.find_by_installation_type_id(terminal_id) == []
        with pytest.raises(NotFoundError):
            await store.find_one(capacity.id)
        row = await db_session.get(InstallationSchemaModel, capacity.id)
        assert row.deleted_at is not None

    @pytest.mark.asyncio
    async def test_forced_delete_removes_row(self, db_session, capacity):
        await SchemaStore(db_session).delete_many([capacity.id], force=True)

        result = await db_session.execute(
            select(InstallationSchemaModel).where(InstallationSchemaModel.id == capacity.id)
        )
        assert result.scalar_one_or_none() is None

    @pytest.mark.asyncio
    async def test_delete_missing(self, db_session):
        with pytest.raises(NotFoundError):
            await SchemaStore(db_session).delete(12345)

    @pytest.mark.asyncio
    async def test_find_by_type_is_ordered_by_creation(self, db_session, terminal_id, capacity):
        store = SchemaStore(db_session)
        for name in ("platforms", "services"):
            await store.create(
                CreateInstallationSchemaPayload(
                    installation_type_id=terminal_id, name=name, type=FieldType.STRING
                )
            )

        schemas = await store.find_by_installation_type_id(terminal_id)

        assert [s.name for s in schemas] == ["capacity", "platforms", "services"]


class TestCheckUniqueness:
    @pytest.mark.asyncio
    async def test_existing_name_conflicts_case_insensitively(self, db_session, terminal_id, capacity):
        check = UniquenessCheck("name", "CAPACITY", "installation_type_id", terminal_id)

        assert await SchemaStore(db_session).check_uniqueness([check]) == [check]

    @pytest.mark.asyncio
    async def test_exclude_id(self, db_session, terminal_id, capacity):
        check = UniquenessCheck("name", "capacity", "installation_type_id", terminal_id)

        assert await SchemaStore(db_session).check_uniqueness([check], exclude_id=capacity.id) == []

    @pytest.mark.asyncio
    async def test_scope_limits_check(self, db_session, capacity):
        other_type = await InstallationTypeStore(db_session).create("Parada de Autobús", "PARADA")
        check = UniquenessCheck("name", "capacity", "installation_type_id", other_type.id)

        assert await SchemaStore(db_session).check_uniqueness([check]) == []

    @pytest.mark.asyncio
    async def test_soft_deleted_rows_do_not_conflict(self, db_session, terminal_id, capacity):
        store = SchemaStore(db_session)
        await store.delete(capacity.id)

        check = UniquenessCheck("name", "capacity", "installation_type_id", terminal_id)
        assert await store.check_uniqueness([check]) == []


class TestCatalog:
    @pytest.mark.asyncio
    async def test_type_lookup_by_code(self, db_session, terminal_id):
        store = InstallationTypeStore(db_session)

        found = await store.find_by_code("terminal")

        assert found is not None
        assert found.id == terminal_id
        assert await store.find_by_code("AEROPUERTO") is None

    @pytest.mark.asyncio
    async def test_missing_type(self, db_session):
        with pytest.raises(NotFoundError):
            await InstallationTypeStore(db_session).find_one(999)

    @pytest.mark.asyncio
    async def test_installations_by_type(self, db_session, terminal_id):
        store = InstallationStore(db_session)
        await store.create("Terminal Central", terminal_id)
        await store.create("Bodega", None)

        assert [i.name for i in await store.list(terminal_id)] == ["Terminal Central"]
        assert len(await store.list()) == 2
        assert (await store.find_by_name("terminal central")).installation_type_id == terminal_id
