"""Integration tests for installation property values."""

from __future__ import annotations

import pytest
import pytest_asyncio
from sqlalchemy import func, select

from transitops.db.models import InstallationPropertyModel
from transitops.errors import (
    TYPE_MISMATCH_CODES,
    ErrorCode,
    FieldValidationError,
    NotFoundError,
    ValidationError,
)
from transitops.models import FieldType


@pytest_asyncio.fixture()
async def terminal(aggregate, terminal_schemas):
    installation_type = await aggregate.create_installation_type("Terminal de Pasajeros", "TERMINAL")
    await aggregate.sync_schemas(installation_type.id, terminal_schemas)
    return installation_type


@pytest_asyncio.fixture()
async def installation(aggregate, terminal):
    return await aggregate.create_installation("Terminal Central", terminal.id)


async def stored_count(session_factory) -> int:
    async with session_factory() as session:
        return await session.scalar(select(func.count()).select_from(InstallationPropertyModel))


def values(properties) -> dict:
    return {p.name: p.value for p in properties}


class TestGetPropertiesWithSchema:
    @pytest.mark.asyncio
    async def test_every_schema_is_listed(self, aggregate, installation):
        await aggregate.set_properties(installation.id, [{"name": "capacity", "value": "120"}])

        properties = await aggregate.get_properties_with_schema(installation.id)

        assert len(properties) == 3
        assert values(properties) == {"capacity": 120, "platforms": None, "services": None}
        assert [p.id is None for p in properties] == [False, True, True]

    @pytest.mark.asyncio
    async def test_includes_field_metadata(self, aggregate, installation):
        properties = await aggregate.get_properties_with_schema(installation.id)

        services = properties[2]
        assert services.type == FieldType.ENUM
        assert services.required is False
        assert services.options == {"enumValues": ["Cafetería", "Baños", "WiFi"]}
        assert properties[0].required is True

    @pytest.mark.asyncio
    async def test_missing_installation(self, aggregate):
        with pytest.raises(NotFoundError):
            await aggregate.get_properties_with_schema(404)

    @pytest.mark.asyncio
    async def test_installation_without_type(self, aggregate):
        untyped = await aggregate.create_installation("Bodega", None)

        with pytest.raises(ValidationError) as exc_info:
            await aggregate.get_properties_with_schema(untyped.id)

        assert "no installation type" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_typed_decoding(self, aggregate):
        control = await aggregate.create_installation_type("Punto de Control", "CONTROL")
        await aggregate.sync_schemas(
            control.id,
            [
                {"name": "has_canopy", "type": "boolean"},
                {"name": "opened_on", "type": "date"},
                {"name": "notes", "type": "long_text"},
                {"name": "area", "type": "number"},
            ],
        )
        checkpoint = await aggregate.create_installation("Caseta Norte", control.id)

        properties = await aggregate.set_properties(
            checkpoint.id,
            [
                {"name": "has_canopy", "value": "TRUE"},
                {"name": "opened_on", "value": "2024-05-01"},
                {"name": "notes", "value": "Acceso por carril lateral"},
                {"name": "area", "value": "12.5"},
            ],
        )

        assert values(properties) == {
            "has_canopy": True,
            "opened_on": "2024-05-01",
            "notes": "Acceso por carril lateral",
            "area": 12.5,
        }


class TestSetProperties:
    @pytest.mark.asyncio
    async def test_invalid_number_writes_nothing(self, aggregate, session_factory, installation):
        with pytest.raises(FieldValidationError) as exc_info:
            await aggregate.set_properties(installation.id, [{"name": "capacity", "value": "not_a_number"}])

        errors = exc_info.value.for_field("capacity")
        assert len(errors) == 1
        assert ErrorCode(errors[0].code) in TYPE_MISMATCH_CODES
        assert await stored_count(session_factory) == 0

    @pytest.mark.asyncio
    async def test_valid_entries_are_not_written_when_another_fails(self, aggregate, installation):
        with pytest.raises(FieldValidationError) as exc_info:
            await aggregate.set_properties(
                installation.id,
                [
                    {"name": "platforms", "value": "4"},
                    {"name": "capacity", "value": "abc"},
                    {"name": "services", "value": "Gimnasio"},
                ],
            )

        assert exc_info.value.codes == [
            ErrorCode.INVALID_NUMBER.value,
            ErrorCode.INVALID_ENUM_VALUE.value,
        ]
        properties = await aggregate.get_properties_with_schema(installation.id)
        assert values(properties)["platforms"] is None

    @pytest.mark.asyncio
    async def test_upsert_overwrites_in_place(self, aggregate, installation):
        first = await aggregate.set_properties(installation.id, [{"name": "capacity", "value": "100"}])
        second = await aggregate.set_properties(installation.id, [{"name": "capacity", "value": "200"}])

        assert second[0].value == 200
        assert second[0].id == first[0].id

    @pytest.mark.asyncio
    async def test_unmentioned_fields_are_untouched(self, aggregate, installation):
        await aggregate.set_properties(installation.id, [{"name": "capacity", "value": "100"}])

        properties = await aggregate.set_properties(installation.id, [{"name": "platforms", "value": "6"}])

        assert values(properties) == {"capacity": 100, "platforms": 6, "services": None}

    @pytest.mark.asyncio
    async def test_required_field_cannot_be_blank(self, aggregate, installation):
        with pytest.raises(FieldValidationError) as exc_info:
            await aggregate.set_properties(installation.id, [{"name": "capacity", "value": "  "}])

        assert exc_info.value.codes == [ErrorCode.REQUIRED.value]

    @pytest.mark.asyncio
    async def test_optional_field_can_be_cleared(self, aggregate, installation):
        await aggregate.set_properties(installation.id, [{"name": "services", "value": "WiFi"}])

        properties = await aggregate.set_properties(installation.id, [{"name": "services", "value": ""}])

        assert values(properties)["services"] is None

    @pytest.mark.asyncio
    async def test_names_match_case_insensitively(self, aggregate, installation):
        properties = await aggregate.set_properties(installation.id, [{"name": "Capacity", "value": "80"}])

        assert values(properties)["capacity"] == 80

    @pytest.mark.asyncio
    async def test_scalar_json_values_are_accepted(self, aggregate, installation):
        properties = await aggregate.set_properties(installation.id, [{"name": "platforms", "value": 8}])

        assert values(properties)["platforms"] == 8

    @pytest.mark.asyncio
    async def test_booleans_are_stored_as_true_or_false(self, aggregate, session_factory):
        control = await aggregate.create_installation_type("Punto de Control", "CONTROL")
        await aggregate.sync_schemas(
            control.id, [{"name": "has_canopy", "type": "boolean"}, {"name": "has_lighting", "type": "boolean"}]
        )
        checkpoint = await aggregate.create_installation("Caseta Sur", control.id)

        await aggregate.set_properties(
            checkpoint.id,
            [{"name": "has_canopy", "value": "TRUE"}, {"name": "has_lighting", "value": "0"}],
        )

        async with session_factory() as session:
            stored = (await session.scalars(select(InstallationPropertyModel.value))).all()
        assert sorted(stored) == ["false", "true"]

    @pytest.mark.asyncio
    async def test_unknown_field(self, aggregate, session_factory, installation):
        with pytest.raises(NotFoundError) as exc_info:
            await aggregate.set_properties(
                installation.id,
                [{"name": "capacity", "value": "10"}, {"name": "parking_spots", "value": "3"}],
            )

        assert "parking_spots" in str(exc_info.value)
        assert await stored_count(session_factory) == 0

    @pytest.mark.asyncio
    async def test_same_field_twice(self, aggregate, installation):
        with pytest.raises(FieldValidationError) as exc_info:
            await aggregate.set_properties(
                installation.id,
                [{"name": "capacity", "value": "10"}, {"name": "CAPACITY", "value": "20"}],
            )

        assert [(e.field, e.code) for e in exc_info.value.errors] == [
            ("properties[1].name", ErrorCode.DUPLICATE_NAME_IN_BATCH.value)
        ]

    @pytest.mark.asyncio
    async def test_installation_without_type(self, aggregate):
        untyped = await aggregate.create_installation("Bodega", None)

        with pytest.raises(ValidationError):
            await aggregate.set_properties(untyped.id, [{"name": "capacity", "value": "1"}])

    @pytest.mark.asyncio
    async def test_missing_installation(self, aggregate):
        with pytest.raises(NotFoundError):
            await aggregate.set_properties(404, [{"name": "capacity", "value": "1"}])


class TestSchemaChanges:
    @pytest.mark.asyncio
    async def test_value_left_invalid_by_type_change_reads_as_none(self, aggregate, terminal, installation):
        await aggregate.set_properties(installation.id, [{"name": "capacity", "value": "120"}])
        schemas = await aggregate.list_schemas(terminal.id)

        await aggregate.sync_schemas(
            terminal.id,
            [{"id": schemas[0].id, "type": "boolean"}, {"id": schemas[1].id}, {"id": schemas[2].id}],
        )

        properties = await aggregate.get_properties_with_schema(installation.id)
        assert properties[0].type == FieldType.BOOLEAN
        assert properties[0].value is None

    @pytest.mark.asyncio
    async def test_deleted_schema_disappears_from_properties(self, aggregate, terminal, installation):
        await aggregate.set_properties(installation.id, [{"name": "services", "value": "WiFi"}])
        schemas = await aggregate.list_schemas(terminal.id)

        await aggregate.sync_schemas(terminal.id, [{"id": schemas[0].id}, {"id": schemas[1].id}])

        properties = await aggregate.get_properties_with_schema(installation.id)
        assert [p.name for p in properties] == ["capacity", "platforms"]
