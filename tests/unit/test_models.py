"""Unit tests for transitops Pydantic models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from transitops.models import (
    FieldType,
    InstallationSchema,
    PropertyInput,
    SyncInstallationSchemaPayload,
    UpdateInstallationSchemaPayload,
)


class TestPropertyInput:
    @pytest.mark.parametrize(
        ("raw", "stored"),
        [(True, "true"), (False, "false"), (12, "12"), (2.5, "2.5"), (None, ""), ("WiFi", "WiFi")],
    )
    def test_value_is_stored_as_text(self, raw, stored):
        assert PropertyInput(name="f", value=raw).value == stored

    def test_name_required(self):
        with pytest.raises(ValidationError):
            PropertyInput(value="1")


class TestSchemaPayloads:
    def test_sync_payload_keeps_unknown_type_for_batch_reporting(self):
        payload = SyncInstallationSchemaPayload(name="notes", type="text")
        assert payload.type == "text"

    def test_update_payload_tracks_set_fields(self):
        payload = UpdateInstallationSchemaPayload(required=False)
        assert payload.model_dump(exclude_unset=True) == {"required": False}

    def test_schema_enum_values(self):
        schema = InstallationSchema(
            id=1,
            installation_type_id=1,
            name="services",
            type=FieldType.ENUM,
            options={"enumValues": ["WiFi", "Baños"]},
        )
        assert schema.enum_values == ["WiFi", "Baños"]
