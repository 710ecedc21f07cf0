"""transitops Pydantic models for type-safe data validation.

Payloads entering the installation-attribute engine and the results it
returns. Storage rows live in ``transitops.db.models``.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FieldType(str, Enum):
    """Supported field types for installation schemas."""

    NUMBER = "number"
    STRING = "string"
    BOOLEAN = "boolean"
    DATE = "date"
    LONG_TEXT = "long_text"
    ENUM = "enum"


ENUM_VALUES_KEY = "enumValues"


class InstallationType(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    code: str
    description: str | None = None
    active: bool = True


class Installation(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None = None
    installation_type_id: int | None = None


class InstallationSchema(BaseModel):
    """Field definition owned by an installation type."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    installation_type_id: int
    name: str
    description: str | None = None
    type: FieldType
    options: dict[str, Any] = Field(default_factory=dict)
    required: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def enum_values(self) -> list[str]:
        return list(self.options.get(ENUM_VALUES_KEY) or [])


class CreateInstallationSchemaPayload(BaseModel):
    installation_type_id: int
    name: str
    description: str | None = None
    type: FieldType
    options: dict[str, Any] = Field(default_factory=dict)
    required: bool = False


class UpdateInstallationSchemaPayload(BaseModel):
    """Partial update; only explicitly set fields are written."""

    name: str | None = None
    description: str | None = None
    type: FieldType | None = None
    options: dict[str, Any] | None = None
    required: bool | None = None


class SyncInstallationSchemaPayload(BaseModel):
    """One desired field in a schema sync.

    With ``id`` the entry updates that schema (only the fields provided);
    without it the entry creates a new schema and needs ``name`` and ``type``.
    ``type`` stays a plain string so unsupported values are reported with the
    rest of the batch instead of failing model construction.
    """

    id: int | None = None
    name: str | None = None
    description: str | None = None
    type: str | None = None
    options: dict[str, Any] | None = None
    required: bool | None = None

    class Config:
        json_schema_extra = {
            "example": {
                "name": "platforms",
                "description": "Boarding platforms",
                "type": "number",
                "required": True,
            }
        }


class PropertyInput(BaseModel):
    """Raw property value keyed by schema name."""

    name: str
    value: str

    @field_validator("value", mode="before")
    @classmethod
    def coerce_to_text(cls, v: Any) -> Any:
        # Storage is always text; accept JSON scalars from API clients.
        if isinstance(v, bool):
            return "true" if v else "false"
        if isinstance(v, (int, float, Decimal)):
            return str(v)
        if v is None:
            return ""
        return v


class PropertyWithSchema(BaseModel):
    """Decoded property value together with its field definition."""

    id: int | None = None
    schema_id: int
    name: str
    description: str | None = None
    type: FieldType
    required: bool
    options: dict[str, Any] = Field(default_factory=dict)
    value: int | float | bool | str | None = None
