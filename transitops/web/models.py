"""Request/response models for the transitops web API.

Usage:
    from transitops.web.models import SyncSchemasRequest

    @router.put("/installation/types/{installation_type_id}/schemas/sync")
    async def sync(installation_type_id: int, body: SyncSchemasRequest):
        ...
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from transitops.models import (
    InstallationSchema,
    PropertyInput,
    PropertyWithSchema,
    SyncInstallationSchemaPayload,
)


class SyncSchemasRequest(BaseModel):
    """Desired field set for one installation type.

    Used by: PUT /installation/types/{id}/schemas/sync
    """

    schemas: list[SyncInstallationSchemaPayload] = Field(default_factory=list)


class SetPropertiesRequest(BaseModel):
    """Used by: PUT /installations/{id}/properties"""

    properties: list[PropertyInput] = Field(default_factory=list)


class FieldErrorItem(BaseModel):
    field: str
    code: str
    message: str
    value: Any = None


class FieldValidationResponse(BaseModel):
    message: str = "Validation failed"
    errors: list[FieldErrorItem]


class ListInstallationSchemasResult(BaseModel):
    data: list[InstallationSchema]


class ListPropertiesResult(BaseModel):
    data: list[PropertyWithSchema]
