"""Installation type schema routes.

Routes:
- GET /installation/types/{installation_type_id}/schemas       - List live field schemas
- PUT /installation/types/{installation_type_id}/schemas/sync  - Replace the field set
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from transitops.installations.aggregate import InstallationAggregate
from transitops.web.dependencies import get_aggregate
from transitops.web.models import (
    FieldValidationResponse,
    ListInstallationSchemasResult,
    SyncSchemasRequest,
)

router = APIRouter(prefix="/installation/types", tags=["installation-types"])


@router.get(
    "/{installation_type_id}/schemas",
    response_model=ListInstallationSchemasResult,
)
async def list_installation_schemas(
    installation_type_id: int,
    aggregate: InstallationAggregate = Depends(get_aggregate),
):
    """Field schemas of an installation type, in creation order."""
    return {"data": await aggregate.list_schemas(installation_type_id)}


@router.put(
    "/{installation_type_id}/schemas/sync",
    response_model=ListInstallationSchemasResult,
    responses={422: {"model": FieldValidationResponse}},
)
async def sync_installation_schemas(
    installation_type_id: int,
    body: SyncSchemasRequest,
    aggregate: InstallationAggregate = Depends(get_aggregate),
):
    """Create, update or delete schemas so the type matches ``body.schemas``.

    Entries with an ``id`` update that schema; entries without one are
    created; current schemas missing from the list are deleted.
    """
    return {"data": await aggregate.sync_schemas(installation_type_id, body.schemas)}
