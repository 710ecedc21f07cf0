"""Installation property routes.

Routes:
- GET /installations/{installation_id}/properties - Decoded values with field metadata
- PUT /installations/{installation_id}/properties - Upsert values by field name
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from transitops.installations.aggregate import InstallationAggregate
from transitops.web.dependencies import get_aggregate
from transitops.web.models import FieldValidationResponse, ListPropertiesResult, SetPropertiesRequest

router = APIRouter(prefix="/installations", tags=["installations"])


@router.get("/{installation_id}/properties", response_model=ListPropertiesResult)
async def get_installation_properties(
    installation_id: int,
    aggregate: InstallationAggregate = Depends(get_aggregate),
):
    return {"data": await aggregate.get_properties_with_schema(installation_id)}


@router.put(
    "/{installation_id}/properties",
    response_model=ListPropertiesResult,
    responses={422: {"model": FieldValidationResponse}},
)
async def set_installation_properties(
    installation_id: int,
    body: SetPropertiesRequest,
    aggregate: InstallationAggregate = Depends(get_aggregate),
):
    """Upsert the given values; fields not in the request keep their value."""
    return {"data": await aggregate.set_properties(installation_id, body.properties)}
