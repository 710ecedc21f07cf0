"""Shared dependencies for transitops web routes.

Dependencies are injected using FastAPI's Depends() system, so tests can swap
them with ``app.dependency_overrides``.

Usage:
    from fastapi import Depends
    from transitops.web.dependencies import get_aggregate

    @router.get("/installations/{installation_id}/properties")
    async def properties(installation_id: int, aggregate=Depends(get_aggregate)):
        return await aggregate.get_properties_with_schema(installation_id)
"""

from __future__ import annotations

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from transitops.db.connection import get_session
from transitops.installations.aggregate import InstallationAggregate, create_installation_aggregate

# Global singleton for the aggregate
_aggregate: InstallationAggregate | None = None


def get_aggregate() -> InstallationAggregate:
    """Get the InstallationAggregate bound to the configured database."""
    global _aggregate
    if _aggregate is None:
        _aggregate = create_installation_aggregate()
    return _aggregate


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with get_session() as session:
        yield session
