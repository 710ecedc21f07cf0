"""Entry point for installation schema and property operations.

Each call opens its own session and transaction from the injected session
factory; tests pass a factory bound to an in-memory database.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from transitops.errors import FieldValidationError, NotFoundError, ValidationError
from transitops.installations.catalog import InstallationStore, InstallationTypeStore
from transitops.installations.property_store import PropertyStore
from transitops.installations.schema_store import SchemaStore
from transitops.installations.sync import SchemaSyncEngine
from transitops.models import (
    Installation,
    InstallationSchema,
    InstallationType,
    PropertyInput,
    PropertyWithSchema,
    SyncInstallationSchemaPayload,
)

logger = structlog.get_logger(__name__)


class InstallationAggregate:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def sync_schemas(
        self,
        installation_type_id: int,
        desired: Iterable[SyncInstallationSchemaPayload | Mapping[str, Any]],
    ) -> list[InstallationSchema]:
        """Replace a type's field set with ``desired`` in one transaction.

        Returns the type's schemas as stored after commit.

        Raises:
            NotFoundError: If the installation type does not exist
            FieldValidationError: With every violation in the batch
            ValidationError: Wrapping any other failure (e.g. a storage
                constraint hit by a concurrent sync)
        """
        desired = list(desired)
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    await InstallationTypeStore(session).find_one(installation_type_id)
                    await SchemaSyncEngine(SchemaStore(session)).sync(installation_type_id, desired)
        except (FieldValidationError, NotFoundError):
            raise
        except Exception as exc:
            logger.error(
                "schema_sync_failed", installation_type_id=installation_type_id, error=str(exc)
            )
            raise ValidationError(f"Failed to synchronize installation schemas: {exc}") from exc

        return await self.list_schemas(installation_type_id)

    async def list_schemas(self, installation_type_id: int) -> list[InstallationSchema]:
        """Raises NotFoundError if the installation type does not exist."""
        async with self.session_factory() as session:
            await InstallationTypeStore(session).find_one(installation_type_id)
            return await SchemaStore(session).find_by_installation_type_id(installation_type_id)

    async def set_properties(
        self,
        installation_id: int,
        entries: Iterable[PropertyInput | Mapping[str, Any]],
    ) -> list[PropertyWithSchema]:
        """Upsert values, then return the installation's full decoded field set."""
        async with self.session_factory() as session:
            async with session.begin():
                await PropertyStore(session).set_properties(installation_id, entries)
        return await self.get_properties_with_schema(installation_id)

    async def get_properties_with_schema(self, installation_id: int) -> list[PropertyWithSchema]:
        async with self.session_factory() as session:
            return await PropertyStore(session).get_properties_with_schema(installation_id)

    async def create_installation_type(
        self, name: str, code: str, description: str | None = None
    ) -> InstallationType:
        async with self.session_factory() as session:
            async with session.begin():
                return await InstallationTypeStore(session).create(name, code, description)

    async def find_installation_type_by_code(self, code: str) -> InstallationType | None:
        async with self.session_factory() as session:
            return await InstallationTypeStore(session).find_by_code(code)

    async def create_installation(
        self, name: str, installation_type_id: int | None, description: str | None = None
    ) -> Installation:
        async with self.session_factory() as session:
            async with session.begin():
                if installation_type_id is not None:
                    await InstallationTypeStore(session).find_one(installation_type_id)
                return await InstallationStore(session).create(name, installation_type_id, description)


def create_installation_aggregate(
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> InstallationAggregate:
    """Build an aggregate, defaulting to the configured database."""
    if session_factory is None:
        from transitops.db.connection import get_session_factory

        session_factory = get_session_factory()
    return InstallationAggregate(session_factory)
