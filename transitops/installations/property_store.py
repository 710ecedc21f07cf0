"""Installation property values keyed by schema name.

Values are validated through the codec on write and decoded on read; raw
storage strings never leave this module.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from transitops.db.models import InstallationPropertyModel
from transitops.errors import ErrorCode, FieldErrorCollector, NotFoundError, ValidationError
from transitops.installations.catalog import InstallationStore
from transitops.installations.codec import decode_property_value, kind_of, validate_property_value
from transitops.installations.schema_store import SchemaStore
from transitops.models import InstallationSchema, PropertyInput, PropertyWithSchema

logger = logging.getLogger(__name__)


class PropertyStore:
    """Upsert and read installation property values."""

    def __init__(self, session: AsyncSession):
        """Initialize property store with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session
        self.installations = InstallationStore(session)
        self.schemas = SchemaStore(session)

    async def _schemas_for(self, installation_id: int) -> list[InstallationSchema]:
        installation = await self.installations.find_one(installation_id)
        if installation.installation_type_id is None:
            raise ValidationError(
                f"Installation {installation_id} has no installation type; "
                "its properties are undefined until a type is assigned"
            )
        return await self.schemas.find_by_installation_type_id(installation.installation_type_id)

    async def set_properties(
        self,
        installation_id: int,
        entries: Iterable[PropertyInput | Mapping[str, Any]],
    ) -> int:
        """Validate and upsert property values; unmentioned fields are untouched.

        Args:
            installation_id: Owning installation
            entries: ``{name, value}`` pairs; names match schemas case-insensitively

        Returns:
            Number of values written

        Raises:
            NotFoundError: If the installation or a named schema does not exist
            ValidationError: If the installation has no type
            FieldValidationError: With every invalid value, before any write
        """
        items = [
            e if isinstance(e, PropertyInput) else PropertyInput.model_validate(e) for e in entries
        ]
        schemas = await self._schemas_for(installation_id)
        by_name = {schema.name.lower(): schema for schema in schemas}

        for item in items:
            if item.name.lower() not in by_name:
                raise NotFoundError(
                    "InstallationSchema",
                    item.name,
                    f"No field named '{item.name}' is defined for the type of installation {installation_id}",
                )

        collector = FieldErrorCollector()
        seen: set[str] = set()
        resolved: list[tuple[InstallationSchema, str]] = []

        for index, item in enumerate(items):
            key = item.name.lower()
            if key in seen:
                collector.add_error(
                    f"properties[{index}].name",
                    ErrorCode.DUPLICATE_NAME_IN_BATCH,
                    f"Property '{item.name}' is set more than once in the request",
                    item.name,
                )
                continue
            seen.add(key)

            schema = by_name[key]
            value = validate_property_value(
                schema.name, item.value, kind_of(schema), schema.required, collector
            )
            resolved.append((schema, value))

        collector.raise_if_errors()

        if not resolved:
            return 0

        stmt = select(InstallationPropertyModel).where(
            InstallationPropertyModel.installation_id == installation_id,
            InstallationPropertyModel.installation_schema_id.in_([s.id for s, _ in resolved]),
        )
        existing = {
            row.installation_schema_id: row
            for row in (await self.session.execute(stmt)).scalars().all()
        }

        for schema, value in resolved:
            row = existing.get(schema.id)
            if row is None:
                self.session.add(
                    InstallationPropertyModel(
                        installation_id=installation_id,
                        installation_schema_id=schema.id,
                        value=value,
                    )
                )
            else:
                row.value = value

        await self.session.flush()
        logger.info(f"Set {len(resolved)} propert(ies) on installation {installation_id}")
        return len(resolved)

    async def get_properties_with_schema(self, installation_id: int) -> list[PropertyWithSchema]:
        """One decoded entry per live schema of the installation's type.

        Schemas without a stored value are included with ``value=None``.

        Raises:
            NotFoundError: If the installation does not exist
            ValidationError: If the installation has no type
        """
        schemas = await self._schemas_for(installation_id)
        if not schemas:
            return []

        stmt = select(InstallationPropertyModel).where(
            InstallationPropertyModel.installation_id == installation_id,
            InstallationPropertyModel.installation_schema_id.in_([s.id for s in schemas]),
        )
        stored = {
            row.installation_schema_id: row
            for row in (await self.session.execute(stmt)).scalars().all()
        }

        results = []
        for schema in schemas:
            row = stored.get(schema.id)
            results.append(
                PropertyWithSchema(
                    id=row.id if row else None,
                    schema_id=schema.id,
                    name=schema.name,
                    description=schema.description,
                    type=schema.type,
                    required=schema.required,
                    options=schema.options,
                    value=decode_property_value(row.value if row else None, kind_of(schema), schema.name),
                )
            )
        return results
