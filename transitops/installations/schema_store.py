"""Persistence for installation field schemas.

Every operation runs on the session the store was built with, so a caller
that opened a transaction gets all reads and writes inside it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from transitops.db.models import InstallationSchemaModel
from transitops.errors import NotFoundError
from transitops.models import (
    CreateInstallationSchemaPayload,
    InstallationSchema,
    UpdateInstallationSchemaPayload,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class UniquenessCheck:
    """A value that must not already exist on a live schema row.

    ``scope_column``/``scope_value`` narrow the check, e.g. to one
    installation type.
    """

    column: str
    value: Any
    scope_column: str | None = None
    scope_value: Any = None


class SchemaStore:
    """Field schema CRUD with soft delete."""

    def __init__(self, session: AsyncSession):
        """Initialize schema store with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def _get_live(self, schema_id: int) -> InstallationSchemaModel:
        stmt = select(InstallationSchemaModel).where(
            InstallationSchemaModel.id == schema_id,
            InstallationSchemaModel.deleted_at.is_(None),
        )
        row = (await self.session.execute(stmt)).scalar_one_or_none()
        if row is None:
            raise NotFoundError("InstallationSchema", schema_id)
        return row

    async def create(self, payload: CreateInstallationSchemaPayload) -> InstallationSchema:
        """Insert a schema row.

        Raises:
            IntegrityError: If a live schema of the same type already has the name
        """
        row = InstallationSchemaModel(
            installation_type_id=payload.installation_type_id,
            name=payload.name,
            description=payload.description,
            type=payload.type.value,
            options=dict(payload.options),
            required=payload.required,
        )
        self.session.add(row)
        await self.session.flush()
        await self.session.refresh(row)
        return InstallationSchema.model_validate(row)

    async def find_one(self, schema_id: int) -> InstallationSchema:
        """Get a live schema by id.

        Raises:
            NotFoundError: If the schema is missing or soft-deleted
        """
        return InstallationSchema.model_validate(await self._get_live(schema_id))

    async def find_by_installation_type_id(self, installation_type_id: int) -> list[InstallationSchema]:
        """Live schemas of a type in creation order."""
        stmt = (
            select(InstallationSchemaModel)
            .where(
                InstallationSchemaModel.installation_type_id == installation_type_id,
                InstallationSchemaModel.deleted_at.is_(None),
            )
            .order_by(InstallationSchemaModel.id)
        )
        result = await self.session.execute(stmt)
        return [InstallationSchema.model_validate(row) for row in result.scalars().all()]

    async def update(self, schema_id: int, payload: UpdateInstallationSchemaPayload) -> InstallationSchema:
        """Apply the fields explicitly set on ``payload``.

        The owning installation type is never changed.

        Raises:
            NotFoundError: If the schema is missing or soft-deleted
        """
        row = await self._get_live(schema_id)

        changes = payload.model_dump(exclude_unset=True)
        for field, value in changes.items():
            if field == "type" and value is not None:
                value = value.value if hasattr(value, "value") else str(value)
            if field == "options" and value is None:
                value = {}
            setattr(row, field, value)

        await self.session.flush()
        await self.session.refresh(row)
        return InstallationSchema.model_validate(row)

    async def delete(self, schema_id: int, force: bool = False) -> None:
        """Soft-delete one schema, or remove it outright with ``force``.

        Raises:
            NotFoundError: If the schema is missing or already soft-deleted
        """
        await self._get_live(schema_id)
        await self.delete_many([schema_id], force=force)

    async def delete_many(self, schema_ids: Iterable[int], force: bool = False) -> int:
        """Soft-delete (or with ``force`` remove) schemas; returns rows affected."""
        ids = list(schema_ids)
        if not ids:
            return 0

        if force:
            stmt = delete(InstallationSchemaModel).where(InstallationSchemaModel.id.in_(ids))
        else:
            stmt = (
                update(InstallationSchemaModel)
                .where(
                    InstallationSchemaModel.id.in_(ids),
                    InstallationSchemaModel.deleted_at.is_(None),
                )
                .values(deleted_at=datetime.now(timezone.utc))
            )

        result = await self.session.execute(stmt)
        await self.session.flush()
        logger.debug(f"Deleted {result.rowcount} schema(s) (force={force})")
        return result.rowcount

    async def check_uniqueness(
        self, checks: Iterable[UniquenessCheck], exclude_id: int | None = None
    ) -> list[UniquenessCheck]:
        """Return the checks whose value already exists on a live row.

        Text values compare case-insensitively.
        """
        conflicts: list[UniquenessCheck] = []

        for check in checks:
            column = getattr(InstallationSchemaModel, check.column)
            if isinstance(check.value, str):
                condition = func.lower(column) == check.value.lower()
            else:
                condition = column == check.value

            stmt = select(InstallationSchemaModel.id).where(
                condition, InstallationSchemaModel.deleted_at.is_(None)
            )
            if check.scope_column is not None:
                stmt = stmt.where(getattr(InstallationSchemaModel, check.scope_column) == check.scope_value)
            if exclude_id is not None:
                stmt = stmt.where(InstallationSchemaModel.id != exclude_id)

            existing = (await self.session.execute(stmt.limit(1))).scalar_one_or_none()
            if existing is not None:
                conflicts.append(check)

        return conflicts
