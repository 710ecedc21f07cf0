"""Installation type and installation lookups."""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from transitops.db.models import InstallationModel, InstallationTypeModel
from transitops.errors import NotFoundError
from transitops.models import Installation, InstallationType


class InstallationTypeStore:
    """Installation type catalog (TERMINAL, PARADA, MANTEN, ...)."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self, name: str, code: str, description: str | None = None, active: bool = True
    ) -> InstallationType:
        """Insert a type; ``code`` is the business key and must be unique.

        Raises:
            IntegrityError: If the code is already taken
        """
        row = InstallationTypeModel(name=name, code=code, description=description, active=active)
        self.session.add(row)
        await self.session.flush()
        await self.session.refresh(row)
        return InstallationType.model_validate(row)

    async def find_one(self, installation_type_id: int) -> InstallationType:
        """Raises NotFoundError if the type is missing or soft-deleted."""
        stmt = select(InstallationTypeModel).where(
            InstallationTypeModel.id == installation_type_id,
            InstallationTypeModel.deleted_at.is_(None),
        )
        row = (await self.session.execute(stmt)).scalar_one_or_none()
        if row is None:
            raise NotFoundError("InstallationType", installation_type_id)
        return InstallationType.model_validate(row)

    async def find_by_code(self, code: str) -> InstallationType | None:
        stmt = select(InstallationTypeModel).where(
            func.upper(InstallationTypeModel.code) == code.upper(),
            InstallationTypeModel.deleted_at.is_(None),
        )
        row = (await self.session.execute(stmt)).scalar_one_or_none()
        return InstallationType.model_validate(row) if row else None

    async def list(self, active_only: bool = False) -> list[InstallationType]:
        stmt = select(InstallationTypeModel).where(InstallationTypeModel.deleted_at.is_(None))
        if active_only:
            stmt = stmt.where(InstallationTypeModel.active.is_(True))
        result = await self.session.execute(stmt.order_by(InstallationTypeModel.id))
        return [InstallationType.model_validate(row) for row in result.scalars().all()]


class InstallationStore:
    """Concrete installations; owners of property values."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self, name: str, installation_type_id: int | None, description: str | None = None
    ) -> Installation:
        row = InstallationModel(
            name=name, installation_type_id=installation_type_id, description=description
        )
        self.session.add(row)
        await self.session.flush()
        await self.session.refresh(row)
        return Installation.model_validate(row)

    async def find_one(self, installation_id: int) -> Installation:
        """Raises NotFoundError if the installation is missing or soft-deleted."""
        stmt = select(InstallationModel).where(
            InstallationModel.id == installation_id,
            InstallationModel.deleted_at.is_(None),
        )
        row = (await self.session.execute(stmt)).scalar_one_or_none()
        if row is None:
            raise NotFoundError("Installation", installation_id)
        return Installation.model_validate(row)

    async def find_by_name(self, name: str, installation_type_id: int | None = None) -> Installation | None:
        stmt = select(InstallationModel).where(
            func.lower(InstallationModel.name) == name.lower(),
            InstallationModel.deleted_at.is_(None),
        )
        if installation_type_id is not None:
            stmt = stmt.where(InstallationModel.installation_type_id == installation_type_id)
        row = (await self.session.execute(stmt.limit(1))).scalar_one_or_none()
        return Installation.model_validate(row) if row else None

    async def list(self, installation_type_id: int | None = None) -> list[Installation]:
        stmt = select(InstallationModel).where(InstallationModel.deleted_at.is_(None))
        if installation_type_id is not None:
            stmt = stmt.where(InstallationModel.installation_type_id == installation_type_id)
        result = await self.session.execute(stmt.order_by(InstallationModel.id))
        return [Installation.model_validate(row) for row in result.scalars().all()]
