"""SQLAlchemy async database models for transitops.

Installation attributes follow an entity-attribute-value layout: each
installation type owns a runtime-defined set of field schemas, and every
installation stores one string-valued property per schema.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class InstallationTypeModel(Base):
    """Category of physical site (terminal, tollbooth, maintenance center)."""

    __tablename__ = "installation_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    code: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    schemas: Mapped[list[InstallationSchemaModel]] = relationship(
        back_populates="installation_type", lazy="raise"
    )


class InstallationSchemaModel(Base):
    """Typed field definition owned by an installation type."""

    __tablename__ = "installation_schemas"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    installation_type_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("installation_types.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    # One of: number, string, boolean, date, long_text, enum
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    options: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), index=True)

    installation_type: Mapped[InstallationTypeModel] = relationship(
        back_populates="schemas", lazy="raise"
    )


# Field names are unique per type, case-insensitively, among live rows only.
Index(
    "uq_installation_schemas_type_name_live",
    InstallationSchemaModel.installation_type_id,
    func.lower(InstallationSchemaModel.name),
    unique=True,
    postgresql_where=InstallationSchemaModel.deleted_at.is_(None),
    sqlite_where=InstallationSchemaModel.deleted_at.is_(None),
)


class InstallationModel(Base):
    """Concrete site; owner of installation properties."""

    __tablename__ = "installations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    installation_type_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("installation_types.id", ondelete="SET NULL"), index=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))


class InstallationPropertyModel(Base):
    """Value of one field schema for one installation, always stored as text."""

    __tablename__ = "installation_properties"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    installation_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("installations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    installation_schema_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("installation_schemas.id", ondelete="CASCADE"), nullable=False, index=True
    )
    value: Mapped[str] = mapped_column(Text, nullable=False, default="")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint(
            "installation_id", "installation_schema_id", name="uq_installation_property_schema"
        ),
    )
