"""Database layer for transitops with async SQLAlchemy."""

from transitops.db.connection import get_session, get_session_factory, init_db
from transitops.db.models import (
    Base,
    InstallationModel,
    InstallationPropertyModel,
    InstallationSchemaModel,
    InstallationTypeModel,
)

__all__ = [
    "Base",
    "InstallationModel",
    "InstallationPropertyModel",
    "InstallationSchemaModel",
    "InstallationTypeModel",
    "get_session",
    "get_session_factory",
    "init_db",
]
