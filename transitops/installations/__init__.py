"""Installation types, their runtime-defined field schemas, and property values."""

from transitops.installations.aggregate import InstallationAggregate, create_installation_aggregate
from transitops.installations.property_store import PropertyStore
from transitops.installations.schema_store import SchemaStore, UniquenessCheck
from transitops.installations.sync import SchemaSyncEngine, SyncPlan, plan_schema_operations

__all__ = [
    "InstallationAggregate",
    "PropertyStore",
    "SchemaStore",
    "SchemaSyncEngine",
    "SyncPlan",
    "UniquenessCheck",
    "create_installation_aggregate",
    "plan_schema_operations",
]
