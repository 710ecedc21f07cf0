"""Schema sync: reconcile a type's desired field set against its stored set.

The engine diffs the desired list against a snapshot of the current schemas,
validates the whole batch (field types and case-insensitive name uniqueness,
including names not yet written), and only then applies deletes, creates and
updates in that order. The caller owns the transaction; the engine never
commits.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

import structlog

from transitops.errors import ErrorCode, FieldError, FieldErrorCollector
from transitops.installations.schema_rules import validate_schema_field_type, validate_schema_name
from transitops.installations.schema_store import SchemaStore
from transitops.models import (
    CreateInstallationSchemaPayload,
    FieldType,
    InstallationSchema,
    SyncInstallationSchemaPayload,
    UpdateInstallationSchemaPayload,
)

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PlannedCreate:
    index: int
    payload: SyncInstallationSchemaPayload


@dataclass(frozen=True)
class PlannedUpdate:
    index: int
    current: InstallationSchema
    payload: SyncInstallationSchemaPayload

    @property
    def type_changed(self) -> bool:
        return self.payload.type is not None and self.payload.type != self.current.type.value

    @property
    def effective_type(self) -> str:
        return self.payload.type if self.payload.type is not None else self.current.type.value

    @property
    def effective_options(self) -> dict[str, Any]:
        if "options" in self.payload.model_fields_set:
            return self.payload.options or {}
        # Options belong to the old type when the type changes.
        return {} if self.type_changed else dict(self.current.options)

    @property
    def effective_name(self) -> str:
        return self.payload.name if self.payload.name is not None else self.current.name


@dataclass
class SyncPlan:
    """Partition of a desired schema list against the current snapshot."""

    to_create: list[PlannedCreate] = field(default_factory=list)
    to_update: list[PlannedUpdate] = field(default_factory=list)
    to_delete: list[InstallationSchema] = field(default_factory=list)
    # (index, id) pairs that reference no current schema of the type
    unknown_ids: list[tuple[int, int]] = field(default_factory=list)
    # (index, id) pairs that repeat an id already claimed earlier in the list
    repeated_ids: list[tuple[int, int]] = field(default_factory=list)

    @property
    def counts(self) -> dict[str, int]:
        return {
            "created": len(self.to_create),
            "updated": len(self.to_update),
            "deleted": len(self.to_delete),
        }


def _entry_path(index: int, name: str) -> str:
    return f"schemas[{index}].{name}"


def coerce_payloads(
    desired: Iterable[SyncInstallationSchemaPayload | Mapping[str, Any]],
) -> list[SyncInstallationSchemaPayload]:
    return [
        entry if isinstance(entry, SyncInstallationSchemaPayload)
        else SyncInstallationSchemaPayload.model_validate(entry)
        for entry in desired
    ]


def plan_schema_operations(
    current: list[InstallationSchema],
    desired: list[SyncInstallationSchemaPayload],
) -> SyncPlan:
    """Partition desired entries into creates, updates and deletes."""
    by_id = {schema.id: schema for schema in current}
    plan = SyncPlan()
    claimed: set[int] = set()

    for index, entry in enumerate(desired):
        if entry.id is None:
            plan.to_create.append(PlannedCreate(index=index, payload=entry))
        elif entry.id in claimed:
            plan.repeated_ids.append((index, entry.id))
        elif entry.id in by_id:
            claimed.add(entry.id)
            plan.to_update.append(PlannedUpdate(index=index, current=by_id[entry.id], payload=entry))
        else:
            plan.unknown_ids.append((index, entry.id))

    # Unknown ids are not claims on anything, so they never protect a schema.
    plan.to_delete = [schema for schema in current if schema.id not in claimed]
    return plan


def check_plan_references(plan: SyncPlan, installation_type_id: int) -> list[FieldError]:
    collector = FieldErrorCollector()
    for index, schema_id in plan.unknown_ids:
        collector.add_error(
            _entry_path(index, "id"),
            ErrorCode.NOT_FOUND,
            f"Schema {schema_id} does not belong to installation type {installation_type_id}",
            schema_id,
        )
    for index, schema_id in plan.repeated_ids:
        collector.add_error(
            _entry_path(index, "id"),
            ErrorCode.DUPLICATE,
            f"Schema {schema_id} appears more than once in the request",
            schema_id,
        )
    return collector.errors


def check_field_definitions(plan: SyncPlan) -> list[FieldError]:
    """Type, options and name checks for every planned create and update."""
    collector = FieldErrorCollector()

    for create in plan.to_create:
        prefix = f"schemas[{create.index}]"
        validate_schema_name(create.payload.name, collector, prefix)
        validate_schema_field_type(create.payload.type, create.payload.options, collector, prefix)

    for update in plan.to_update:
        prefix = f"schemas[{update.index}]"
        if "name" in update.payload.model_fields_set:
            validate_schema_name(update.payload.name, collector, prefix)
        validate_schema_field_type(update.effective_type, update.effective_options, collector, prefix)

    return collector.errors


def check_name_uniqueness(
    plan: SyncPlan,
    current: list[InstallationSchema],
    desired: list[SyncInstallationSchemaPayload],
) -> list[FieldError]:
    """Case-insensitive name conflicts, computed from the plan alone.

    Every occurrence of a name repeated within ``desired`` is reported, and
    every desired name that collides with a surviving schema is reported
    unless the entry is that schema's own update.
    """
    collector = FieldErrorCollector()

    deleted_ids = {schema.id for schema in plan.to_delete}
    remaining = {schema.name.lower(): schema for schema in current if schema.id not in deleted_ids}

    names: list[tuple[int, str]] = [
        (index, entry.name)
        for index, entry in enumerate(desired)
        if entry.name is not None and entry.name.strip()
    ]
    occurrences = Counter(name.lower() for _, name in names)

    for index, name in names:
        if occurrences[name.lower()] > 1:
            collector.add_error(
                _entry_path(index, "name"),
                ErrorCode.DUPLICATE_NAME_IN_BATCH,
                f"Duplicate schema name '{name}' found at position {index}. "
                "Schema names must be unique within the request",
                name,
            )

    for index, name in names:
        owner = remaining.get(name.lower())
        if owner is None or desired[index].id == owner.id:
            continue
        collector.add_error(
            _entry_path(index, "name"),
            ErrorCode.DUPLICATE_NAME_IN_DATABASE,
            f"Schema name '{name}' at position {index} already exists in the database "
            f"for this installation type (schema {owner.id})",
            name,
        )

    return collector.errors


class SchemaSyncEngine:
    """Diff-and-apply reconciliation of one installation type's schemas."""

    def __init__(self, store: SchemaStore):
        self.store = store

    async def sync(
        self,
        installation_type_id: int,
        desired: Iterable[SyncInstallationSchemaPayload | Mapping[str, Any]],
    ) -> SyncPlan:
        """Validate the desired list and apply it inside the caller's transaction.

        Raises:
            FieldValidationError: With every violation found, before any write
        """
        entries = coerce_payloads(desired)
        current = await self.store.find_by_installation_type_id(installation_type_id)
        plan = plan_schema_operations(current, entries)

        collector = FieldErrorCollector()
        collector.extend(check_plan_references(plan, installation_type_id))
        collector.extend(check_field_definitions(plan))
        collector.extend(check_name_uniqueness(plan, current, entries))

        if collector.has_errors():
            logger.info(
                "schema_sync_rejected",
                installation_type_id=installation_type_id,
                error_count=len(collector.errors),
            )
            collector.raise_if_errors()

        await self._apply(installation_type_id, plan)

        logger.info("schema_sync_applied", installation_type_id=installation_type_id, **plan.counts)
        return plan

    async def _apply(self, installation_type_id: int, plan: SyncPlan) -> None:
        # Deletes go first so their names are free for the creates and updates.
        await self.store.delete_many([schema.id for schema in plan.to_delete])

        for create in plan.to_create:
            payload = create.payload
            await self.store.create(
                CreateInstallationSchemaPayload(
                    installation_type_id=installation_type_id,
                    name=payload.name,
                    description=payload.description,
                    type=FieldType(payload.type),
                    options=payload.options or {},
                    required=bool(payload.required),
                )
            )

        for update in plan.to_update:
            changes = update.payload.model_dump(exclude_unset=True, exclude={"id"})
            # Columns that cannot hold null keep their value when sent as null.
            for column in ("name", "type", "required"):
                if column in changes and changes[column] is None:
                    del changes[column]
            if update.type_changed and "options" not in changes:
                changes["options"] = update.effective_options
            await self.store.update(update.current.id, UpdateInstallationSchemaPayload(**changes))
