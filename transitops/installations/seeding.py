"""Development data seeding for installation types, schemas and properties.

Everything goes through ``InstallationAggregate`` so seeded data obeys the
same validation as API writes. Re-running is safe: types that already exist
are skipped, and schemas are only seeded for types that have none.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from faker import Faker
from sqlalchemy.exc import IntegrityError

from transitops.installations.aggregate import InstallationAggregate
from transitops.installations.codec import generate_example_value, kind_of
from transitops.models import InstallationType

logger = logging.getLogger(__name__)

INSTALLATION_TYPES_DATA: list[dict[str, str]] = [
    {
        "name": "Terminal de Pasajeros",
        "code": "TERMINAL",
        "description": "Terminal principal para el embarque y desembarque de pasajeros",
    },
    {
        "name": "Parada de Autobús",
        "code": "PARADA",
        "description": "Punto de parada intermedio durante la ruta",
    },
    {
        "name": "Centro de Mantenimiento",
        "code": "MANTEN",
        "description": "Instalación para mantenimiento y revisión de vehículos",
    },
    {
        "name": "Oficina Administrativa",
        "code": "OFICINA",
        "description": "Instalación administrativa y de gestión",
    },
    {
        "name": "Estación de Combustible",
        "code": "COMBUST",
        "description": "Estación para reabastecimiento de combustible",
    },
    {
        "name": "Punto de Control",
        "code": "CONTROL",
        "description": "Punto de control y monitoreo de rutas",
    },
    {
        "name": "Centro de Distribución",
        "code": "DISTRIB",
        "description": "Centro para distribución y logística",
    },
    {
        "name": "Zona de Descanso",
        "code": "DESCANSO",
        "description": "Área de descanso para conductores y personal",
    },
]


def _number(name: str, description: str, required: bool) -> dict[str, Any]:
    return {"name": name, "description": description, "type": "number", "options": {}, "required": required}


def _enum(name: str, description: str, values: list[str]) -> dict[str, Any]:
    return {
        "name": name,
        "description": description,
        "type": "enum",
        "options": {"enumValues": values},
        "required": False,
    }


def terminal_schemas() -> list[dict[str, Any]]:
    return [
        _number("capacity", "Número máximo de pasajeros que puede atender", True),
        _number("platforms", "Cantidad de plataformas de abordaje", True),
        _enum(
            "services",
            "Servicios adicionales en el terminal",
            ["Cafetería", "Baños", "WiFi", "Sala de Espera", "Información"],
        ),
    ]


def parada_schemas() -> list[dict[str, Any]]:
    return [_number("bench_capacity", "Número de personas que pueden sentarse", False)]


def manten_schemas() -> list[dict[str, Any]]:
    return [
        _number("service_bays", "Número de bahías para mantenimiento", True),
        _enum(
            "equipment",
            "Tipo de equipo de mantenimiento",
            ["Elevador", "Fosa", "Compresor", "Soldadora", "Herramientas"],
        ),
    ]


def oficina_schemas() -> list[dict[str, Any]]:
    return [
        _number("office_area", "Área total de la oficina en metros cuadrados", True),
        _enum(
            "departments",
            "Departamentos que operan en la oficina",
            ["Administración", "Recursos Humanos", "Finanzas", "Operaciones", "Ventas"],
        ),
    ]


def generic_schemas() -> list[dict[str, Any]]:
    return [
        {
            "name": "operating_hours",
            "description": "Horario en que opera la instalación",
            "type": "string",
            "options": {},
            "required": False,
        },
        {
            "name": "contact_person",
            "description": "Nombre de la persona responsable",
            "type": "string",
            "options": {},
            "required": False,
        },
    ]


SCHEMA_BUILDERS: dict[str, Callable[[], list[dict[str, Any]]]] = {
    "TERMINAL": terminal_schemas,
    "PARADA": parada_schemas,
    "MANTEN": manten_schemas,
    "OFICINA": oficina_schemas,
}


def default_schemas_for(code: str) -> list[dict[str, Any]]:
    """Default field set for a type code; unlisted codes get the generic fields."""
    return SCHEMA_BUILDERS.get(code.upper(), generic_schemas)()


@dataclass
class SeedSummary:
    types_created: int = 0
    types_skipped: int = 0
    schemas_created: int = 0
    installations_created: int = 0
    properties_written: int = 0


class InstallationSeeder:
    """Seeds the installation catalog through the aggregate."""

    def __init__(
        self,
        aggregate: InstallationAggregate,
        faker: Faker | None = None,
        installations_per_type: int = 1,
    ):
        self.aggregate = aggregate
        self.faker = faker or Faker("es_MX")
        self.installations_per_type = installations_per_type

    async def seed_installation_types(self, summary: SeedSummary) -> list[InstallationType]:
        types = []
        for data in INSTALLATION_TYPES_DATA:
            existing = await self.aggregate.find_installation_type_by_code(data["code"])
            if existing is not None:
                logger.info(f"Installation type {data['code']} already exists, skipping")
                summary.types_skipped += 1
                types.append(existing)
                continue
            try:
                created = await self.aggregate.create_installation_type(**data)
            except IntegrityError:
                logger.warning(f"Installation type {data['code']} already exists, skipping")
                summary.types_skipped += 1
                continue
            summary.types_created += 1
            types.append(created)

        logger.info(f"Seeded {summary.types_created} installation types")
        return types

    async def seed_schemas(self, installation_type: InstallationType, summary: SeedSummary) -> None:
        if await self.aggregate.list_schemas(installation_type.id):
            logger.info(f"Schemas for {installation_type.code} already exist, skipping")
            return
        schemas = await self.aggregate.sync_schemas(
            installation_type.id, default_schemas_for(installation_type.code)
        )
        summary.schemas_created += len(schemas)

    async def seed_installations(self, installation_type: InstallationType, summary: SeedSummary) -> None:
        schemas = await self.aggregate.list_schemas(installation_type.id)

        for _ in range(self.installations_per_type):
            installation = await self.aggregate.create_installation(
                name=f"{installation_type.name} {self.faker.city()}",
                installation_type_id=installation_type.id,
                description=self.faker.sentence(),
            )
            summary.installations_created += 1

            entries = [
                {"name": s.name, "value": generate_example_value(kind_of(s), s.name, self.faker)}
                for s in schemas
            ]
            if entries:
                await self.aggregate.set_properties(installation.id, entries)
                summary.properties_written += len(entries)

    async def run(self) -> SeedSummary:
        summary = SeedSummary()
        types = await self.seed_installation_types(summary)

        for installation_type in types:
            await self.seed_schemas(installation_type, summary)
            await self.seed_installations(installation_type, summary)

        logger.info(
            f"Seeding complete: {summary.types_created} types, {summary.schemas_created} schemas, "
            f"{summary.installations_created} installations, {summary.properties_written} properties"
        )
        return summary
