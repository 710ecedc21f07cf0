"""transitops CLI.

Commands:
- init: Initialize database schema
- seed: Seed installation types, default schemas and sample installations
- schemas: Show the field schemas of an installation type
- properties: Show the decoded properties of an installation
- web serve: Run the HTTP API
"""

from __future__ import annotations

import asyncio

import typer
from faker import Faker
from rich.console import Console
from rich.table import Table

from transitops.config import get_config
from transitops.core.logging import configure_from_config
from transitops.db.connection import close_db, init_db
from transitops.errors import NotFoundError, ValidationError
from transitops.installations.aggregate import create_installation_aggregate
from transitops.installations.seeding import InstallationSeeder

app = typer.Typer(
    name="transitops",
    help="transitops - Installation types, field schemas and properties",
    no_args_is_help=True,
)

web_cli = typer.Typer(help="Web API")
app.add_typer(web_cli, name="web")

console = Console()


@app.callback()
def _setup() -> None:
    configure_from_config()


@app.command()
def init(
    drop: bool = typer.Option(False, "--drop", help="Drop existing tables"),
):
    """Initialize database schema."""
    config = get_config()
    console.print(f"[bold]Initializing database:[/bold] {config.db.url}")

    async def _init():
        if drop:
            console.print("[yellow]Dropping existing tables...[/yellow]")
        await init_db(drop=drop)
        await close_db()

    asyncio.run(_init())
    console.print("[bold green]✓[/bold green] Database initialized")


@app.command()
def seed(
    per_type: int | None = typer.Option(None, "--per-type", help="Installations to create per type"),
    random_seed: int | None = typer.Option(None, "--random-seed", help="Seed for generated values"),
):
    """Seed installation types, their default schemas and sample installations."""
    seed_config = get_config().seed

    faker = Faker(seed_config.locale)
    seed_value = random_seed if random_seed is not None else seed_config.random_seed
    if seed_value is not None:
        faker.seed_instance(seed_value)

    async def _seed():
        seeder = InstallationSeeder(
            create_installation_aggregate(),
            faker=faker,
            installations_per_type=per_type if per_type is not None else seed_config.installations_per_type,
        )
        try:
            return await seeder.run()
        finally:
            await close_db()

    summary = asyncio.run(_seed())

    table = Table(title="Seed Summary")
    table.add_column("Item", style="cyan")
    table.add_column("Count", justify="right")
    table.add_row("Installation types created", str(summary.types_created))
    table.add_row("Installation types skipped", str(summary.types_skipped))
    table.add_row("Schemas created", str(summary.schemas_created))
    table.add_row("Installations created", str(summary.installations_created))
    table.add_row("Properties written", str(summary.properties_written))
    console.print(table)


@app.command()
def schemas(
    type_code: str = typer.Argument(..., help="Installation type code (e.g. TERMINAL)"),
):
    """Show the field schemas of an installation type."""

    async def _schemas():
        aggregate = create_installation_aggregate()
        try:
            installation_type = await aggregate.find_installation_type_by_code(type_code)
            if installation_type is None:
                return None, []
            return installation_type, await aggregate.list_schemas(installation_type.id)
        finally:
            await close_db()

    installation_type, rows = asyncio.run(_schemas())
    if installation_type is None:
        console.print(f"[red]✗[/red] Installation type {type_code} not found")
        raise typer.Exit(code=1)

    table = Table(title=f"{installation_type.name} ({installation_type.code})")
    table.add_column("ID", justify="right")
    table.add_column("Name", style="cyan")
    table.add_column("Type")
    table.add_column("Required")
    table.add_column("Options", style="dim")
    for schema in rows:
        options = ", ".join(schema.enum_values) if schema.enum_values else ""
        table.add_row(str(schema.id), schema.name, schema.type.value, "yes" if schema.required else "no", options)
    console.print(table)


@app.command()
def properties(
    installation_id: int = typer.Argument(..., help="Installation ID"),
):
    """Show the decoded properties of an installation."""

    async def _properties():
        try:
            return await create_installation_aggregate().get_properties_with_schema(installation_id)
        finally:
            await close_db()

    try:
        rows = asyncio.run(_properties())
    except (NotFoundError, ValidationError) as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(code=1) from e

    table = Table(title=f"Installation {installation_id}")
    table.add_column("Field", style="cyan")
    table.add_column("Type")
    table.add_column("Value")
    for row in rows:
        value = "[dim]unset[/dim]" if row.value is None else str(row.value)
        table.add_row(row.name, row.type.value, value)
    console.print(table)


@web_cli.command("serve")
def web_serve(
    host: str = typer.Option("0.0.0.0", help="Host to bind"),
    port: int = typer.Option(8001, help="Port to bind"),
    reload: bool = typer.Option(False, help="Enable autoreload (dev only)"),
):
    """Run the FastAPI web API."""
    import uvicorn

    typer.echo(f"Starting web API on http://{host}:{port}")
    uvicorn.run("transitops.web.app:app", host=host, port=port, reload=reload, workers=1)


def main():
    """Entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
