"""
tableflow CLI.

Command-line interface for common operations:
database setup, restaurant bootstrap, demo data and a health probe.
"""

import platform
import time

import httpx
import typer
from rich.console import Console
from rich.table import Table

from shared.config.logging import setup_logging
from shared.infrastructure.db import engine, get_db_context
from shared.utils.exceptions import AppException

app = typer.Typer(
    name="tableflow",
    help="tableflow restaurant ordering CLI",
    add_completion=False,
)
console = Console()


@app.callback()
def main() -> None:
    setup_logging()


# =============================================================================
# Database Commands
# =============================================================================


@app.command("init-db")
def init_db():
    """Create all tables that do not exist yet."""
    from rest_api.models import Base

    Base.metadata.create_all(bind=engine)
    console.print(f"[green]✓ Tables created on {engine.url.render_as_string(hide_password=True)}[/green]")


@app.command("create-restaurant")
def create_restaurant(
    name: str = typer.Argument(..., help="Restaurant name"),
    owner_email: str = typer.Option(..., "--owner-email", help="Superadmin login email"),
    owner_password: str = typer.Option(
        ..., "--owner-password", prompt=True, hide_input=True, confirmation_prompt=True,
    ),
    owner_name: str = typer.Option(None, "--owner-name", help="Superadmin display name"),
    timezone: str = typer.Option("UTC", help="IANA timezone"),
    currency: str = typer.Option("USD", help="ISO 4217 currency code"),
):
    """Create a restaurant together with the superadmin who owns it."""
    from rest_api.services.domain import RestaurantService

    with get_db_context() as db:
        try:
            restaurant, owner = RestaurantService(db).bootstrap(
                name,
                owner_email,
                owner_password,
                timezone=timezone,
                currency=currency.upper(),
                owner_name=owner_name,
            )
        except AppException as e:
            console.print(f"[red]✗ {e.message}[/red]")
            raise typer.Exit(1)

        table = Table(title="Restaurant created")
        table.add_column("Field", style="cyan")
        table.add_column("Value", style="green")
        table.add_row("Restaurant id", str(restaurant.id))
        table.add_row("Name", restaurant.name)
        table.add_row("Owner id", str(owner.id))
        table.add_row("Owner email", owner.email)
        console.print(table)


@app.command("seed-demo")
def seed_demo_command():
    """Seed the demo restaurant (idempotent)."""
    from rest_api.models import Base
    from rest_api.seed import DEMO_PASSWORD, seed_demo

    Base.metadata.create_all(bind=engine)
    with get_db_context() as db:
        summary = seed_demo(db)

    if not summary.created:
        console.print(f"[yellow]Demo restaurant already exists (id {summary.restaurant_id})[/yellow]")
        return

    table = Table(title="Demo accounts")
    table.add_column("Email", style="cyan")
    table.add_column("Role", style="green")
    for email, role in summary.staff:
        table.add_row(email, role)
    console.print(table)
    console.print(
        f"[green]✓ Restaurant {summary.restaurant_id}, branch {summary.branch_id}: "
        f"{summary.tables} tables, {summary.menu_items} menu items. "
        f"Password: {DEMO_PASSWORD}[/green]"
    )


# =============================================================================
# Health Commands
# =============================================================================


@app.command()
def health(
    url: str = typer.Option("http://localhost:8000/api/health/detailed", help="Health endpoint"),
):
    """Check a running API and its dependencies."""
    table = Table(title="Service Health")
    table.add_column("Component", style="cyan")
    table.add_column("Status", style="green")
    table.add_column("Latency", style="yellow")

    start = time.perf_counter()
    try:
        response = httpx.get(url, timeout=5.0)
    except httpx.HTTPError as e:
        console.print(f"[red]✗ {type(e).__name__}: {e}[/red]")
        raise typer.Exit(1)
    elapsed = (time.perf_counter() - start) * 1000

    body = response.json()
    table.add_row("rest-api", body.get("status", str(response.status_code)), f"{elapsed:.0f}ms")
    for name, component in body.get("dependencies", {}).items():
        latency = component.get("latency_ms")
        table.add_row(name, component.get("status", "?"), f"{latency:.0f}ms" if latency is not None else "-")
    console.print(table)

    if response.status_code != 200:
        raise typer.Exit(1)


@app.command()
def version():
    """Show version information."""
    from importlib.metadata import PackageNotFoundError, version as package_version

    try:
        api_version = package_version("tableflow")
    except PackageNotFoundError:
        api_version = "unknown"

    table = Table(title="tableflow Version")
    table.add_column("Component", style="cyan")
    table.add_column("Version", style="green")
    table.add_row("API", api_version)
    table.add_row("Python", platform.python_version())
    console.print(table)


if __name__ == "__main__":
    app()
