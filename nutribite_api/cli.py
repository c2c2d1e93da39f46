"""
NutriBite CLI.

Operator commands for the ordering core: schema creation, stock and price
edits, and catalog visibility repair.
"""

from decimal import Decimal
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from nutribite_shared.config.logging import setup_logging
from nutribite_shared.config.settings import settings
from nutribite_shared.infrastructure.db import Database, get_db_context, run_in_transaction
from nutribite_shared.utils.exceptions import AppException
from nutribite_api.models import Base
from nutribite_api.services.domain import StockService, resolve_price_factor
from nutribite_api.services.stock_visibility import reconcile_visibility

app = typer.Typer(
    name="nutribite",
    help="NutriBite ordering core CLI",
    add_completion=False,
)
console = Console()


def get_database() -> Database:
    return Database.from_settings(settings)


def _fail(exc: AppException) -> None:
    console.print(f"[red]✗ {exc.detail}[/red]")
    raise typer.Exit(1)


@app.callback()
def main() -> None:
    setup_logging()


# =============================================================================
# Database Commands
# =============================================================================


@app.command("init-db")
def init_db():
    """Create missing tables."""
    database = get_database()
    try:
        Base.metadata.create_all(bind=database.engine)
    finally:
        database.dispose()
    console.print("[green]✓ Tables created/verified[/green]")


@app.command("reconcile-visibility")
def reconcile_visibility_command():
    """Hide sold-out recipes and restore in-stock ones where they disagree."""
    database = get_database()
    try:
        with get_db_context(database) as db:
            result = run_in_transaction(
                db, reconcile_visibility, operation="visibility reconcile"
            )
    finally:
        database.dispose()

    table = Table(title="Visibility Reconciliation")
    table.add_column("Action", style="cyan")
    table.add_column("Recipes", style="green")
    table.add_row("Hidden", str(result.hidden))
    table.add_row("Restored", str(result.restored))
    console.print(table)


# =============================================================================
# Inventory Commands
# =============================================================================


@app.command("set-stock")
def set_stock(
    product_id: int = typer.Argument(..., help="Product id"),
    stock: str = typer.Argument(..., help="New absolute stock"),
):
    """Set a product's stock (0 hides its recipe)."""
    database = get_database()
    try:
        with get_db_context(database) as db:
            result = StockService(db).set_stock(product_id, stock)
    except AppException as e:
        _fail(e)
    finally:
        database.dispose()

    console.print(
        f"[green]✓ Product {result.product_id} stock {result.previous_stock} -> {result.stock}[/green]"
    )
    if result.recipe_deleted:
        console.print(f"[yellow]Recipe {result.recipe_id} hidden from the menu[/yellow]")
    if result.notify_admin:
        console.print("[yellow]Stock is at or below the low-stock threshold[/yellow]")


@app.command("adjust-price")
def adjust_price(
    product_id: int = typer.Argument(..., help="Product id"),
    factor: Optional[str] = typer.Option(None, "--factor", "-f", help="Price multiplier"),
    percent: Optional[str] = typer.Option(None, "--percent", "-p", help="Percent change"),
    mode: Optional[str] = typer.Option(None, "--mode", "-m", help="increase or decrease"),
):
    """Multiply a product's net price (only while stock is low)."""
    database = get_database()
    try:
        resolved = resolve_price_factor(factor, percent, mode)
        with get_db_context(database) as db:
            result = StockService(db).adjust_price(product_id, resolved)
    except AppException as e:
        _fail(e)
    finally:
        database.dispose()

    console.print(
        f"[green]✓ Product {result.product_id} price {result.old_price} -> {result.new_price}[/green]"
    )


@app.command("show-product")
def show_product(product_id: int = typer.Argument(..., help="Product id")):
    """Show stock, price and visibility of a product."""
    database = get_database()
    try:
        with get_db_context(database) as db:
            product = StockService(db).get_stock(product_id)
            recipe = product.recipe
            rows = [
                ("Product", str(product.id)),
                ("Recipe", f"{recipe.id} {recipe.name}" if recipe else "-"),
                ("Price (net)", str(Decimal(product.price))),
                ("Stock", str(product.stock)),
                ("Visible", "no" if recipe is None or recipe.deleted_at else "yes"),
            ]
    except AppException as e:
        _fail(e)
    finally:
        database.dispose()

    table = Table(title=f"Product {product_id}")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    for name, value in rows:
        table.add_row(name, value)
    console.print(table)


if __name__ == "__main__":
    app()
