"""
Tests for the operator CLI against a file-backed SQLite database.
"""

from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from typer.testing import CliRunner

from nutribite_shared.infrastructure.db import Database
from nutribite_api import cli
from nutribite_api.models import Base, Product, Recipe
from tests.conftest import NOW, next_id


runner = CliRunner()


@pytest.fixture
def cli_database(tmp_path, monkeypatch):
    engine = create_engine(f"sqlite:///{tmp_path / 'cli.db'}")
    database = Database(engine)
    monkeypatch.setattr(cli, "get_database", lambda: database)
    yield database
    engine.dispose()


@pytest.fixture
def cli_product(cli_database):
    Base.metadata.create_all(bind=cli_database.engine)
    recipe = Recipe(id=next_id(), name="Quinoa Salad", calories=350)
    product = Product(id=next_id(), recipe_id=recipe.id, price=Decimal("10.00"), stock=5)
    with cli_database.session() as db:
        db.add_all([recipe, product])
        db.commit()
    return product


def test_init_db(cli_database):
    """Should create the tables."""
    result = runner.invoke(cli.app, ["init-db"])

    assert result.exit_code == 0
    assert "Tables created/verified" in result.output


def test_set_stock_to_zero_hides_recipe(cli_database, cli_product):
    """Should hide the recipe when stock is set to zero."""
    result = runner.invoke(cli.app, ["set-stock", str(cli_product.id), "0"])

    assert result.exit_code == 0
    assert f"Product {cli_product.id} stock 5 -> 0" in result.output
    assert f"Recipe {cli_product.recipe_id} hidden from the menu" in result.output
    with cli_database.session() as db:
        assert db.get(Recipe, cli_product.recipe_id).deleted_at is not None


def test_set_stock_rejects_garbage(cli_database, cli_product):
    """Should exit 1 for a non-numeric stock value."""
    result = runner.invoke(cli.app, ["set-stock", str(cli_product.id), "abc"])

    assert result.exit_code == 1
    assert "Invalid stock value" in result.output


def test_adjust_price_by_percent(cli_database, cli_product):
    """Should print the old and new price."""
    result = runner.invoke(cli.app, ["adjust-price", str(cli_product.id), "--percent", "10"])

    assert result.exit_code == 0
    assert "10.00 -> 11.00" in result.output


def test_adjust_price_without_factor(cli_database, cli_product):
    """Should exit 1 when neither factor nor percent is given."""
    result = runner.invoke(cli.app, ["adjust-price", str(cli_product.id)])

    assert result.exit_code == 1
    assert "Provide either factor or percent" in result.output


def test_show_product(cli_database, cli_product):
    """Should print the product and its visibility."""
    result = runner.invoke(cli.app, ["show-product", str(cli_product.id)])

    assert result.exit_code == 0
    assert "Quinoa Salad" in result.output
    assert "yes" in result.output


def test_missing_product(cli_database, cli_product):
    """Should exit 1 for an unknown product."""
    result = runner.invoke(cli.app, ["show-product", "999999"])

    assert result.exit_code == 1
    assert "Product not found" in result.output


def test_reconcile_visibility(cli_database, cli_product):
    """Should fix recipes whose visibility disagrees with stock."""
    hidden_id = next_id()
    with cli_database.session() as db:
        db.add(Recipe(id=hidden_id, name="Hidden Soup", deleted_at=NOW))
        db.add(Product(id=next_id(), recipe_id=hidden_id, price=Decimal("5.00"), stock=3))
        db.get(Product, cli_product.id).stock = 0
        db.commit()

    result = runner.invoke(cli.app, ["reconcile-visibility"])

    assert result.exit_code == 0
    assert "Hidden" in result.output
    assert "Restored" in result.output
    with cli_database.session() as db:
        assert db.get(Recipe, hidden_id).deleted_at is None
        assert db.get(Recipe, cli_product.recipe_id).deleted_at is not None
