"""
Pytest configuration and fixtures for the ordering core tests.
"""

import itertools
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from nutribite_shared.config.constants import Roles
from nutribite_shared.infrastructure.db import Database, get_db
from nutribite_shared.security.auth import sign_session_token
from nutribite_shared.security.rate_limit import limiter
from nutribite_api.main import create_app
from nutribite_api.models import Base, Category, Customer, DietType, Product, Recipe


_id_counter = itertools.count(1000)

# Fixed "now" for services that take a clock: 09:00 UTC on a Tuesday
NOW = datetime(2026, 3, 10, 9, 0, tzinfo=timezone.utc)
TOMORROW_NOON = "2026-03-11T12:00:00"


# SQLite in-memory database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
test_database = Database(engine)


def next_id():
    """Unique id for seeded entities."""
    return next(_id_counter)


def fixed_clock():
    return NOW


class RecordingNotifier:
    """Notification publisher that keeps what was published."""

    def __init__(self):
        self.published = []

    async def publish(self, notification):
        self.published.append(notification)

    async def close(self):
        return None

    def types(self):
        return [n.type for n in self.published]


@pytest.fixture(scope="function")
def db_session():
    """
    Fresh schema and session for each test.
    """
    Base.metadata.create_all(bind=engine)

    session = test_database.session()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture(scope="function")
def client(db_session, notifier):
    """
    Test client sharing the test session; rate limiting off.
    """
    app = create_app(database=test_database)
    app.state.notifier = notifier

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    limiter.enabled = False

    with TestClient(app) as test_client:
        yield test_client

    limiter.enabled = True
    app.dependency_overrides.clear()


# =============================================================================
# Seed data
# =============================================================================


@pytest.fixture
def seed_category(db_session):
    category = Category(id=next_id(), name="Bowls")
    db_session.add(category)
    db_session.commit()
    return category


@pytest.fixture
def seed_diet_type(db_session):
    diet = DietType(id=next_id(), name="Vegan")
    db_session.add(diet)
    db_session.commit()
    return diet


@pytest.fixture
def make_product(db_session):
    """
    Factory: a product linked to a fresh recipe.

        product = make_product(price="100.00", stock=5, category=seed_category)
    """

    def _make(
        price="10.00",
        stock=5,
        category=None,
        diet_type=None,
        name=None,
        calories=400,
        hidden=False,
    ):
        recipe_id = next_id()
        recipe = Recipe(
            id=recipe_id,
            name=name or f"Recipe {recipe_id}",
            description="Test recipe",
            calories=calories,
            protein_g=Decimal("20.5"),
            carbs_g=Decimal("40.0"),
            fats_g=Decimal("12.0"),
            category_id=category.id if category else None,
            diet_type_id=diet_type.id if diet_type else None,
            deleted_at=NOW if hidden else None,
        )
        product = Product(
            id=next_id(),
            recipe_id=recipe_id,
            price=Decimal(price),
            stock=stock,
        )
        db_session.add_all([recipe, product])
        db_session.commit()
        return product

    return _make


@pytest.fixture
def seed_product(make_product, seed_category):
    return make_product(price="100.00", stock=5, category=seed_category, name="Green Bowl")


@pytest.fixture
def make_customer(db_session):
    def _make():
        customer = Customer(id=next_id(), user_id=next_id(), full_name="Test Customer")
        db_session.add(customer)
        db_session.commit()
        return customer

    return _make


@pytest.fixture
def seed_customer(make_customer):
    return make_customer()


# =============================================================================
# Auth
# =============================================================================


def bearer(user_id, roles=None):
    return {"Authorization": f"Bearer {sign_session_token(user_id, roles=roles)}"}


@pytest.fixture
def auth_headers(seed_customer):
    """Session of the seeded customer."""
    return bearer(seed_customer.user_id)


@pytest.fixture
def admin_headers():
    return bearer(next_id(), roles=[Roles.ADMIN])
