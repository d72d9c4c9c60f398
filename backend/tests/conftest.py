"""
Pytest configuration and fixtures for backend tests.
"""

import os

# Must be set before the application modules read their settings
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["TOKEN_BLACKLIST_ENABLED"] = "false"
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from rest_api.main import app
from rest_api.models import Base, Branch, MenuItem, Restaurant, Table, User
from rest_api.services.domain import SessionService
from shared.config.constants import Roles
from shared.infrastructure.db import get_db
from shared.security.auth import sign_jwt, staff_claims, sign_table_token
from shared.security.password import hash_password


# SQLite in-memory database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

TEST_PASSWORD = "testpass123"
# bcrypt is slow on purpose; hash once for every fixture user
TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    Uses SQLite in-memory for isolation.
    """
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """
    Create a test client with database session override.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# =============================================================================
# Tenant fixtures
# =============================================================================


def make_user(db, restaurant, role, email, branch=None, permissions=None) -> User:
    user = User(
        restaurant_id=restaurant.id,
        branch_id=branch.id if branch else None,
        email=email,
        password=TEST_PASSWORD_HASH,
        display_name=email.split("@")[0].title(),
        role=role,
        permissions=permissions or [],
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def seed_restaurant(db_session):
    restaurant = Restaurant(name="Test Restaurant", timezone="UTC", currency="USD")
    db_session.add(restaurant)
    db_session.commit()
    db_session.refresh(restaurant)
    return restaurant


@pytest.fixture
def seed_branch(db_session, seed_restaurant):
    branch = Branch(restaurant_id=seed_restaurant.id, name="Main Branch")
    db_session.add(branch)
    db_session.commit()
    db_session.refresh(branch)
    return branch


@pytest.fixture
def seed_other_branch(db_session, seed_restaurant):
    branch = Branch(restaurant_id=seed_restaurant.id, name="Second Branch")
    db_session.add(branch)
    db_session.commit()
    db_session.refresh(branch)
    return branch


@pytest.fixture
def seed_other_restaurant(db_session):
    """A second tenant with one branch, for isolation tests."""
    restaurant = Restaurant(name="Other Restaurant", timezone="UTC", currency="EUR")
    db_session.add(restaurant)
    db_session.flush()
    branch = Branch(restaurant_id=restaurant.id, name="Elsewhere")
    db_session.add(branch)
    db_session.commit()
    db_session.refresh(restaurant)
    db_session.refresh(branch)
    return restaurant, branch


@pytest.fixture
def seed_superadmin(db_session, seed_restaurant):
    user = make_user(db_session, seed_restaurant, Roles.SUPERADMIN, "owner@tableflow.io")
    seed_restaurant.owner_super_admin_id = user.id
    db_session.commit()
    return user


@pytest.fixture
def seed_admin(db_session, seed_restaurant, seed_branch):
    user = make_user(db_session, seed_restaurant, Roles.ADMIN, "admin@tableflow.io", seed_branch)
    seed_branch.admin_user_id = user.id
    db_session.commit()
    return user


@pytest.fixture
def seed_kitchen(db_session, seed_restaurant, seed_branch):
    return make_user(db_session, seed_restaurant, Roles.KITCHEN, "kitchen@tableflow.io", seed_branch)


@pytest.fixture
def seed_waiter(db_session, seed_restaurant, seed_branch):
    return make_user(db_session, seed_restaurant, Roles.WAITER, "waiter@tableflow.io", seed_branch)


@pytest.fixture
def seed_table(db_session, seed_restaurant, seed_branch):
    table = Table(
        restaurant_id=seed_restaurant.id,
        branch_id=seed_branch.id,
        table_number=1,
        seat_count=4,
        active=True,
    )
    db_session.add(table)
    db_session.commit()
    db_session.refresh(table)
    return table


@pytest.fixture
def seed_menu(db_session, seed_restaurant):
    """Two restaurant-wide items: soup at 500 and lemonade at 300 cents."""
    soup = MenuItem(
        restaurant_id=seed_restaurant.id,
        name="Soup",
        price_cents=500,
        category="Starters",
        is_available=True,
    )
    lemonade = MenuItem(
        restaurant_id=seed_restaurant.id,
        name="Lemonade",
        price_cents=300,
        category="Drinks",
        is_available=True,
    )
    db_session.add_all([soup, lemonade])
    db_session.commit()
    db_session.refresh(soup)
    db_session.refresh(lemonade)
    return soup, lemonade


@pytest.fixture
def active_session(db_session, seed_table):
    """An active dining session on seed_table."""
    return SessionService(db_session).start_session(seed_table.id)


# =============================================================================
# Auth helpers
# =============================================================================


def bearer(user: User) -> dict[str, str]:
    """Authorization header for a staff user."""
    return {"Authorization": f"Bearer {sign_jwt(staff_claims(user))}"}


def table_headers(session) -> dict[str, str]:
    """X-Table-Token header binding a customer to ``session``."""
    token = sign_table_token(
        restaurant_id=session.restaurant_id,
        branch_id=session.branch_id,
        table_id=session.table_id,
        session_id=session.id,
    )
    return {"X-Table-Token": token}
