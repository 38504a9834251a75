# tests/conftest.py
"""
Pytest configuration and shared fixtures.

Settings are read from the environment at import time, so the test
environment is set up before anything from `storefront` is imported.
Every test gets a fresh in-memory SQLite database.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-storefront-tests")
os.environ.setdefault("ENVIRONMENT", "development")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from storefront.core.security import create_access_token, hash_password
from storefront.database import get_session
from storefront.main import app
from storefront.models.product import Product
from storefront.models.user import User

DEFAULT_PASSWORD = "password123"


# ============================================================================
# Database / client
# ============================================================================

@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(session):
    """TestClient whose requests share the test's session."""

    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    # No `with`: the lifespan would create tables on the real engine
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


# ============================================================================
# Users
# ============================================================================

@pytest.fixture
def make_user(session):
    """Factory: make_user(role="customer", email=None, password=...)."""
    counter = {"n": 0}

    def _make_user(
        role: str = "customer",
        email: str | None = None,
        name: str | None = None,
        password: str = DEFAULT_PASSWORD,
    ) -> User:
        counter["n"] += 1
        user = User(
            name=name or f"{role.title()} {counter['n']}",
            email=email or f"{role}{counter['n']}@example.com",
            password_hash=hash_password(password),
            role=role,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make_user


def auth_headers(user: User) -> dict[str, str]:
    token = create_access_token(user.id, {"email": user.email, "role": user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers_for():
    """Bearer headers for any user: headers_for(user)."""
    return auth_headers


@pytest.fixture
def customer(make_user):
    return make_user("customer", email="shopper@example.com", name="Sam Shopper")


@pytest.fixture
def customer_headers(customer):
    return auth_headers(customer)


@pytest.fixture
def admin(make_user):
    return make_user("admin", email="admin@example.com", name="Ada Admin")


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def super_admin_headers(make_user):
    return auth_headers(make_user("super_admin", email="root@example.com", name="Root"))


# ============================================================================
# Catalog
# ============================================================================

@pytest.fixture
def make_product(session):
    """Factory: make_product(name=..., price=..., stock=..., **fields)."""
    counter = {"n": 0}

    def _make_product(**fields) -> Product:
        counter["n"] += 1
        data = {
            "name": f"Perfume {counter['n']}",
            "brand": "Maison Test",
            "price": 50.0,
            "stock": 10,
            "gender": "unisex",
            "concentration": "Eau de Parfum",
            "size": "100ml",
            "scent_notes": {"top": ["bergamot"], "middle": ["rose"], "base": ["musk"]},
        }
        data.update(fields)
        data.setdefault("slug", f"product-{counter['n']}")
        product = Product(**data)
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    return _make_product
