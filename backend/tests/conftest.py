"""
Shared fixtures for the DYHE Delivery backend tests.

Every test gets a fresh in-memory database (mongomock-motor) wired into the
app through the get_db dependency override.
"""
import asyncio
import itertools
import os

# Config reads these at import time
os.environ.setdefault("MONGO_URL", "mongodb://localhost:27017")
os.environ.setdefault("DB_NAME", "dyhe_test")
os.environ.setdefault("JWT_SECRET", "test-access-secret-0123456789abcdef0123456789")
os.environ.setdefault("JWT_REFRESH_SECRET", "test-refresh-secret-0123456789abcdef012345678")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from database import get_db, ensure_indexes
from main import app
from models.enums import Role
from models.schemas import UserCreate
from services.user_service import UserService
from utils.security import create_access_token

_counter = itertools.count(1)


def unique_suffix() -> int:
    return next(_counter)


@pytest.fixture
def db():
    database = AsyncMongoMockClient()["dyhe_test"]
    asyncio.run(ensure_indexes(database))
    return database


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    # No context manager: the lifespan would connect to a real MongoDB
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def user_factory(db):
    """Create a user straight through the service; returns (user, auth headers)."""

    def create(role: Role = Role.USER, password: str = "secret123", **overrides):
        n = unique_suffix()
        data = {
            "username": f"user{n}",
            "name": f"User {n}",
            "email": f"user{n}@dyhe.com",
            "phone": f"01000{n:04d}",
            "password": password,
            "role": role,
            **overrides,
        }
        user = asyncio.run(UserService(db).create(UserCreate(**data)))
        token = create_access_token({"sub": user["id"], "email": user["email"]})
        return user, {"Authorization": f"Bearer {token}"}

    return create


@pytest.fixture
def super_admin(user_factory):
    return user_factory(Role.SUPER_ADMIN)


@pytest.fixture
def admin_headers(user_factory):
    _, headers = user_factory(Role.ADMIN)
    return headers


@pytest.fixture
def user_headers(user_factory):
    _, headers = user_factory(Role.USER)
    return headers


@pytest.fixture
def merchant_factory(client, admin_headers):
    def create(**overrides):
        n = unique_suffix()
        payload = {
            "name": f"Merchant {n}",
            "email": f"merchant{n}@dyhe.com",
            "phone": f"09000{n:04d}",
            "deliver_fee": 1.5,
            "bank": "ABA",
            "bank_account_number": f"1000{n:06d}",
            "bank_account_name": f"Merchant {n}",
            "address": f"#{n} Street 271, Phnom Penh",
            **overrides,
        }
        response = client.post("/api/merchants", json=payload, headers=admin_headers)
        assert response.status_code == 201, response.text
        return response.json()

    return create


@pytest.fixture
def driver_factory(client, admin_headers):
    def create(with_login: bool = False, **overrides):
        n = unique_suffix()
        payload = {
            "name": f"Driver {n}",
            "phone": f"08000{n:04d}",
            "deliver_fee": 1.0,
            "bank": "ACELEDA",
            "bank_account_number": f"2000{n:06d}",
        }
        if with_login:
            payload.update({
                "email": f"driver{n}@dyhe.com",
                "username": f"driver{n}",
                "password": "driverpass",
            })
        payload.update(overrides)
        response = client.post("/api/drivers", json=payload, headers=admin_headers)
        assert response.status_code == 201, response.text
        return response.json()

    return create


@pytest.fixture
def package_factory(client, admin_headers):
    def create(merchant_id: str, **overrides):
        n = unique_suffix()
        payload = {
            "customer_name": f"Customer {n}",
            "customer_phone": f"01200{n:04d}",
            "customer_address": f"House {n}, Phnom Penh",
            "cod_amount": 10.0,
            "delivery_fee": 1.5,
            "merchant_id": merchant_id,
            **overrides,
        }
        response = client.post("/api/packages", json=payload, headers=admin_headers)
        assert response.status_code == 201, response.text
        return response.json()

    return create


@pytest.fixture
def driver_login(client, driver_factory):
    """A driver with a login account, signed in; returns (driver, auth headers)."""
    driver = driver_factory(with_login=True)
    response = client.post("/api/auth/login", json={
        "email_or_username": driver["user"]["username"],
        "password": "driverpass",
    })
    assert response.status_code == 200, response.text
    token = response.json()["access_token"]
    return driver, {"Authorization": f"Bearer {token}"}
