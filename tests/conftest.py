from __future__ import annotations

import os

# Must be set before finboard.core.config is imported anywhere.
os.environ["FINBOARD_DATABASE_URL"] = "sqlite://"
os.environ.setdefault("FINBOARD_JWT_SECRET", "test-secret")

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from finboard.api.deps import transfer_idempotency
from finboard.db.session import SessionLocal, engine
from finboard.main import app
from finboard.models.account import Account
from finboard.models.base import Base
from finboard.models.transaction import Transaction  # noqa: F401
from finboard.models.transfer import Transfer  # noqa: F401
from finboard.models.user import User


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(engine)
    yield
    app.dependency_overrides.clear()
    transfer_idempotency.clear()
    Base.metadata.drop_all(engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_user(db):
    def _make(username: str = "alice") -> User:
        user = User(username=username, password_hash="x", role=User.ROLE_USER, is_active=True)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def make_account(db):
    def _make(user: User, name: str, balance: str = "0.00", **kwargs) -> Account:
        row = Account(
            user_id=user.id,
            name=name,
            balance=Decimal(balance),
            currency=kwargs.pop("currency", "EUR"),
            account_type=kwargs.pop("account_type", "main"),
            hide_balance=kwargs.pop("hide_balance", False),
            is_archived=kwargs.pop("is_archived", False),
            **kwargs,
        )
        db.add(row)
        db.commit()
        db.refresh(row)
        return row

    return _make


def register_and_login(client: TestClient, username: str, password: str = "pw") -> dict[str, str]:
    resp = client.post("/api/auth/register", json={"username": username, "password": password})
    assert resp.status_code == 200, resp.text
    resp = client.post("/api/auth/login", json={"username": username, "password": password})
    assert resp.status_code == 200, resp.text
    # Clear the cookie so each test user authenticates only through its header.
    client.cookies.clear()
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


@pytest.fixture
def auth_headers(client):
    def _headers(username: str = "alice", password: str = "pw") -> dict[str, str]:
        return register_and_login(client, username, password)

    return _headers
