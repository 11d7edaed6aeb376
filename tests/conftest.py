# tests/conftest.py
"""Shared fixtures: in-memory SQLite seeded with the default types and board prices."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["MASTER_PIN"] = "1234"

import pytest
from decimal import Decimal
from datetime import datetime
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from glossapp.auth import ROLE_ADMIN, ROLE_STAFF, Caller, SecretVerifier, get_secret_verifier
from glossapp.database import create_tables, get_db
from glossapp.main import app
from glossapp.models.washer import Washer
from glossapp.seed import seed_defaults
from glossapp.services import party_service

MASTER_PIN = "1234"


@pytest.fixture
def engine():
    eng = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    create_tables(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    seed_defaults(session)
    yield session
    session.close()


@pytest.fixture
def admin():
    return Caller(id="admin-1", role=ROLE_ADMIN)


@pytest.fixture
def staff():
    return Caller(id="staff-1", role=ROLE_STAFF)


@pytest.fixture
def secrets():
    return SecretVerifier(MASTER_PIN)


@pytest.fixture
def washer(db):
    """'mike' on a 20% commission."""
    w = Washer(username="mike", name="Mike", active=True, salary_percentage=Decimal("20"),
               created_at=datetime.utcnow())
    db.add(w)
    db.commit()
    return w


@pytest.fixture
def company(db, admin):
    """Acme with active 10% and 50% discounts."""
    return party_service.create_company(db, admin, "Acme", "+995 555 000 000", [10, 50])


@pytest.fixture
def record_data(washer):
    return {
        "license_plate": "ABC-123",
        "car_category": "SEDAN",
        "wash_type": "COMPLETE",
        "washer_id": washer.id,
        "discount_percentage": 0,
    }


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_secret_verifier] = lambda: SecretVerifier(MASTER_PIN)
    yield TestClient(app)
    app.dependency_overrides.clear()
