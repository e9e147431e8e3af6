# tests/conftest.py
"""Shared fixtures: in-memory SQLite ledger, seeded people/assets, officer contexts."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

# Must be set before app.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_TO_FILE", "false")

import pytest
from datetime import datetime
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import build_engine, create_tables
from app.models.asset import Asset
from app.models.person import Person
from app.services.identity_service import OfficerContext


@pytest.fixture
def engine():
    eng = build_engine("sqlite://", poolclass=StaticPool)
    create_tables(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


def add_person(db, barcode, name, role, pin="1234", status="active", department="Operations"):
    now = datetime.utcnow()
    person = Person(barcode=barcode, pin=pin, name=name, role=role, department=department,
                    status=status, created_at=now, updated_at=now)
    db.add(person)
    db.commit()
    db.refresh(person)
    return person


def add_asset(db, number, asset_class="key", subtype=None, last_odometer=None, location=None):
    subtype = subtype or ("office" if asset_class == "key" else "company")
    if asset_class == "vehicle" and last_odometer is None:
        last_odometer = 0
    asset = Asset(number=number, asset_class=asset_class, subtype=subtype, status="available",
                  last_odometer=last_odometer, location=location)
    db.add(asset)
    db.commit()
    db.refresh(asset)
    return asset


@pytest.fixture
def people(db):
    return {
        "officer": add_person(db, "5001", "Gate Officer", "security_gate"),
        "admin": add_person(db, "9001", "Site Admin", "admin", pin="4321"),
        "alice": add_person(db, "41486001051", "Alice Driver", "driver"),
        "bob": add_person(db, "41486001052", "Bob Driver", "driver"),
        "staff": add_person(db, "7001", "Sam Staff", "staff"),
        "ceo": add_person(db, "1", "Chief Exec", "ceo"),
        "retired": add_person(db, "6001", "Old Hand", "driver", status="inactive"),
    }


@pytest.fixture
def officer_ctx(people):
    return OfficerContext(officer=people["officer"])


@pytest.fixture
def admin_ctx(people):
    return OfficerContext(officer=people["admin"])


@pytest.fixture
def key(db):
    return add_asset(db, "K-101", "key", "office")


@pytest.fixture
def vehicle(db):
    return add_asset(db, "KDA 123A", "vehicle", "company", last_odometer=1000)
