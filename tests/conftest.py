"""Shared test fixtures."""

from __future__ import annotations

import os

# Must be set before app.config builds its Settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["DB_AUTO_CREATE"] = "0"

from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app import order_service
from app.db import get_db
from app.main import app
from models import Base
from models.enums import Platform


def _enable_sqlite_fks(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture()
def engine():
    """Fresh in-memory database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine, "connect", _enable_sqlite_fks)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture()
def db(session_factory) -> Session:
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def make_amazon_order(db):
    """Create an Amazon order whose total is `subtotal` unless fees are given."""

    def _make(order_number: str = "AMZ-1", subtotal: str = "40.00", **fields):
        fields.setdefault("order_date", date(2024, 1, 15))
        return order_service.create_order(
            db,
            Platform.AMAZON,
            {"order_number": order_number, "subtotal": subtotal, **fields},
        )

    return _make


@pytest.fixture()
def make_ebay_order(db):
    def _make(order_number: str = "EB-1", item_subtotal: str = "50.00", **fields):
        fields.setdefault("order_date", date(2024, 1, 15))
        return order_service.create_order(
            db,
            Platform.EBAY,
            {"order_number": order_number, "item_subtotal": item_subtotal, **fields},
        )

    return _make
