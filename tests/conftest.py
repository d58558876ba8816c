import os

# settings are read at import time; tests never touch a real database
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("AI_GATEWAY_API_KEY", "test-key")

import pytest
from datetime import date, time
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from rosterai.db.models import Base

from helpers import FakeStore, employee_row, shift_row, make_run


def get_test_monday() -> date:
    # returns a fixed Monday for deterministic tests
    return date(2025, 1, 20)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        # ON DELETE CASCADE / SET NULL only apply with foreign keys on
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def db(engine):
    """Per-test session on a fresh in-memory database."""
    session = sessionmaker(bind=engine, autoflush=False, autocommit=False)()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def fake_store() -> FakeStore:
    # 3 employees, 2 shifts, one pending run (id 1) for the week of the test monday
    store = FakeStore(
        employees=[
            employee_row(1, "Alice Smith"),
            employee_row(2, "Bob Jones"),
            employee_row(3, "Cara Lee"),
        ],
        shifts=[
            shift_row(10, "Morning", time(6, 0), time(14, 0)),
            shift_row(20, "Evening", time(14, 0), time(22, 0)),
        ],
    )
    store.add_run(make_run(1, get_test_monday()))
    return store
