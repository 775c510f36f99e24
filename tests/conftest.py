import os

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite://")

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from fiberplant.db import Base
from fiberplant.models.customer import Customer
from fiberplant.services.cable_plant import CablePlant
from fiberplant.services.customers import SqlAlchemyCustomerFeed
from fiberplant.services.storage import SqlAlchemyPlantStorage
from tests.mocks import FakeCustomerFeed, InMemoryPlantStorage


@pytest.fixture()
def engine():
    database_url = os.getenv("TEST_DATABASE_URL")
    if database_url:
        engine = create_engine(database_url)
    else:
        # A fresh in-memory database per test; plant writes commit for real.
        engine = create_engine(
            "sqlite+pysqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, _connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture()
def db_session(engine):
    SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def sql_storage(db_session):
    return SqlAlchemyPlantStorage(db_session)


@pytest.fixture()
def sql_plant(sql_storage):
    return CablePlant(sql_storage)


@pytest.fixture()
def memory_storage():
    return InMemoryPlantStorage()


@pytest.fixture()
def plant(memory_storage):
    return CablePlant(memory_storage)


@pytest.fixture()
def customers(db_session):
    rows = [
        Customer(id=1, username="jdoe", full_name="Jane Doe", address="12 Palm Street"),
        Customer(id=2, username="asmith", full_name="Ade Smith", address="4 Marina Road"),
        Customer(
            id=3,
            username="located",
            full_name="Already Pinned",
            address="1 Harbour Close",
            latitude=6.45,
            longitude=3.39,
        ),
    ]
    db_session.add_all(rows)
    db_session.commit()
    return rows


@pytest.fixture()
def customer_feed(db_session, customers):
    return SqlAlchemyCustomerFeed(db_session)


@pytest.fixture()
def fake_customer_feed():
    return FakeCustomerFeed(
        [
            Customer(id=1, username="jdoe", full_name="Jane Doe", address="12 Palm Street"),
            Customer(id=2, username="asmith", full_name="Ade Smith", address="4 Marina Road"),
        ]
    )
