import os

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from fastapi.testclient import TestClient

from database.category_store import CategoryStore
from database.connection import SessionLocal, create_tables, drop_tables, get_db
from main import app
from schemas.category import CategoryCreate
from services.category import create_category


@pytest.fixture()
def db_session():
    # One in-memory database per test; StaticPool keeps it alive between sessions
    drop_tables()
    create_tables()

    session = SessionLocal()
    yield session

    session.rollback()
    session.close()
    drop_tables()


@pytest.fixture()
def store(db_session):
    return CategoryStore(db_session)


@pytest.fixture()
def make_category(store):
    def _make(name, slug, parent_id=None, **extra):
        payload = CategoryCreate(name=name, slug=slug, parent_id=parent_id, **extra)
        return create_category(store, payload)
    return _make


@pytest.fixture()
def client(db_session):
    def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
