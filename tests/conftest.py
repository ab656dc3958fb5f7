import os

# Keep the app's own engine off the filesystem
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from expense_tracker.database import Base, create_tables, enable_sqlite_foreign_keys, get_db
from expense_tracker.main import app


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    create_tables(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


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


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def register(client):
    """Register a user and return auth headers for them"""
    def _register(name="Ana", email="ana@x.com", password="secret1"):
        response = client.post("/api/users", json={"name": name, "email": email, "password": password})
        assert response.status_code == 201, response.text
        token = client.post("/api/sessions", json={"email": email, "password": password}).json()["token"]
        return {"Authorization": f"Bearer {token}"}
    return _register


@pytest.fixture
def auth(register):
    return register()


@pytest.fixture
def other_auth(register):
    return register(name="Bruno", email="bruno@y.com", password="secret2")
