import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from blogapi.database import create_db_and_tables, get_session
from blogapi.main import app


@pytest.fixture()
def engine():
    """A fresh in-memory SQLite database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_db_and_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture()
def client(engine):
    def _get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = _get_session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def make_user(client):
    def _make_user(name="Alice", email="alice@example.com", password="secret", role="USER"):
        r = client.post('/api/users', json={'name': name, 'email': email, 'password': password, 'role': role})
        assert r.status_code == 201
        return r.json()
    return _make_user
