import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
for sub in ("backend", "frontend"):
    path = str(ROOT / sub)
    if path not in sys.path:
        sys.path.insert(0, path)

import crud  # noqa: E402
from config import Settings  # noqa: E402
from database import Database  # noqa: E402
from main import create_app  # noqa: E402

MEMORY_URL = "sqlite://"


@pytest.fixture()
def database():
    db = Database(MEMORY_URL)
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture()
def session(database):
    with database.session() as s:
        crud.seed_categories(s)
        yield s


@pytest.fixture()
def categories(session):
    """Seeded categories keyed by name."""
    return {c.name: c for c in crud.list_categories(session)}


@pytest.fixture()
def app():
    settings = Settings(database_url=MEMORY_URL, log_level="WARNING")
    return create_app(settings=settings, database=Database(MEMORY_URL))


@pytest.fixture()
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def category_ids(client):
    return {c["name"]: c["id"] for c in client.get("/categories").json()}
