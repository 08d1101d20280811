import os

# Use in-memory sqlite for tests; must be set before runclub is imported
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["STORAGE_BACKEND"] = "sql"
os.environ["REFERENCE_TIMEZONE"] = "America/New_York"
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from runclub.api.deps import get_repositories, memory_repositories, sql_repositories  # noqa: E402
from runclub.db import Base, SessionLocal, engine  # noqa: E402
from runclub.main import app  # noqa: E402
from runclub.repositories.memory import MemoryStore  # noqa: E402


@pytest.fixture
def db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture(params=["memory", "sql"])
def repos(request):
    """Both repository implementations, so behaviour is checked on each."""
    if request.param == "memory":
        yield memory_repositories(MemoryStore())
        return
    session = request.getfixturevalue("db")
    yield sql_repositories(session)


@pytest.fixture
def client(db):
    # sql backed, fresh tables per test
    with TestClient(app) as c:
        yield c


@pytest.fixture
def memory_client(memory_store):
    def _override():
        yield memory_repositories(memory_store)

    app.dependency_overrides[get_repositories] = _override
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.pop(get_repositories, None)


@pytest.fixture
def run_payload():
    return {
        "date": "2025-08-27",
        "time": "17:30",
        "location": "central park",
        "pace": "8:30/mile",
        "description": "  Easy loop  ",
    }
