import os

os.environ.setdefault("GUESTREVIEWS_DB_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from guestreviews.database import Base, get_db
from guestreviews import models  # noqa: F401


@pytest.fixture(autouse=True)
def no_hostaway_credentials(monkeypatch):
    for var in ("HOSTAWAY_ACCOUNT_ID", "HOSTAWAY_API_KEY", "HOSTAWAY_BASE_URL", "HOSTAWAY_FIXTURE_PATH"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def db():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def client(db):
    from guestreviews.main import app

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def make_raw(**overrides):
    record = {
        "id": 1001,
        "type": "guest-to-host",
        "status": "published",
        "rating": 8.5,
        "publicReview": "Great stay",
        "reviewCategory": [{"category": "location", "rating": 9}],
        "submittedAt": "2024-03-01T10:00:00Z",
        "guestName": "Ada",
        "listingName": "2B N1 A - 29 Shoreditch Heights",
    }
    record.update(overrides)
    return record
