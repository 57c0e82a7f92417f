import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# FORCE model registration
import app.models  # noqa
import app.db.session  # noqa  (sqlite FK pragma listener)

from app.db.base import Base
from app.db.session import get_db
from app.main import create_app
from app.services.live_delivery import LiveDeliveryRegistry

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
    future=True,
)
TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


@pytest.fixture(scope="function")
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def registry():
    return LiveDeliveryRegistry()


@pytest.fixture
def fastapi_app(db, registry):
    application = create_app()
    application.state.live_registry = registry

    def override_get_db():
        s = TestingSessionLocal()
        try:
            yield s
        finally:
            s.close()

    application.dependency_overrides[get_db] = override_get_db
    return application


@pytest.fixture
def client(fastapi_app):
    return TestClient(fastapi_app)
