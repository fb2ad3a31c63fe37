import os

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///./test_oai.db")
os.environ.setdefault("REPOSITORY_NAME", "Test Repository")
os.environ.setdefault("BASE_URL", "https://repo.example.org/oai")
os.environ.setdefault("ADMIN_EMAIL", "admin@example.org")
os.environ.setdefault("TOKEN_STORE", "database")

from oaipmh.config import get_settings  # noqa: E402
from oaipmh.database import SessionLocal, engine  # noqa: E402
from oaipmh.main import create_app  # noqa: E402
from oaipmh.models.base import Base  # noqa: E402
from tests.helpers import article_provider, dataset_provider  # noqa: E402


@pytest.fixture(autouse=True)
def reset_db():
    get_settings.cache_clear()
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def settings():
    return get_settings()


@pytest.fixture()
def db_session():
    with SessionLocal() as db:
        yield db
        db.rollback()


@pytest.fixture()
def providers():
    return [("articles", article_provider()), ("datasets", dataset_provider())]


@pytest.fixture()
def client(providers):
    app = create_app(providers=providers)
    with TestClient(app) as test_client:
        yield test_client
