import pytest
from pydantic import ValidationError

from oaipmh.config import Settings
from oaipmh.enums import DeletedRecordPolicy, Granularity, TokenStoreBackend

REQUIRED = {
    "DATABASE_URL": "sqlite://",
    "REPOSITORY_NAME": "Repo",
    "BASE_URL": "https://repo.example.org/oai/",
    "ADMIN_EMAIL": "admin@example.org",
}


def test_defaults_and_base_url_normalisation():
    settings = Settings(**REQUIRED)
    assert settings.base_url == "https://repo.example.org/oai"
    assert settings.page_limit == 50
    assert settings.deleted_record == DeletedRecordPolicy.no
    assert settings.granularity == Granularity.seconds
    assert settings.token_store == TokenStoreBackend.database


def test_effective_limit_is_capped():
    settings = Settings(**REQUIRED, PAGE_LIMIT=20, MAX_PAGE_LIMIT=100)
    assert settings.effective_limit() == 20
    assert settings.effective_limit(75) == 75
    assert settings.effective_limit(1000) == 100
    assert settings.effective_limit(0) == 20


def test_provider_paths_are_split():
    settings = Settings(**REQUIRED, PROVIDERS="app.providers:articles, datasets=app.providers:make_datasets ,")
    assert settings.provider_paths == ["app.providers:articles", "datasets=app.providers:make_datasets"]


def test_invalid_settings_are_rejected():
    with pytest.raises(ValidationError):
        Settings(**{**REQUIRED, "REPOSITORY_NAME": " "})
    with pytest.raises(ValidationError):
        Settings(**REQUIRED, PAGE_LIMIT=100, MAX_PAGE_LIMIT=10)
    with pytest.raises(ValidationError):
        Settings(**REQUIRED, DELETED_RECORD="sometimes")


def test_earliest_datestamp_default_follows_granularity():
    assert Settings(**REQUIRED).earliest_datestamp == "1970-01-01T00:00:00Z"
    assert Settings(**REQUIRED, GRANULARITY="YYYY-MM-DD").earliest_datestamp == "1970-01-01"
    explicit = Settings(**REQUIRED, GRANULARITY="YYYY-MM-DD", EARLIEST_DATESTAMP="2001-02-03")
    assert explicit.earliest_datestamp == "2001-02-03"
