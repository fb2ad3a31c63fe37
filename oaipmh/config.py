from datetime import UTC, datetime
from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from oaipmh.enums import DeletedRecordPolicy, Granularity, TokenStoreBackend
from oaipmh.services.utils import format_datestamp

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    database_url: str = Field(alias="DATABASE_URL")
    repository_name: str = Field(alias="REPOSITORY_NAME")
    base_url: str = Field(alias="BASE_URL")
    admin_email: str = Field(alias="ADMIN_EMAIL")

    earliest_datestamp: str = Field(default="", alias="EARLIEST_DATESTAMP")
    deleted_record: DeletedRecordPolicy = Field(default=DeletedRecordPolicy.no, alias="DELETED_RECORD")
    granularity: Granularity = Field(default=Granularity.seconds, alias="GRANULARITY")
    protocol_version: str = Field(default="2.0", alias="PROTOCOL_VERSION")
    metadata_prefix: str = Field(default="oai_dc", alias="METADATA_PREFIX")

    page_limit: int = Field(default=50, alias="PAGE_LIMIT")
    max_page_limit: int = Field(default=500, alias="MAX_PAGE_LIMIT")
    token_store: TokenStoreBackend = Field(default=TokenStoreBackend.database, alias="TOKEN_STORE")
    token_ttl_seconds: int = Field(default=86400, alias="TOKEN_TTL_SECONDS")
    strict_resumption_tokens: bool = Field(default=False, alias="STRICT_RESUMPTION_TOKENS")

    stylesheet: str = Field(default="", alias="STYLESHEET")
    providers: str = Field(default="", alias="PROVIDERS")

    @model_validator(mode="after")
    def validate_required_runtime(self) -> "Settings":
        if not self.database_url.strip():
            raise ValueError("DATABASE_URL is required")
        if not self.repository_name.strip():
            raise ValueError("REPOSITORY_NAME is required")
        if not self.base_url.strip():
            raise ValueError("BASE_URL is required")
        if not self.admin_email.strip():
            raise ValueError("ADMIN_EMAIL is required")
        if self.page_limit < 1:
            raise ValueError("PAGE_LIMIT must be >= 1")
        if self.max_page_limit < self.page_limit:
            raise ValueError("MAX_PAGE_LIMIT must be >= PAGE_LIMIT")
        if self.token_ttl_seconds < 1:
            raise ValueError("TOKEN_TTL_SECONDS must be >= 1")
        if not self.metadata_prefix.strip():
            raise ValueError("METADATA_PREFIX is required")
        if not self.earliest_datestamp.strip():
            self.earliest_datestamp = format_datestamp(EPOCH, self.granularity)
        self.base_url = self.base_url.rstrip("/")
        return self

    @property
    def provider_paths(self) -> list[str]:
        return [item.strip() for item in self.providers.split(",") if item.strip()]

    def effective_limit(self, requested: int | None = None) -> int:
        limit = requested if requested and requested > 0 else self.page_limit
        return min(limit, self.max_page_limit)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
