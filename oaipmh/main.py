from collections.abc import Iterable
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy import text

from oaipmh.api.routes import health, oai
from oaipmh.config import get_settings
from oaipmh.database import SessionLocal, engine
from oaipmh.enums import TokenStoreBackend
from oaipmh.models.base import Base
from oaipmh.services.formats import DEFAULT_SCHEMAS, MetadataSchema, SchemaRegistry
from oaipmh.services.providers import Provider, load_providers
from oaipmh.services.tokens import MemoryTokenStore, TokenStore


@asynccontextmanager
async def lifespan(_: FastAPI):
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as db:
        db.execute(text("SELECT 1"))
    yield


def create_app(
    providers: Iterable[tuple[str, Provider]] | None = None,
    schemas: Iterable[type[MetadataSchema]] | None = None,
    token_store: TokenStore | None = None,
) -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title="OAI-PMH Repository",
        version="0.1.0",
        description="OAI-PMH 2.0 data provider aggregating registered record providers.",
        lifespan=lifespan,
    )

    app.state.schemas = SchemaRegistry(schemas if schemas is not None else DEFAULT_SCHEMAS)
    app.state.providers = list(providers) if providers is not None else load_providers(settings.provider_paths)
    if token_store is None and settings.token_store == TokenStoreBackend.memory:
        token_store = MemoryTokenStore(settings.token_ttl_seconds)
    app.state.token_store = token_store

    app.include_router(health.router)
    app.include_router(oai.router)

    return app


app = create_app()
