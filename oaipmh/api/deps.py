from urllib.parse import parse_qsl

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from oaipmh.config import Settings, get_settings
from oaipmh.database import get_db
from oaipmh.services.formats import SchemaRegistry
from oaipmh.services.providers import Provider
from oaipmh.services.tokens import DatabaseTokenStore, TokenStore

DBSession = Depends(get_db)
AppSettings = Depends(get_settings)


async def get_request_arguments(request: Request) -> list[tuple[str, str]]:
    """Query string pairs, followed by form-encoded body pairs on POST."""
    items = list(request.query_params.multi_items())
    if request.method == "POST":
        body = (await request.body()).decode("utf-8")
        items.extend(parse_qsl(body, keep_blank_values=True))
    return items


def get_schemas(request: Request) -> SchemaRegistry:
    return request.app.state.schemas


def get_providers(request: Request) -> list[tuple[str, Provider]]:
    return list(request.app.state.providers)


def get_token_store(request: Request, db: Session = DBSession, settings: Settings = AppSettings) -> TokenStore:
    store = request.app.state.token_store
    if store is not None:
        return store
    return DatabaseTokenStore(db, settings.token_ttl_seconds)
