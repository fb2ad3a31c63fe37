from datetime import datetime, timedelta

from lxml import etree
from sqlalchemy import Boolean, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from oaipmh.constants import DC_NAMESPACE, OAI_DC_NAMESPACE, OAI_NAMESPACE
from oaipmh.models.base import Base
from oaipmh.services.formats import DEFAULT_SCHEMAS, SchemaRegistry
from oaipmh.services.providers import TableProvider
from oaipmh.services.service import OAIService
from oaipmh.services.tokens import MemoryTokenStore

NS = {"oai": OAI_NAMESPACE, "oai_dc": OAI_DC_NAMESPACE, "dc": DC_NAMESPACE}

BASE_TIME = datetime(2024, 1, 1, 12, 0, 0)

RECORD_COLUMNS = ("title", "creator", "deleted")


class Article(Base):
    __tablename__ = "test_articles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    author: Mapped[str | None] = mapped_column(String(255), nullable=True)
    withdrawn: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)


class Dataset(Base):
    __tablename__ = "test_datasets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    creator: Mapped[str | None] = mapped_column(String(255), nullable=True)
    withdrawn: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    modified: Mapped[datetime] = mapped_column(DateTime, nullable=False)


def article_provider() -> TableProvider:
    return TableProvider(
        Article,
        identifier_prefix="oai:test:article/",
        columns={"title": "title", "creator": "author", "deleted": "withdrawn"},
        set_spec="articles",
        set_name="Articles",
        set_description="Journal articles",
    )


def dataset_provider() -> TableProvider:
    return TableProvider(
        Dataset,
        identifier_prefix="oai:test:dataset/",
        datestamp_column="modified",
        columns={"title": "name", "creator": "creator", "deleted": "withdrawn"},
        set_spec="datasets",
        set_name="Datasets",
    )


def seed_records(db, *, articles: int = 0, datasets: int = 0) -> list[str]:
    identifiers = []
    for index in range(1, articles + 1):
        db.add(
            Article(
                id=index,
                title=f"Article {index}",
                author=f"Author {index}",
                updated_at=BASE_TIME + timedelta(days=index),
            )
        )
        identifiers.append(f"oai:test:article/{index}")
    for index in range(1, datasets + 1):
        db.add(
            Dataset(
                id=index,
                name=f"Dataset {index}",
                creator=f"Lab {index}",
                modified=BASE_TIME + timedelta(days=index),
            )
        )
        identifiers.append(f"oai:test:dataset/{index}")
    db.commit()
    return sorted(identifiers)


def make_service(db, settings, *, providers=None, token_store=None, schema="oai_dc", **kwargs) -> OAIService:
    return OAIService(
        settings,
        db,
        schemas=SchemaRegistry(DEFAULT_SCHEMAS),
        providers=providers if providers is not None else [("articles", article_provider()), ("datasets", dataset_provider())],
        token_store=token_store if token_store is not None else MemoryTokenStore(),
        schema=schema,
        **kwargs,
    )


def parse(xml: str):
    return etree.fromstring(xml.encode("utf-8"))


def error_code(document) -> str | None:
    error = document.find("oai:error", NS)
    return None if error is None else error.get("code")


def header_identifiers(document) -> list[str]:
    return [node.text for node in document.iterfind(".//oai:header/oai:identifier", NS)]


def resumption_token(document):
    return document.find(".//oai:resumptionToken", NS)


SHARED_ARTICLES = article_provider()
