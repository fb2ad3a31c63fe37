from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from oaipmh.models.base import Base, TimestampedMixin


class ResumptionTokenRecord(Base, TimestampedMixin):
    __tablename__ = "resumption_tokens"
    __table_args__ = (Index("ix_resumption_tokens_expires_at", "expires_at"),)

    token: Mapped[str] = mapped_column(String(64), primary_key=True)
    start: Mapped[int] = mapped_column(Integer, nullable=False)
    page_limit: Mapped[int] = mapped_column(Integer, nullable=False)
    metadata_prefix: Mapped[str] = mapped_column(String(120), nullable=False)
    filter_from: Mapped[str | None] = mapped_column(String(40), nullable=True)
    filter_until: Mapped[str | None] = mapped_column(String(40), nullable=True)
    filter_set: Mapped[str | None] = mapped_column(String(255), nullable=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
