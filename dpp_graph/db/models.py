"""
SQLAlchemy ORM models for the DPP Graph Resolver.

Organized into sections:
- Crawl Targets (sites whose passports are tracked)
- Discovered Documents (scrape history)
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dpp_graph.core.models import FetchStatus, TargetStatus
from dpp_graph.db.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimestampMixin:
    """Mixin for created_at and updated_at columns."""

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=utcnow)


# ==============================================================================
# Crawl Targets
# ==============================================================================


class CrawlTargetModel(Base, TimestampMixin):
    """A manufacturer or platform whose passports are scraped."""

    __tablename__ = "crawl_targets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    base_url: Mapped[str] = mapped_column(String(1000), unique=True, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default=TargetStatus.ACTIVE.value)
    notes: Mapped[str | None] = mapped_column(Text)

    documents: Mapped[list["DiscoveredDocumentModel"]] = relationship(back_populates="crawl_target")


# ==============================================================================
# Discovered Documents
# ==============================================================================


class DiscoveredDocumentModel(Base, TimestampMixin):
    """One scrape of one URL, successful or not."""

    __tablename__ = "discovered_documents"
    __table_args__ = (
        Index("idx_discovered_documents_status", "fetch_status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    crawl_target_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("crawl_targets.id", ondelete="SET NULL"), index=True
    )
    url: Mapped[str] = mapped_column(String(2000), nullable=False)
    payload: Mapped[Any | None] = mapped_column(JSON)  # Parsed document, None on failure
    fetch_status: Mapped[str] = mapped_column(String(20), default=FetchStatus.PENDING.value)
    error_message: Mapped[str | None] = mapped_column(Text)
    fetched_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    # format, content type, extraction method, strategy, size, scores
    doc_metadata: Mapped[dict | None] = mapped_column("metadata", JSON)

    crawl_target: Mapped[CrawlTargetModel | None] = relationship(back_populates="documents")
