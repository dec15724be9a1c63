"""
Document history store.

Persists scrape outcomes and crawl targets. Callers pass an AsyncSession
(the FastAPI ``get_db`` dependency); writes commit immediately.
"""

from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from dpp_graph.core.exceptions import InvalidInputError
from dpp_graph.core.models import FetchStatus
from dpp_graph.db.models import CrawlTargetModel, DiscoveredDocumentModel
from dpp_graph.services.url_utils import is_http_url

if TYPE_CHECKING:
    from dpp_graph.services.scraper import ScrapeResult

logger = structlog.get_logger()


def document_to_dict(doc: DiscoveredDocumentModel, include_payload: bool = True) -> dict[str, Any]:
    result = {
        "id": doc.id,
        "url": doc.url,
        "fetch_status": doc.fetch_status,
        "error_message": doc.error_message,
        "created_at": doc.created_at.isoformat() if doc.created_at else None,
        "fetched_at": doc.fetched_at.isoformat() if doc.fetched_at else None,
        "metadata": doc.doc_metadata or {},
        "crawl_target": doc.crawl_target.name if doc.crawl_target else None,
    }
    if include_payload:
        result["payload"] = doc.payload
    return result


def target_to_dict(target: CrawlTargetModel) -> dict[str, Any]:
    return {
        "id": target.id,
        "name": target.name,
        "base_url": target.base_url,
        "status": target.status,
        "notes": target.notes,
        "created_at": target.created_at.isoformat() if target.created_at else None,
    }


class DocumentStore:
    """Scrape history and crawl target registry."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.log = logger.bind(component="DocumentStore")

    # =========================================================================
    # Documents
    # =========================================================================

    async def save(self, url: str, result: "ScrapeResult") -> int:
        """
        Store one scrape outcome.

        The record is linked to the crawl target with the longest
        ``base_url`` prefixing ``url``, if any.

        Returns:
            New document id
        """
        target = await self.find_target_for(url)
        doc = DiscoveredDocumentModel(
            crawl_target_id=target.id if target else None,
            url=url,
            payload=result.data if result.success else None,
            fetch_status=(FetchStatus.COMPLETED if result.success else FetchStatus.FAILED).value,
            error_message=result.error,
            fetched_at=datetime.now(timezone.utc),
            doc_metadata=result.metadata(),
        )
        self.session.add(doc)
        await self.session.commit()
        self.log.info("Document saved", id=doc.id, url=url, status=doc.fetch_status)
        return doc.id

    async def get(self, document_id: int) -> DiscoveredDocumentModel | None:
        query = (
            select(DiscoveredDocumentModel)
            .options(selectinload(DiscoveredDocumentModel.crawl_target))
            .where(DiscoveredDocumentModel.id == document_id)
        )
        return (await self.session.execute(query)).scalar_one_or_none()

    async def list_recent(self, limit: int = 10) -> list[DiscoveredDocumentModel]:
        """Most recent scrapes first."""
        query = (
            select(DiscoveredDocumentModel)
            .options(selectinload(DiscoveredDocumentModel.crawl_target))
            .order_by(DiscoveredDocumentModel.created_at.desc(), DiscoveredDocumentModel.id.desc())
            .limit(limit)
        )
        return list((await self.session.execute(query)).scalars().all())

    async def delete(self, document_id: int) -> bool:
        """Delete a document. Returns False when it does not exist."""
        result = await self.session.execute(
            delete(DiscoveredDocumentModel).where(DiscoveredDocumentModel.id == document_id)
        )
        await self.session.commit()
        deleted = result.rowcount > 0
        if deleted:
            self.log.info("Document deleted", id=document_id)
        return deleted

    async def stats(self) -> dict[str, int]:
        """Totals by status plus documents created in the last 24 hours."""
        status_col = DiscoveredDocumentModel.fetch_status
        rows = await self.session.execute(
            select(status_col, func.count()).group_by(status_col)
        )
        by_status = {status: count for status, count in rows.all()}

        cutoff = datetime.now(timezone.utc) - timedelta(hours=24)
        last_24h = await self.session.scalar(
            select(func.count()).select_from(DiscoveredDocumentModel).where(
                DiscoveredDocumentModel.created_at >= cutoff
            )
        )
        return {
            "total": sum(by_status.values()),
            "successful": by_status.get(FetchStatus.COMPLETED.value, 0),
            "failed": by_status.get(FetchStatus.FAILED.value, 0),
            "last_24h": last_24h or 0,
        }

    # =========================================================================
    # Crawl targets
    # =========================================================================

    async def add_target(self, name: str, base_url: str, notes: str | None = None) -> CrawlTargetModel:
        if not name.strip():
            raise InvalidInputError("name must not be empty")
        if not is_http_url(base_url):
            raise InvalidInputError(f"Not an HTTP(S) URL: {base_url}", {"base_url": base_url})

        existing = await self.session.scalar(
            select(CrawlTargetModel).where(CrawlTargetModel.base_url == base_url)
        )
        if existing is not None:
            raise InvalidInputError("Crawl target already exists", {"base_url": base_url, "id": existing.id})

        target = CrawlTargetModel(name=name.strip(), base_url=base_url, notes=notes)
        self.session.add(target)
        await self.session.commit()
        self.log.info("Crawl target added", id=target.id, base_url=base_url)
        return target

    async def list_targets(self) -> list[CrawlTargetModel]:
        result = await self.session.execute(select(CrawlTargetModel).order_by(CrawlTargetModel.name))
        return list(result.scalars().all())

    async def find_target_for(self, url: str) -> CrawlTargetModel | None:
        matches = [t for t in await self.list_targets() if url.startswith(t.base_url)]
        return max(matches, key=lambda t: len(t.base_url), default=None)
