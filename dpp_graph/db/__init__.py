"""
Database package initialization.
"""

from dpp_graph.db.database import (
    Base,
    async_session_maker,
    check_database_health,
    close_db,
    engine,
    get_db,
    init_db,
)
from dpp_graph.db.models import CrawlTargetModel, DiscoveredDocumentModel
from dpp_graph.db.store import DocumentStore, document_to_dict, target_to_dict

__all__ = [
    # Database
    "Base",
    "engine",
    "async_session_maker",
    "get_db",
    "init_db",
    "close_db",
    "check_database_health",
    # Models
    "CrawlTargetModel",
    "DiscoveredDocumentModel",
    # Store
    "DocumentStore",
    "document_to_dict",
    "target_to_dict",
]
