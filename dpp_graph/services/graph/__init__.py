"""
Graph module - expand linked documents into a resolved graph.

Components:
- links: extract_links (``@id`` references in document order)
- expander: GraphExpander (bounded BFS, worker pool + single-writer coordinator)
- structure: nodes/edges view and inlined merge of a resolved graph
"""

from dpp_graph.services.graph.base import (
    DocumentReference,
    ExpansionOptions,
    GraphStats,
    ResolvedGraph,
)
from dpp_graph.services.graph.expander import GraphExpander, expand_document
from dpp_graph.services.graph.links import extract_links, root_id
from dpp_graph.services.graph.structure import build_graph_structure, merge_resolved_data

__all__ = [
    "DocumentReference",
    "ExpansionOptions",
    "GraphExpander",
    "GraphStats",
    "ResolvedGraph",
    "build_graph_structure",
    "expand_document",
    "extract_links",
    "merge_resolved_data",
    "root_id",
]
