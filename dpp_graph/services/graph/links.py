"""
Link extraction from linked-data documents.

Collects every string ``@id`` found anywhere in a document, in document
order, without descending into ``@context``. The walk uses an explicit
stack so deeply nested or self-referencing structures cannot exhaust the
interpreter stack.
"""

from typing import Any

from dpp_graph.core.constants import BLANK_NODE_PREFIX, CONTEXT_KEY, ID_KEY


def root_id(document: Any) -> str | None:
    """The document's own ``@id``, when it has a string one."""
    if isinstance(document, dict):
        value = document.get(ID_KEY)
        if isinstance(value, str) and value:
            return value
    return None


def extract_links(
    document: Any,
    *,
    exclude_root: bool = True,
    include_blank_nodes: bool = False,
) -> list[str]:
    """
    Collect referenced identifiers from ``document``.

    Args:
        document: Parsed JSON value (object, array or scalar)
        exclude_root: Drop the document's own ``@id`` wherever it appears
        include_blank_nodes: Keep ``_:`` blank node identifiers

    Returns:
        Identifiers in first-occurrence document order, duplicates removed
    """
    own_id = root_id(document) if exclude_root else None
    links: list[str] = []
    seen: set[str] = set()
    visited: set[int] = set()
    stack: list[Any] = [document]

    while stack:
        node = stack.pop()
        if not isinstance(node, (dict, list)):
            continue
        if id(node) in visited:
            continue
        visited.add(id(node))

        if isinstance(node, list):
            stack.extend(reversed(node))
            continue

        value = node.get(ID_KEY)
        if (
            isinstance(value, str)
            and value
            and value != own_id
            and value not in seen
            and (include_blank_nodes or not value.startswith(BLANK_NODE_PREFIX))
        ):
            seen.add(value)
            links.append(value)

        children = [v for k, v in node.items() if k != CONTEXT_KEY and isinstance(v, (dict, list))]
        stack.extend(reversed(children))

    return links
