"""
Graph structure helpers for visualisation and inlining.

- build_graph_structure: nodes/edges view of a root plus its resolved links
- merge_resolved_data: copy of the root with resolved documents inlined

Both walk documents with an explicit stack.
"""

import copy
from dataclasses import asdict, dataclass
from typing import Any

from dpp_graph.core.constants import CONTEXT_KEY, ID_KEY, TYPE_KEY
from dpp_graph.core.models import LinkStatus
from dpp_graph.services.graph.base import DocumentReference

ROOT_NODE_ID = "root"


@dataclass
class GraphNode:
    id: str
    label: str
    type: str
    depth: int
    status: str
    size: int | None = None


@dataclass
class GraphEdge:
    source: str
    target: str
    label: str


def _node_type(node: dict[str, Any], default: str) -> str:
    value = node.get(TYPE_KEY)
    if isinstance(value, list):
        value = value[0] if value else None
    return value if isinstance(value, str) and value else default


def _node_label(node: dict[str, Any], node_type: str, node_id: str) -> str:
    name = node.get("name")
    if isinstance(name, str) and name:
        return name
    if node_type and node_type != "Unknown":
        return node_type
    return node_id.rstrip("/").rsplit("/", 1)[-1] or node_id


def build_graph_structure(
    root: dict[str, Any],
    links: dict[str, DocumentReference],
) -> dict[str, list[dict[str, Any]]]:
    """
    Build a nodes/edges structure for drawing the graph.

    The root is depth 0. Edges are labelled with the property that holds
    the reference and are only emitted for identifiers present in
    ``links`` (or the root itself). Resolved documents contribute their
    own outgoing edges.
    """
    root_node_id = root.get(ID_KEY) if isinstance(root.get(ID_KEY), str) else ROOT_NODE_ID
    root_type = _node_type(root, "Document")

    nodes = [GraphNode(
        id=root_node_id,
        label=_node_label(root, root_type, root_node_id),
        type=root_type,
        depth=0,
        status=LinkStatus.RESOLVED.value,
    )]
    edges: list[GraphEdge] = []
    added = {root_node_id}
    edge_keys: set[tuple[str, str, str]] = set()

    # (value, source id, property label)
    stack: list[tuple[Any, str, str]] = [(root, root_node_id, "")]
    visited: set[int] = set()

    while stack:
        value, source, label = stack.pop()
        if isinstance(value, list):
            stack.extend((item, source, label) for item in reversed(value))
            continue
        if not isinstance(value, dict) or id(value) in visited:
            continue
        visited.add(id(value))

        target = value.get(ID_KEY)
        if label and isinstance(target, str) and target != source and (target in links or target == root_node_id):
            key = (source, target, label)
            if key not in edge_keys:
                edge_keys.add(key)
                edges.append(GraphEdge(source=source, target=target, label=label))

            ref = links.get(target)
            if ref is not None and target not in added:
                node_type = _node_type(value, "Unknown")
                if ref.data is not None and isinstance(ref.data, dict):
                    node_type = _node_type(ref.data, node_type)
                nodes.append(GraphNode(
                    id=target,
                    label=_node_label(value, node_type, target),
                    type=node_type,
                    depth=ref.depth,
                    status=ref.status.value,
                    size=ref.size_bytes,
                ))
                added.add(target)
                if ref.status == LinkStatus.RESOLVED and ref.data is not None:
                    stack.append((ref.data, target, ""))
            # Properties of a reference node belong to the referenced document
            source = target

        children = [
            (child, source, key)
            for key, child in value.items()
            if key not in (CONTEXT_KEY, ID_KEY) and isinstance(child, (dict, list))
        ]
        stack.extend(reversed(children))

    return {
        "nodes": [asdict(n) for n in nodes],
        "edges": [asdict(e) for e in edges],
    }


def merge_resolved_data(root: Any, links: dict[str, DocumentReference]) -> Any:
    """
    Deep copy of ``root`` with resolved documents inlined.

    Each reference node whose ``@id`` resolved to an object gets that
    object's properties merged in. Every identifier is inlined at most
    once, so mutually referencing documents cannot loop.
    """
    merged = copy.deepcopy(root)
    inlined: set[str] = set()
    stack: list[Any] = [merged]

    while stack:
        node = stack.pop()
        if isinstance(node, list):
            stack.extend(reversed(node))
            continue
        if not isinstance(node, dict):
            continue

        node_id = node.get(ID_KEY)
        if isinstance(node_id, str) and node_id not in inlined:
            ref = links.get(node_id)
            if ref is not None and ref.status == LinkStatus.RESOLVED and isinstance(ref.data, dict):
                inlined.add(node_id)
                node.update(copy.deepcopy(ref.data))

        stack.extend(
            reversed([v for k, v in node.items() if k != CONTEXT_KEY and isinstance(v, (dict, list))])
        )

    return merged
