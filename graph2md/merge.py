"""Merge several input graphs into one entity universe."""

from __future__ import annotations

import logging
from typing import Iterable, List, Set

from .models import Graph, Node, Relationship

logger = logging.getLogger(__name__)


def merge_graphs(graphs: Iterable[Graph]) -> Graph:
    """Combine graphs in input order.

    The first node seen for an id wins; later copies are dropped without
    merging properties. Relationships are concatenated unfiltered, so an
    edge may point at a dropped copy or at an id that never appears.
    """
    nodes: List[Node] = []
    relationships: List[Relationship] = []
    seen: Set[str] = set()

    for graph in graphs:
        for node in graph.nodes:
            if node.id in seen:
                continue
            seen.add(node.id)
            nodes.append(node)
        relationships.extend(graph.relationships)

    logger.info("Total: %d unique nodes, %d relationships", len(nodes), len(relationships))
    return Graph(nodes=nodes, relationships=relationships)
