"""Decode graph JSON documents into :class:`~graph2md.models.Graph` records.

Three envelope shapes are accepted, tried in order:

1. an API response: ``{"status": ..., "result": {"graph": {...}}}``
2. a bare result: ``{"graph": {...}}``
3. a bare graph: ``{"nodes": [...], "relationships": [...]}``

The first shape that yields a non-empty node list wins.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .models import Graph, GraphLoadError, node_from_dict, relationship_from_dict

logger = logging.getLogger(__name__)


def _graph_payload(doc: Any) -> Optional[Dict[str, Any]]:
    """Pick the graph object out of one of the accepted envelopes."""
    if not isinstance(doc, dict):
        return None

    candidates: List[Any] = []
    result = doc.get("result")
    if isinstance(result, dict):
        candidates.append(result.get("graph"))
    candidates.append(doc.get("graph"))
    candidates.append(doc)

    for candidate in candidates:
        if not isinstance(candidate, dict):
            continue
        nodes = candidate.get("nodes")
        if isinstance(nodes, list) and nodes:
            return candidate
    return None


def decode_graph(doc: Any) -> Graph:
    """Convert an already-parsed JSON document into a :class:`Graph`.

    Raises :class:`GraphLoadError` when no accepted envelope is found or a
    node or relationship field has the wrong JSON type.
    """
    payload = _graph_payload(doc)
    if payload is None:
        raise GraphLoadError("unrecognized graph format")

    nodes = [node_from_dict(n) for n in payload.get("nodes", []) if isinstance(n, dict)]
    raw_rels = payload.get("relationships") or []
    if not isinstance(raw_rels, list):
        raw_rels = []
    rels = [relationship_from_dict(r) for r in raw_rels if isinstance(r, dict)]
    return Graph(nodes=nodes, relationships=rels)


def load_graph(path: Path) -> Graph:
    """Read and decode one graph file."""
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise GraphLoadError(f"cannot read {path}: {exc}") from exc

    logger.debug("File size: %d bytes", len(raw))

    try:
        doc = json.loads(raw.decode("utf-8"))
    except UnicodeDecodeError as exc:
        raise GraphLoadError(f"{path} is not valid UTF-8: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise GraphLoadError(f"invalid JSON in {path}: {exc}") from exc

    return decode_graph(doc)


def load_graphs(paths: Iterable[Path]) -> Tuple[List[Graph], List[Path]]:
    """Load every readable graph; return ``(graphs, skipped_paths)``.

    A graph that fails to load is logged and skipped so the run can
    continue with whatever succeeded.
    """
    graphs: List[Graph] = []
    skipped: List[Path] = []
    for path in paths:
        logger.info("Loading graph from %s...", path)
        try:
            graph = load_graph(path)
        except GraphLoadError as exc:
            logger.warning("Failed to load %s: %s", path, exc)
            skipped.append(path)
            continue
        logger.info(
            "Loaded %d nodes, %d relationships",
            len(graph.nodes), len(graph.relationships),
        )
        graphs.append(graph)
    return graphs, skipped


def split_input_paths(values: Iterable[str]) -> List[Path]:
    """Expand comma-separated path arguments, dropping blanks."""
    paths: List[Path] = []
    for value in values:
        for part in value.split(","):
            part = part.strip()
            if part:
                paths.append(Path(part))
    return paths
