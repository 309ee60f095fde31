"""Derived adjacency indices built from the flat relationship list.

The :class:`RelationIndex` is constructed once by :func:`build_index` and
is read-only afterwards; every mapping is a ``MappingProxyType`` over
tuples so renderers cannot mutate shared state.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .models import (
    BELONGS_TO,
    CALLS,
    CHILD_DIRECTORY,
    CONTAINS_FILE,
    DECLARES_CLASS,
    DEFINES,
    DEFINES_FUNCTION,
    DOMAIN,
    EXTENDS,
    IMPORTS,
    PART_OF,
    SUBDOMAIN,
    Node,
    Relationship,
    get_str,
)

logger = logging.getLogger(__name__)

Adjacency = Mapping[str, Tuple[str, ...]]

_EMPTY: Tuple[str, ...] = ()


def _freeze_lists(raw: Dict[str, List[str]]) -> Adjacency:
    return MappingProxyType({key: tuple(ids) for key, ids in raw.items()})


def _freeze(raw: Dict[str, str]) -> Mapping[str, str]:
    return MappingProxyType(dict(raw))


@dataclass(frozen=True)
class RelationIndex:
    """Forward and reverse adjacency keyed by node id."""

    nodes: Mapping[str, Node]
    imports: Adjacency
    imported_by: Adjacency
    calls: Adjacency
    called_by: Adjacency
    contains_file: Adjacency
    defines_function: Adjacency
    declares_class: Adjacency
    defines_type: Adjacency
    child_directory: Adjacency
    extends: Adjacency
    file_of_function: Mapping[str, str]
    file_of_class: Mapping[str, str]
    file_of_type: Mapping[str, str]
    # Direct ``belongsTo`` / ``partOf`` edges resolved to names.
    belongs_to_domain: Mapping[str, str]
    belongs_to_subdomain: Mapping[str, str]
    part_of_domain: Mapping[str, str]
    # Subdomain node ids in ``partOf`` edge order.
    part_of_order: Tuple[str, ...]

    def node(self, node_id: str) -> Optional[Node]:
        return self.nodes.get(node_id)

    @staticmethod
    def related(adjacency: Adjacency, node_id: str) -> Tuple[str, ...]:
        return adjacency.get(node_id, _EMPTY)


def build_index(nodes: Sequence[Node], relationships: Sequence[Relationship]) -> RelationIndex:
    """Index *relationships* against the merged *nodes*.

    Lists keep relationship order. Unrecognised relationship types are
    ignored. ``belongsTo`` and ``partOf`` are resolved to the target's
    ``name`` property at index time; edges whose target is unknown are
    skipped.
    """
    lookup: Dict[str, Node] = {node.id: node for node in nodes}

    forward: Dict[str, Dict[str, List[str]]] = {
        name: defaultdict(list)
        for name in (
            "imports", "imported_by", "calls", "called_by", "contains_file",
            "defines_function", "declares_class", "defines_type",
            "child_directory", "extends",
        )
    }
    file_of_function: Dict[str, str] = {}
    file_of_class: Dict[str, str] = {}
    file_of_type: Dict[str, str] = {}
    belongs_to_domain: Dict[str, str] = {}
    belongs_to_subdomain: Dict[str, str] = {}
    part_of_domain: Dict[str, str] = {}
    part_of_order: List[str] = []

    for rel in relationships:
        start, end = rel.start_node, rel.end_node
        kind = rel.type

        if kind == IMPORTS:
            forward["imports"][start].append(end)
            forward["imported_by"][end].append(start)
        elif kind == CALLS:
            forward["calls"][start].append(end)
            forward["called_by"][end].append(start)
        elif kind == CONTAINS_FILE:
            forward["contains_file"][start].append(end)
        elif kind == DEFINES_FUNCTION:
            forward["defines_function"][start].append(end)
            file_of_function[end] = start
        elif kind == DECLARES_CLASS:
            forward["declares_class"][start].append(end)
            file_of_class[end] = start
        elif kind == DEFINES:
            forward["defines_type"][start].append(end)
            file_of_type[end] = start
        elif kind == CHILD_DIRECTORY:
            forward["child_directory"][start].append(end)
        elif kind == EXTENDS:
            forward["extends"][start].append(end)
        elif kind == BELONGS_TO:
            target = lookup.get(end)
            if target is None:
                continue
            name = get_str(target.properties, "name")
            if not name:
                continue
            if target.has_label(DOMAIN):
                belongs_to_domain.setdefault(start, name)
            elif target.has_label(SUBDOMAIN):
                belongs_to_subdomain.setdefault(start, name)
        elif kind == PART_OF:
            target = lookup.get(end)
            if target is None:
                continue
            name = get_str(target.properties, "name")
            if name and start not in part_of_domain:
                part_of_domain[start] = name
                part_of_order.append(start)

    index = RelationIndex(
        nodes=MappingProxyType(lookup),
        file_of_function=_freeze(file_of_function),
        file_of_class=_freeze(file_of_class),
        file_of_type=_freeze(file_of_type),
        belongs_to_domain=_freeze(belongs_to_domain),
        belongs_to_subdomain=_freeze(belongs_to_subdomain),
        part_of_domain=_freeze(part_of_domain),
        part_of_order=tuple(part_of_order),
        **{name: _freeze_lists(raw) for name, raw in forward.items()},
    )
    logger.debug(
        "Indexed %d relationships over %d nodes (%d direct domain, %d direct subdomain edges)",
        len(relationships), len(lookup), len(belongs_to_domain), len(belongs_to_subdomain),
    )
    return index
