"""Core graph records shared by loading, indexing, and rendering layers."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Tuple

# Primary labels that produce a document.
FILE = "File"
FUNCTION = "Function"
CLASS = "Class"
TYPE = "Type"
DOMAIN = "Domain"
SUBDOMAIN = "Subdomain"
DIRECTORY = "Directory"

RENDERABLE_LABELS = (FILE, FUNCTION, CLASS, TYPE, DOMAIN, SUBDOMAIN, DIRECTORY)

# Relationship types understood by the indexer.
IMPORTS = "IMPORTS"
CALLS = "calls"
CONTAINS_FILE = "CONTAINS_FILE"
DEFINES_FUNCTION = "DEFINES_FUNCTION"
DECLARES_CLASS = "DECLARES_CLASS"
DEFINES = "DEFINES"
CHILD_DIRECTORY = "CHILD_DIRECTORY"
EXTENDS = "EXTENDS"
BELONGS_TO = "belongsTo"
PART_OF = "partOf"

# Directories under the analyser's synthetic checkout root are never rendered.
SYNTHETIC_ROOT_MARKER = "/app/repo-root/"


class Graph2mdError(Exception):
    """Base error for graph2md."""


class GraphLoadError(Graph2mdError):
    """A graph document could not be read or decoded."""


@dataclass(frozen=True)
class Node:
    id: str
    labels: Tuple[str, ...] = ()
    properties: Mapping[str, Any] = field(default_factory=dict)

    @property
    def primary_label(self) -> str:
        return self.labels[0] if self.labels else ""

    def has_label(self, label: str) -> bool:
        return label in self.labels


@dataclass(frozen=True)
class Relationship:
    id: str
    type: str
    start_node: str
    end_node: str
    properties: Mapping[str, Any] = field(default_factory=dict)


@dataclass
class Graph:
    nodes: List[Node] = field(default_factory=list)
    relationships: List[Relationship] = field(default_factory=list)


def get_str(props: Mapping[str, Any], key: str) -> str:
    """Return a string property, or ``""`` when missing or not a string."""
    value = props.get(key)
    if isinstance(value, str):
        return value
    return ""


def get_int(props: Mapping[str, Any], key: str) -> int:
    """Return a numeric property as ``int``, or ``0`` unless it is a finite number."""
    value = props.get(key)
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value):
        return int(value)
    return 0


def _field(raw: Dict[str, Any], key: str, kind: type, default: Any) -> Any:
    """Typed field of a decoded record; ``null`` or missing gives *default*."""
    value = raw.get(key)
    if value is None:
        return default
    if not isinstance(value, kind):
        raise GraphLoadError(f"field {key!r} must be {kind.__name__}, got {type(value).__name__}")
    return value


def node_from_dict(raw: Dict[str, Any]) -> Node:
    labels = _field(raw, "labels", list, [])
    if not all(isinstance(label, str) for label in labels):
        raise GraphLoadError("field 'labels' must hold only strings")
    return Node(
        id=_field(raw, "id", str, ""),
        labels=tuple(labels),
        properties=dict(_field(raw, "properties", dict, {})),
    )


def relationship_from_dict(raw: Dict[str, Any]) -> Relationship:
    return Relationship(
        id=_field(raw, "id", str, ""),
        type=_field(raw, "type", str, ""),
        start_node=_field(raw, "startNode", str, ""),
        end_node=_field(raw, "endNode", str, ""),
        properties=dict(_field(raw, "properties", dict, {})),
    )
