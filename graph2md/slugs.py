"""Stable, collision-free slug allocation for renderable entities."""

from __future__ import annotations

import logging
import posixpath
import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Sequence, Set, Tuple

from .models import (
    CLASS,
    DIRECTORY,
    DOMAIN,
    FILE,
    FUNCTION,
    RENDERABLE_LABELS,
    SUBDOMAIN,
    SYNTHETIC_ROOT_MARKER,
    TYPE,
    Node,
    get_str,
)

logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[^a-z0-9]+")

_SYMBOL_PREFIX = {FUNCTION: "fn", CLASS: "class", TYPE: "type"}


def to_slug(text: str) -> str:
    """Lower-case *text* and collapse every non-alphanumeric run to ``-``."""
    return _NON_ALNUM.sub("-", text.lower()).strip("-")


def is_synthetic_root(path: str) -> bool:
    return SYNTHETIC_ROOT_MARKER in path


def base_slug(node: Node, label: str) -> str:
    """Compute the unsuffixed slug for *node*, or ``""`` if it has none."""
    props = node.properties

    if label == FILE:
        path = get_str(props, "path")
        return to_slug(f"file-{path}") if path else ""

    if label in _SYMBOL_PREFIX:
        name = get_str(props, "name")
        if not name:
            return ""
        prefix = _SYMBOL_PREFIX[label]
        file_path = get_str(props, "filePath")
        if file_path:
            return to_slug(f"{prefix}-{posixpath.basename(file_path)}-{name}")
        return to_slug(f"{prefix}-{name}")

    if label in (DOMAIN, SUBDOMAIN):
        name = get_str(props, "name")
        return to_slug(f"{label.lower()}-{name}") if name else ""

    if label == DIRECTORY:
        path = get_str(props, "path")
        if not path or is_synthetic_root(path):
            return ""
        return to_slug(f"dir-{path}")

    return ""


@dataclass(frozen=True)
class SlugEntry:
    node: Node
    label: str
    slug: str


@dataclass(frozen=True)
class SlugTable:
    """Node id to slug, plus the entries to render in allocation order."""

    by_node: Mapping[str, str]
    entries: Tuple[SlugEntry, ...]

    def slug_for(self, node_id: str) -> str:
        return self.by_node.get(node_id, "")

    def __len__(self) -> int:
        return len(self.entries)


def allocate_slugs(nodes: Sequence[Node]) -> SlugTable:
    """Assign one unique slug per renderable node, in node-list order.

    The first claim of a base slug keeps it bare; later claims get
    ``-1``, ``-2``, ... counted per base string. A suffixed candidate
    already owned by another entity is skipped.
    """
    by_node: Dict[str, str] = {}
    entries: List[SlugEntry] = []
    taken: Set[str] = set()
    collisions: Dict[str, int] = {}

    for node in nodes:
        label = node.primary_label
        if label not in RENDERABLE_LABELS:
            continue

        base = base_slug(node, label)
        if not base:
            continue

        slug = base
        if slug in taken:
            n = collisions.get(base, 0)
            while True:
                n += 1
                slug = f"{base}-{n}"
                if slug not in taken:
                    break
            collisions[base] = n

        taken.add(slug)
        by_node[node.id] = slug
        entries.append(SlugEntry(node=node, label=label, slug=slug))

    logger.info("Pass 1 complete: %d slugs generated", len(entries))
    return SlugTable(by_node=MappingProxyType(by_node), entries=tuple(entries))
