"""Domain / subdomain ownership inference.

Explicit ``belongsTo`` edges seed the assignment; files without one
inherit it from the first function or class (or class method) that has
one, and any node with a subdomain but no domain picks up the domain
its subdomain is ``partOf``. Assignments are never overwritten.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .indexer import Adjacency, RelationIndex
from .models import CLASS, DOMAIN, FILE, FUNCTION, SUBDOMAIN, Node, get_str

logger = logging.getLogger(__name__)

_EMPTY: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Ownership:
    """Completed, read-only ownership state."""

    domain_of: Mapping[str, str]
    subdomain_of: Mapping[str, str]
    part_of_domain: Mapping[str, str]
    domain_files: Mapping[str, Tuple[str, ...]]
    subdomain_files: Mapping[str, Tuple[str, ...]]
    domain_subdomains: Mapping[str, Tuple[str, ...]]
    subdomain_functions: Mapping[str, Tuple[str, ...]]
    subdomain_classes: Mapping[str, Tuple[str, ...]]
    domain_node_by_name: Mapping[str, str]
    subdomain_node_by_name: Mapping[str, str]

    def domain(self, node_id: str) -> str:
        return self.domain_of.get(node_id, "")

    def subdomain(self, node_id: str) -> str:
        return self.subdomain_of.get(node_id, "")

    def files_in_domain(self, name: str) -> Tuple[str, ...]:
        return self.domain_files.get(name, _EMPTY)

    def files_in_subdomain(self, name: str) -> Tuple[str, ...]:
        return self.subdomain_files.get(name, _EMPTY)


def _infer_from_contents(
    file_id: str,
    assigned: Mapping[str, str],
    defines_function: Adjacency,
    declares_class: Adjacency,
) -> Optional[str]:
    """Walk a file's functions, then classes and their methods; first hit wins."""
    for fn_id in defines_function.get(file_id, _EMPTY):
        if fn_id in assigned:
            return assigned[fn_id]
    for cls_id in declares_class.get(file_id, _EMPTY):
        if cls_id in assigned:
            return assigned[cls_id]
        for fn_id in defines_function.get(cls_id, _EMPTY):
            if fn_id in assigned:
                return assigned[fn_id]
    return None


def _infer_files(nodes: Sequence[Node], assigned: Dict[str, str], index: RelationIndex) -> int:
    inferred = 0
    for node in nodes:
        if not node.has_label(FILE) or node.id in assigned:
            continue
        found = _infer_from_contents(node.id, assigned, index.defines_function, index.declares_class)
        if found is not None:
            assigned[node.id] = found
            inferred += 1
    return inferred


def _group(
    nodes: Sequence[Node], assigned: Mapping[str, str], label: str,
) -> Mapping[str, Tuple[str, ...]]:
    grouped: Dict[str, List[str]] = defaultdict(list)
    for node in nodes:
        name = assigned.get(node.id)
        if name is not None and node.has_label(label):
            grouped[name].append(node.id)
    return MappingProxyType({name: tuple(ids) for name, ids in grouped.items()})


def resolve_ownership(nodes: Sequence[Node], index: RelationIndex) -> Ownership:
    """Complete the ownership assignment for every node."""
    domain_of: Dict[str, str] = dict(index.belongs_to_domain)
    subdomain_of: Dict[str, str] = dict(index.belongs_to_subdomain)

    # Domain and subdomain walks are independent of each other.
    inferred_domains = _infer_files(nodes, domain_of, index)
    inferred_subdomains = _infer_files(nodes, subdomain_of, index)

    domain_node_by_name: Dict[str, str] = {}
    subdomain_node_by_name: Dict[str, str] = {}
    for node in nodes:
        name = get_str(node.properties, "name")
        if not name:
            continue
        if node.has_label(DOMAIN):
            domain_node_by_name[name] = node.id
        elif node.has_label(SUBDOMAIN):
            subdomain_node_by_name[name] = node.id

    propagated = 0
    for node in nodes:
        sub_name = subdomain_of.get(node.id)
        if sub_name is None or node.id in domain_of:
            continue
        sub_node_id = subdomain_node_by_name.get(sub_name)
        if sub_node_id is None:
            continue
        parent = index.part_of_domain.get(sub_node_id, "")
        if parent:
            domain_of[node.id] = parent
            propagated += 1

    domain_subdomains: Dict[str, List[str]] = defaultdict(list)
    for sub_node_id in index.part_of_order:
        domain_subdomains[index.part_of_domain[sub_node_id]].append(sub_node_id)

    logger.debug(
        "Ownership: %d files inferred a domain, %d a subdomain, %d nodes took a domain from their subdomain",
        inferred_domains, inferred_subdomains, propagated,
    )

    return Ownership(
        domain_of=MappingProxyType(domain_of),
        subdomain_of=MappingProxyType(subdomain_of),
        part_of_domain=index.part_of_domain,
        domain_files=_group(nodes, domain_of, FILE),
        subdomain_files=_group(nodes, subdomain_of, FILE),
        domain_subdomains=MappingProxyType(
            {name: tuple(ids) for name, ids in domain_subdomains.items()}
        ),
        subdomain_functions=_group(nodes, subdomain_of, FUNCTION),
        subdomain_classes=_group(nodes, subdomain_of, CLASS),
        domain_node_by_name=MappingProxyType(domain_node_by_name),
        subdomain_node_by_name=MappingProxyType(subdomain_node_by_name),
    )
