"""Bounded neighbour-graph export (``graph_data``) and architecture map (``arch_map``)."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, NamedTuple, Optional, Sequence, Set

from .config import NEIGHBORHOOD_MAX_NODES
from .context import RenderContext
from .models import CLASS, DOMAIN, FUNCTION, SUBDOMAIN, TYPE, Node, get_str


@dataclass(frozen=True)
class GraphNode:
    id: str
    label: str
    type: str
    slug: str


@dataclass(frozen=True)
class GraphEdge:
    source: str
    target: str
    type: str


@dataclass
class Neighborhood:
    nodes: List[GraphNode]
    edges: List[GraphEdge]

    def to_json(self) -> str:
        payload = {
            "nodes": [asdict(n) for n in self.nodes],
            "edges": [asdict(e) for e in self.edges],
        }
        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


class RelationSet(NamedTuple):
    ids: Sequence[str]
    rel_type: str
    # True: edge points neighbour -> center.
    reverse: bool = False


def _relation_sets(ctx: RenderContext, node: Node, label: str) -> List[RelationSet]:
    """Neighbour groups in the order they are sampled."""
    index = ctx.index
    ownership = ctx.ownership
    nid = node.id

    def rel(adjacency) -> Sequence[str]:
        return adjacency.get(nid, ())

    sets = [
        RelationSet(rel(index.imports), "imports"),
        RelationSet(rel(index.imported_by), "imports", True),
        RelationSet(rel(index.calls), "calls"),
        RelationSet(rel(index.called_by), "calls", True),
        RelationSet(rel(index.defines_function), "defines"),
        RelationSet(rel(index.declares_class), "defines"),
        RelationSet(rel(index.defines_type), "defines"),
        RelationSet(rel(index.extends), "extends"),
        RelationSet(rel(index.contains_file), "contains"),
        RelationSet(rel(index.child_directory), "contains"),
    ]

    for reverse_map in (index.file_of_function, index.file_of_class, index.file_of_type):
        file_id = reverse_map.get(nid)
        if file_id is not None:
            sets.append(RelationSet((file_id,), "defines", True))

    domain = ownership.domain(nid)
    if domain and domain in ownership.domain_node_by_name:
        sets.append(RelationSet((ownership.domain_node_by_name[domain],), "belongsTo"))
    subdomain = ownership.subdomain(nid)
    if subdomain and subdomain in ownership.subdomain_node_by_name:
        sets.append(RelationSet((ownership.subdomain_node_by_name[subdomain],), "belongsTo"))

    if label == DOMAIN:
        name = get_str(node.properties, "name")
        sets.append(RelationSet(ownership.domain_subdomains.get(name, ()), "contains"))
    elif label == SUBDOMAIN:
        parent = ownership.part_of_domain.get(nid, "")
        if parent and parent in ownership.domain_node_by_name:
            sets.append(RelationSet((ownership.domain_node_by_name[parent],), "partOf"))

    return sets


def sample_neighborhood(
    ctx: RenderContext,
    node: Node,
    label: str,
    max_nodes: int = NEIGHBORHOOD_MAX_NODES,
) -> Optional[Neighborhood]:
    """Collect up to *max_nodes* nodes (center included) around *node*.

    Returns ``None`` when no neighbour could be added.
    """
    nodes: List[GraphNode] = []
    edges: List[GraphEdge] = []
    seen: Set[str] = set()

    def add_node(node_id: str) -> None:
        if node_id in seen or len(seen) >= max_nodes:
            return
        target = ctx.node(node_id)
        if target is None:
            return
        seen.add(node_id)
        nodes.append(GraphNode(
            id=node_id,
            label=get_str(target.properties, "name") or node_id,
            type=target.primary_label,
            slug=ctx.slug_for(node_id),
        ))

    add_node(node.id)

    for rel_set in _relation_sets(ctx, node, label):
        for node_id in rel_set.ids:
            if len(seen) >= max_nodes:
                break
            add_node(node_id)
            if node_id not in seen:
                continue
            if rel_set.reverse:
                edges.append(GraphEdge(node_id, node.id, rel_set.rel_type))
            else:
                edges.append(GraphEdge(node.id, node_id, rel_set.rel_type))

    if len(nodes) < 2:
        return None
    return Neighborhood(nodes=nodes, edges=edges)


def arch_map(ctx: RenderContext, node: Node, label: str, slug: str) -> Optional[Dict[str, Any]]:
    """Where the entity sits: its domain, subdomain and defining file.

    Returns ``None`` when nothing but the entity itself is known.
    """
    ownership = ctx.ownership
    result: Dict[str, Any] = {}

    domain = ownership.domain(node.id)
    if domain:
        entry = {"name": domain}
        domain_node = ownership.domain_node_by_name.get(domain)
        if domain_node is not None and ctx.slug_for(domain_node):
            entry["slug"] = ctx.slug_for(domain_node)
        result["domain"] = entry

    subdomain = ownership.subdomain(node.id)
    if subdomain:
        entry = {"name": subdomain}
        sub_node = ownership.subdomain_node_by_name.get(subdomain)
        if sub_node is not None and ctx.slug_for(sub_node):
            entry["slug"] = ctx.slug_for(sub_node)
        result["subdomain"] = entry

    file_maps = {
        FUNCTION: ctx.index.file_of_function,
        CLASS: ctx.index.file_of_class,
        TYPE: ctx.index.file_of_type,
    }
    if label in file_maps:
        file_id = file_maps[label].get(node.id)
        if file_id is not None:
            result["file"] = {"name": ctx.resolve_name(file_id), "slug": ctx.slug_for(file_id)}

    result["entity"] = {
        "name": get_str(node.properties, "name") or node.id,
        "type": label,
        "slug": slug,
    }

    if len(result) < 2:
        return None
    return result


def arch_map_json(ctx: RenderContext, node: Node, label: str, slug: str) -> str:
    data = arch_map(ctx, node, label, slug)
    if data is None:
        return ""
    return json.dumps(data, separators=(",", ":"), sort_keys=True, ensure_ascii=False)
