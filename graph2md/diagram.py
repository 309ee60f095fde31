"""Small per-entity Mermaid flowcharts for the ``mermaid_diagram`` field."""

from __future__ import annotations

import posixpath
import re
from typing import List, Optional, Sequence, Set

from .config import DIAGRAM_MAX_NODES
from .context import RenderContext
from .models import CLASS, DIRECTORY, DOMAIN, FILE, FUNCTION, SUBDOMAIN, TYPE, Node, get_str

_UNSAFE_ID = re.compile(r"[^A-Za-z0-9_]")

CENTER_STYLE = "fill:#6366f1,stroke:#818cf8,color:#fff"


def mermaid_escape(text: str) -> str:
    return text.replace('"', "#quot;").replace("<", "#lt;").replace(">", "#gt;")


def mermaid_id(node_id: str) -> str:
    """Mermaid-safe node id; anything outside ``[A-Za-z0-9_]`` becomes ``_``."""
    return _UNSAFE_ID.sub("_", node_id) or "node"


class _Diagram:
    """Accumulates statements while counting distinct nodes against a cap."""

    def __init__(self, ctx: RenderContext, direction: str, center: Node, center_label: str,
                 max_nodes: int) -> None:
        self.ctx = ctx
        self.max_nodes = max_nodes
        self.center_id = mermaid_id(center.id)
        self.lines: List[str] = [f"graph {direction}", f'  {self.center_id}["{center_label}"]']
        self.added: Set[str] = {self.center_id}

    @property
    def full(self) -> bool:
        return len(self.added) >= self.max_nodes

    def _place(self, node_id: str, suffix: str) -> str:
        mid = mermaid_id(node_id)
        self.added.add(mid)
        label = mermaid_escape(self.ctx.resolve_name(node_id))
        self.lines.append(f'  {mid}["{label}{suffix}"]')
        return mid

    def outgoing(self, node_ids: Sequence[str], arrow: str = "-->", suffix: str = "") -> None:
        for node_id in node_ids:
            if self.full:
                break
            mid = self._place(node_id, suffix)
            self.lines.append(f"  {self.center_id} {arrow} {mid}")

    def incoming(self, node_ids: Sequence[str], arrow: str = "-->", suffix: str = "") -> None:
        for node_id in node_ids:
            if self.full:
                break
            mid = self._place(node_id, suffix)
            self.lines.append(f"  {mid} {arrow} {self.center_id}")

    def defined_in(self, file_id: Optional[str]) -> None:
        if file_id is not None:
            self.outgoing((file_id,), "-->|defined in|")

    def render(self, style_center: bool = True) -> Optional[str]:
        if len(self.added) < 2:
            return None
        lines = list(self.lines)
        if style_center:
            lines.append(f"  style {self.center_id} {CENTER_STYLE}")
        return "\n".join(lines)


def mermaid_diagram(
    ctx: RenderContext,
    node: Node,
    label: str,
    max_nodes: int = DIAGRAM_MAX_NODES,
) -> Optional[str]:
    """Render a capped Mermaid graph around *node*; ``None`` if it has no neighbours."""
    index = ctx.index
    ownership = ctx.ownership
    nid = node.id
    props = node.properties
    name = mermaid_escape(get_str(props, "name") or nid)

    if label == FILE:
        diagram = _Diagram(ctx, "LR", node, name, max_nodes)
        diagram.outgoing(index.imports.get(nid, ()))
        diagram.incoming(index.imported_by.get(nid, ()))
        return diagram.render()

    if label == FUNCTION:
        diagram = _Diagram(ctx, "TD", node, name + "()", max_nodes)
        diagram.defined_in(index.file_of_function.get(nid))
        diagram.incoming(index.called_by.get(nid, ()), "-->|calls|", "()")
        diagram.outgoing(index.calls.get(nid, ()), "-->|calls|", "()")
        return diagram.render()

    if label == TYPE:
        diagram = _Diagram(ctx, "TD", node, name, max_nodes)
        diagram.defined_in(index.file_of_type.get(nid))
        return diagram.render()

    if label == CLASS:
        diagram = _Diagram(ctx, "TD", node, name, max_nodes)
        diagram.outgoing(index.extends.get(nid, ()), "-->|extends|")
        diagram.defined_in(index.file_of_class.get(nid))
        diagram.outgoing(index.defines_function.get(nid, ()), "-->|method|", "()")
        return diagram.render(style_center=False)

    if label == DOMAIN:
        domain_name = get_str(props, "name")
        diagram = _Diagram(ctx, "TD", node, mermaid_escape(domain_name), max_nodes)
        diagram.outgoing(ownership.domain_subdomains.get(domain_name, ()))
        return diagram.render()

    if label == SUBDOMAIN:
        sub_name = get_str(props, "name")
        diagram = _Diagram(ctx, "TD", node, mermaid_escape(sub_name), max_nodes)
        diagram.outgoing(ownership.files_in_subdomain(sub_name))
        return diagram.render()

    if label == DIRECTORY:
        dir_name = get_str(props, "name") or posixpath.basename(get_str(props, "path"))
        diagram = _Diagram(ctx, "TD", node, mermaid_escape(dir_name) + "/", max_nodes)
        diagram.outgoing(index.child_directory.get(nid, ()), suffix="/")
        diagram.outgoing(index.contains_file.get(nid, ()))
        return diagram.render()

    return None
