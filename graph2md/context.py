"""Phase-1 output and the read-only context every renderer works from."""

from __future__ import annotations

import html
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from .config import Settings
from .indexer import RelationIndex
from .models import Node, get_str
from .ownership import Ownership
from .slugs import SlugTable


@dataclass(frozen=True)
class SiteIndex:
    """Everything pass 1 produces; complete before any entity renders."""

    nodes: Tuple[Node, ...]
    index: RelationIndex
    ownership: Ownership
    slugs: SlugTable


@dataclass(frozen=True)
class RenderContext:
    site: SiteIndex
    settings: Settings

    @property
    def index(self) -> RelationIndex:
        return self.site.index

    @property
    def ownership(self) -> Ownership:
        return self.site.ownership

    @property
    def repo_name(self) -> str:
        return self.settings.repo_name

    @property
    def repo_url(self) -> str:
        return self.settings.repo_url

    def node(self, node_id: str) -> Optional[Node]:
        return self.site.index.node(node_id)

    def slug_for(self, node_id: str) -> str:
        return self.site.slugs.slug_for(node_id)

    # -- names ---------------------------------------------------------

    def resolve_name(self, node_id: str) -> str:
        """Display name of a node: its ``name``, else its id."""
        node = self.node(node_id)
        if node is None:
            return node_id
        return get_str(node.properties, "name") or node_id

    def resolve_names(self, node_ids: Iterable[str]) -> List[str]:
        return [self.resolve_name(node_id) for node_id in node_ids]

    def resolve_name_with_path(self, node_id: str) -> str:
        """Path-first label: ``path``, then ``filePath``, then name, then id."""
        node = self.node(node_id)
        if node is None:
            return node_id
        props = node.properties
        return (
            get_str(props, "path")
            or get_str(props, "filePath")
            or get_str(props, "name")
            or node_id
        )

    # -- links ---------------------------------------------------------

    def link(self, node_id: str, label: str) -> str:
        """Hyperlink to *node_id*'s page, or escaped text if it has none."""
        slug = self.slug_for(node_id)
        if not slug:
            return html.escape(label)
        return f'<a href="/{slug}.html">{html.escape(label)}</a>'

    def domain_link(self, name: str) -> str:
        node_id = self.ownership.domain_node_by_name.get(name)
        if node_id is None:
            return html.escape(name)
        return self.link(node_id, name)

    def subdomain_link(self, name: str) -> str:
        node_id = self.ownership.subdomain_node_by_name.get(name)
        if node_id is None:
            return html.escape(name)
        return self.link(node_id, name)

    def linked_list(self, node_ids: Sequence[str], label_fn: Callable[[str], str]) -> List[str]:
        """Links for *node_ids*, ordered by display name (stable on ties)."""
        ordered = sorted(node_ids, key=self.resolve_name)
        return [self.link(node_id, label_fn(node_id)) for node_id in ordered]

    def source_url(self, path: str, start_line: int = 0) -> str:
        if not path or not self.repo_url:
            return ""
        url = self.settings.source_template.format(repo_url=self.repo_url, path=path)
        if start_line > 0:
            url += f"#L{start_line}"
        return url
