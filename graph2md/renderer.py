"""Assemble and serialise one Markdown document per entity."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, List, Optional

from .config import MIN_FAQS
from .context import RenderContext
from .diagram import mermaid_diagram
from .entities import FAQ, MetadataItem, Section, entity_for
from .neighborhood import arch_map_json, sample_neighborhood
from .slugs import SlugEntry


@dataclass
class RenderedDocument:
    slug: str
    metadata: List[MetadataItem] = field(default_factory=list)
    sections: List[Section] = field(default_factory=list)
    faqs: List[FAQ] = field(default_factory=list)

    def get(self, key: str, default: Any = None) -> Any:
        for item_key, value in self.metadata:
            if item_key == key:
                return value
        return default

    def section(self, title: str) -> Optional[Section]:
        for section in self.sections:
            if section.title == title:
                return section
        return None

    def to_markdown(self) -> str:
        out: List[str] = ["---\n"]
        for key, value in self.metadata:
            out.append(format_metadata(key, value))
        out.append("---\n\n")

        for section in self.sections:
            out.append(f"## {section.title}\n\n")
            out.extend(f"- {item}\n" for item in section.items)
            out.append("\n")

        if self.faqs:
            out.append("## FAQs\n\n")
            for faq in self.faqs:
                out.append(f"### {faq.question}\n\n{faq.answer}\n\n")

        return "".join(out)


def _quote(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


def format_metadata(key: str, value: Any) -> str:
    """One front-matter entry: quoted strings, bare numbers, indented lists."""
    if isinstance(value, (list, tuple)):
        if not value:
            return ""
        lines = [f"{key}:\n"]
        lines.extend(f"  - {_quote(str(item))}\n" for item in value)
        return "".join(lines)
    if isinstance(value, bool):
        return f"{key}: {'true' if value else 'false'}\n"
    if isinstance(value, (int, float)):
        return f"{key}: {value}\n"
    return f"{key}: {_quote(str(value))}\n"


def render_entity(entry: SlugEntry, ctx: RenderContext) -> RenderedDocument:
    """Render every view of one entity from the shared context."""
    entity = entity_for(entry.node, entry.label, entry.slug, ctx)

    metadata = entity.metadata()

    neighborhood = sample_neighborhood(ctx, entry.node, entry.label)
    if neighborhood is not None:
        metadata.append(("graph_data", neighborhood.to_json()))

    diagram = mermaid_diagram(ctx, entry.node, entry.label)
    if diagram is not None:
        metadata.append(("mermaid_diagram", diagram))

    location = arch_map_json(ctx, entry.node, entry.label, entry.slug)
    if location:
        metadata.append(("arch_map", location))

    faqs = entity.faq_candidates()
    if len(faqs) < MIN_FAQS:
        faqs = []

    return RenderedDocument(
        slug=entry.slug,
        metadata=metadata,
        sections=entity.body_sections(),
        faqs=faqs,
    )
