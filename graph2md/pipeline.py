"""Two-phase graph-to-Markdown pipeline.

Phase 1 (:func:`build_site_index`) merges the input graphs, builds the
relation index, resolves ownership and allocates every slug. Phase 2
(:func:`render_documents`) renders each entity against that finished
:class:`~graph2md.context.SiteIndex`; it needs the complete slug table
because any page may link to any other.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Sequence

from .config import Settings
from .context import RenderContext, SiteIndex
from .indexer import build_index
from .loader import load_graphs
from .merge import merge_graphs
from .models import Graph, Graph2mdError
from .ownership import resolve_ownership
from .renderer import RenderedDocument, render_entity
from .slugs import allocate_slugs
from .writer import write_documents

logger = logging.getLogger(__name__)


class OutputDirError(Graph2mdError):
    """The output directory could not be created."""


@dataclass
class RunStats:
    graphs_loaded: int = 0
    graphs_skipped: int = 0
    nodes: int = 0
    relationships: int = 0
    slugs: int = 0
    written: int = 0
    failed: int = 0


def build_site_index(graphs: Sequence[Graph]) -> SiteIndex:
    """Phase 1: everything rendering depends on."""
    merged = merge_graphs(graphs)
    index = build_index(merged.nodes, merged.relationships)
    ownership = resolve_ownership(merged.nodes, index)
    slugs = allocate_slugs(merged.nodes)
    return SiteIndex(
        nodes=tuple(merged.nodes),
        index=index,
        ownership=ownership,
        slugs=slugs,
    )


def render_documents(site: SiteIndex, settings: Settings) -> Iterator[RenderedDocument]:
    """Phase 2: one document per slugged entity, in allocation order."""
    ctx = RenderContext(site=site, settings=settings)
    for entry in site.slugs.entries:
        yield render_entity(entry, ctx)


def render_graphs(graphs: Sequence[Graph], settings: Optional[Settings] = None) -> List[RenderedDocument]:
    """Convenience wrapper running both phases in memory."""
    site = build_site_index(graphs)
    return list(render_documents(site, settings or Settings()))


def prepare_output_dir(output_dir: Path) -> None:
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise OutputDirError(f"creating output dir {output_dir}: {exc}") from exc


def run(
    paths: Sequence[Path],
    settings: Settings,
    on_phase1_done: Optional[Callable[[SiteIndex], None]] = None,
    on_written: Optional[Callable[[RenderedDocument], None]] = None,
) -> RunStats:
    """Load *paths*, render every entity and write it under ``settings.output_dir``."""
    prepare_output_dir(settings.output_dir)

    graphs, skipped = load_graphs(paths)
    site = build_site_index(graphs)
    if on_phase1_done is not None:
        on_phase1_done(site)

    written, failed = write_documents(
        render_documents(site, settings), settings.output_dir, on_written=on_written,
    )
    return RunStats(
        graphs_loaded=len(graphs),
        graphs_skipped=len(skipped),
        nodes=len(site.nodes),
        relationships=sum(len(g.relationships) for g in graphs),
        slugs=len(site.slugs),
        written=written,
        failed=failed,
    )
