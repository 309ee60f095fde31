"""Write rendered documents to disk, one ``<slug>.md`` each."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Iterable, Optional, Tuple

from .renderer import RenderedDocument

logger = logging.getLogger(__name__)


def write_document(doc: RenderedDocument, output_dir: Path) -> Path:
    out_path = output_dir / f"{doc.slug}.md"
    out_path.write_text(doc.to_markdown(), encoding="utf-8")
    return out_path


def write_documents(
    docs: Iterable[RenderedDocument],
    output_dir: Path,
    on_written: Optional[Callable[[RenderedDocument], None]] = None,
) -> Tuple[int, int]:
    """Write every document; return ``(written, failed)``.

    A document that cannot be written is logged and skipped.
    """
    written = 0
    failed = 0
    for doc in docs:
        try:
            write_document(doc, output_dir)
        except OSError as exc:
            logger.warning("Failed to write %s: %s", output_dir / f"{doc.slug}.md", exc)
            failed += 1
            continue
        written += 1
        if on_written is not None:
            on_written(doc)

    logger.info("Generated %d entity files in %s", written, output_dir)
    return written, failed
