"""Configuration paths and render defaults for graph2md."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

BASE_DIR = Path(os.environ.get("GRAPH2MD_HOME", str(Path.home() / ".graph2md"))).expanduser()
CONFIG_FILE = BASE_DIR / "config.toml"

DEFAULT_REPO_NAME = "supermodel-public-api"
DEFAULT_REPO_URL = "https://github.com/supermodeltools/supermodel-public-api"
# Fields: {repo_url}, {path}
DEFAULT_SOURCE_TEMPLATE = "{repo_url}/blob/main/{path}"
DEFAULT_OUTPUT_DIR = Path("data")

# Bounded exports
NEIGHBORHOOD_MAX_NODES = 31  # center + 30 neighbours
DIAGRAM_MAX_NODES = 15
MIN_FAQS = 2


@dataclass(frozen=True)
class Settings:
    repo_name: str = DEFAULT_REPO_NAME
    repo_url: str = DEFAULT_REPO_URL
    source_template: str = DEFAULT_SOURCE_TEMPLATE
    output_dir: Path = DEFAULT_OUTPUT_DIR


def ensure_base_dirs() -> None:
    """Create the config directory if needed."""
    BASE_DIR.mkdir(parents=True, exist_ok=True)
