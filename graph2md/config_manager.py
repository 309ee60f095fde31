"""Configuration manager for graph2md using TOML files.

Settings are layered: built-in defaults, then the ``[render]`` section of
``~/.graph2md/config.toml``, then ``GRAPH2MD_*`` environment variables,
then explicit overrides (CLI options).
"""

from __future__ import annotations

import logging
import os
import string
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Optional

import toml

from . import config
from .config import Settings
from .models import Graph2mdError

logger = logging.getLogger(__name__)

RENDER_SECTION = "render"

RENDER_KEYS = ("repo_name", "repo_url", "source_template", "output_dir")

ENV_VARS = {
    "repo_name": "GRAPH2MD_REPO_NAME",
    "repo_url": "GRAPH2MD_REPO_URL",
    "source_template": "GRAPH2MD_SOURCE_TEMPLATE",
    "output_dir": "GRAPH2MD_OUTPUT_DIR",
}

_TEMPLATE_FIELDS = {"repo_url", "path"}


class ConfigError(Graph2mdError):
    """Invalid configuration value."""


def validate_source_template(template: str) -> str:
    """Reject templates that reference fields other than ``repo_url`` / ``path``."""
    try:
        fields = {name for _, name, _, _ in string.Formatter().parse(template) if name is not None}
    except ValueError as exc:
        raise ConfigError(f"malformed source template {template!r}: {exc}") from exc
    unknown = fields - _TEMPLATE_FIELDS
    if unknown:
        raise ConfigError(
            f"source template {template!r} uses unknown field(s): {', '.join(sorted(unknown))}"
        )
    return template


def load_full_config() -> Dict[str, Any]:
    """Load the entire TOML config (all sections)."""
    if not config.CONFIG_FILE.exists():
        return {}
    try:
        with open(config.CONFIG_FILE, "r", encoding="utf-8") as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", config.CONFIG_FILE, exc)
        return {}


def _save_full_config(data: Dict[str, Any]) -> bool:
    """Write entire config dict to TOML file, preserving all sections."""
    config.ensure_base_dirs()
    try:
        with open(config.CONFIG_FILE, "w", encoding="utf-8") as f:
            toml.dump(data, f)
        return True
    except OSError as exc:
        logger.warning("Could not write config %s: %s", config.CONFIG_FILE, exc)
        return False


def load_render_config() -> Dict[str, Any]:
    """Return the ``[render]`` section, or an empty dict."""
    section = load_full_config().get(RENDER_SECTION, {})
    return section if isinstance(section, dict) else {}


def save_render_config(**values: Optional[str]) -> bool:
    """Update keys of the ``[render]`` section; other sections are preserved.

    Args:
        **values: Any of ``repo_name``, ``repo_url``, ``source_template``,
            ``output_dir``. ``None`` values are left untouched.

    Returns:
        True if saved successfully.
    """
    unknown = set(values) - set(RENDER_KEYS)
    if unknown:
        raise ConfigError(f"unknown setting(s): {', '.join(sorted(unknown))}")
    if values.get("source_template"):
        validate_source_template(values["source_template"])

    data = load_full_config()
    section = dict(data.get(RENDER_SECTION, {}))
    for key, value in values.items():
        if value is not None:
            section[key] = str(value)
    data[RENDER_SECTION] = section
    return _save_full_config(data)


def clear_render_config() -> bool:
    """Remove the ``[render]`` section, resetting to defaults."""
    data = load_full_config()
    data.pop(RENDER_SECTION, None)
    return _save_full_config(data)


def load_settings(**overrides: Any) -> Settings:
    """Resolve :class:`Settings` from defaults, TOML, environment and overrides."""
    values: Dict[str, Any] = {}

    for key, value in load_render_config().items():
        if key in RENDER_KEYS and isinstance(value, str):
            values[key] = value

    for key, env_name in ENV_VARS.items():
        env_value = os.environ.get(env_name)
        if env_value is not None:
            values[key] = env_value

    for key, value in overrides.items():
        if key not in RENDER_KEYS:
            raise ConfigError(f"unknown setting: {key}")
        if value is not None:
            values[key] = value

    if "output_dir" in values:
        values["output_dir"] = Path(values["output_dir"])
    if "source_template" in values:
        validate_source_template(values["source_template"])

    return replace(Settings(), **values)
