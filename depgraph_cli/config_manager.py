"""Configuration manager for depgraph using TOML files."""

from __future__ import annotations

import logging
from typing import Any, Dict

import toml

from . import config
from .layout_engine import LayoutSettings, coerce_setting

logger = logging.getLogger(__name__)


def load_full_config() -> Dict[str, Any]:
    """Load the entire TOML config (all sections).

    Returns an empty dict when the file is missing or cannot be parsed.
    """
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


# ------------------------------------------------------------------
# Layout configuration
# ------------------------------------------------------------------

def load_layout_config() -> Dict[str, Any]:
    """Raw ``[layout]`` section, or an empty dict."""
    section = load_full_config().get("layout", {})
    return section if isinstance(section, dict) else {}


def load_layout_settings() -> LayoutSettings:
    """Layout settings with ``[layout]`` overrides applied.

    Values that cannot be converted fall back to their defaults.
    """
    raw = load_layout_config()
    valid: Dict[str, Any] = {}
    for key, value in raw.items():
        try:
            valid[key] = coerce_setting(key, value)
        except KeyError:
            logger.debug("Unknown layout setting '%s' ignored", key)
        except (TypeError, ValueError) as exc:
            logger.warning("Invalid value for layout setting '%s': %s", key, exc)
    return LayoutSettings.from_mapping(valid)


def save_layout_config(key: str, value: Any) -> bool:
    """Set one ``[layout]`` key, preserving other sections.

    Raises:
        KeyError: if ``key`` is not a layout setting.
        ValueError: if ``value`` cannot be converted to the setting's type.
    """
    coerced = coerce_setting(key, value)
    data = load_full_config()
    section = data.setdefault("layout", {})
    section[key] = list(coerced) if isinstance(coerced, tuple) else coerced
    return _save_full_config(data)


def reset_layout_config() -> bool:
    """Remove the ``[layout]`` section, restoring defaults."""
    data = load_full_config()
    data.pop("layout", None)
    return _save_full_config(data)
