"""TOML configuration manager for CodeFeatures.

Settings resolve in order: environment variable, ``config.toml``, default.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import toml

from . import config

logger = logging.getLogger(__name__)

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def load_full_config(config_file: Optional[Path] = None) -> Dict[str, Any]:
    """Load the entire TOML config (all sections).

    Returns an empty dict when the file is missing or unreadable.
    """
    path = config_file or config.CONFIG_FILE
    if not path.exists():
        return {}
    try:
        with open(path, "r") as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.warning("Ignoring unreadable config file %s: %s", path, exc)
        return {}


def _save_full_config(cfg: Dict[str, Any], config_file: Optional[Path] = None) -> bool:
    """Write entire config dict to TOML file, preserving all sections."""
    path = config_file or config.CONFIG_FILE
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            toml.dump(cfg, f)
        return True
    except OSError as exc:
        logger.warning("Could not write config file %s: %s", path, exc)
        return False


# ------------------------------------------------------------------
# Parser configuration
# ------------------------------------------------------------------

def load_parser_config(config_file: Optional[Path] = None) -> Dict[str, Any]:
    """Load the ``[parser]`` section (e.g. ``max_depth``)."""
    return load_full_config(config_file).get("parser", {})


def save_parser_config(max_depth: int, config_file: Optional[Path] = None) -> bool:
    """Persist the signature nesting limit.

    Preserves ``[logging]`` and other sections.

    Args:
        max_depth: Maximum generic nesting depth accepted by the parser
        config_file: Alternate config location

    Returns:
        True if saved successfully.
    """
    if max_depth < 1:
        raise ValueError("max_depth must be positive")
    cfg = load_full_config(config_file)
    cfg["parser"] = {**cfg.get("parser", {}), "max_depth": max_depth}
    return _save_full_config(cfg, config_file)


def get_max_signature_depth(config_file: Optional[Path] = None) -> int:
    raw = os.environ.get(config.MAX_DEPTH_ENV)
    if raw is None:
        raw = load_parser_config(config_file).get("max_depth", config.DEFAULT_MAX_SIGNATURE_DEPTH)
    try:
        depth = int(raw)
    except (TypeError, ValueError):
        logger.warning("Invalid max_depth %r; using %d", raw, config.DEFAULT_MAX_SIGNATURE_DEPTH)
        return config.DEFAULT_MAX_SIGNATURE_DEPTH
    return depth if depth > 0 else config.DEFAULT_MAX_SIGNATURE_DEPTH


# ------------------------------------------------------------------
# Logging configuration
# ------------------------------------------------------------------

def load_logging_config(config_file: Optional[Path] = None) -> Dict[str, Any]:
    """Load the ``[logging]`` section (e.g. ``level``)."""
    return load_full_config(config_file).get("logging", {})


def save_logging_config(level: str, config_file: Optional[Path] = None) -> bool:
    """Persist the default log level used by the CLI."""
    level = level.upper()
    if level not in LOG_LEVELS:
        raise ValueError(f"Unknown log level: {level}")
    cfg = load_full_config(config_file)
    cfg["logging"] = {**cfg.get("logging", {}), "level": level}
    return _save_full_config(cfg, config_file)


def get_log_level(config_file: Optional[Path] = None) -> str:
    level = os.environ.get(config.LOG_LEVEL_ENV) or load_logging_config(config_file).get(
        "level", config.DEFAULT_LOG_LEVEL
    )
    level = str(level).upper()
    return level if level in LOG_LEVELS else config.DEFAULT_LOG_LEVEL
