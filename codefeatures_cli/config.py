"""Configuration paths and defaults for CodeFeatures."""

from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(os.environ.get("CODEFEATURES_HOME", str(Path.home() / ".codefeatures"))).expanduser()
CONFIG_FILE = BASE_DIR / "config.toml"

# Generic nesting accepted by the type-signature parser before it gives up
DEFAULT_MAX_SIGNATURE_DEPTH = 512
DEFAULT_LOG_LEVEL = "WARNING"

MAX_DEPTH_ENV = "CODEFEATURES_MAX_DEPTH"
LOG_LEVEL_ENV = "CODEFEATURES_LOG_LEVEL"

