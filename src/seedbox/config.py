"""Configuration loading from environment variables and seedbox.toml."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib
from pathlib import Path

_DEFAULT_BASE_DIR = Path.home() / ".seedbox"
_CONFIG_FILENAME = "seedbox.toml"


@dataclass
class SeedboxConfig:
    """Process-level settings for one seedbox invocation.

    Persisted store settings (ttl, filters, model toggles) live in
    ``<base_dir>/config.json`` and are handled by ``seedbox.store.settings``.
    """

    base_dir: Path = _DEFAULT_BASE_DIR
    log_level: str = "WARNING"
    session_override: str | None = None


def load_config(config_path: Path | None = None) -> SeedboxConfig:
    """Load configuration from environment variables and optional seedbox.toml.

    Priority: environment variables > seedbox.toml > defaults.
    """
    file_data: dict = {}
    if config_path and config_path.exists():
        file_data = tomllib.loads(config_path.read_text())
    else:
        # Search current dir and ~/.seedbox/
        for candidate in [Path.cwd() / _CONFIG_FILENAME, _DEFAULT_BASE_DIR / _CONFIG_FILENAME]:
            if candidate.exists():
                file_data = tomllib.loads(candidate.read_text())
                break

    base_dir = os.getenv("SEEDBOX_HOME") or file_data.get("base_dir") or str(_DEFAULT_BASE_DIR)

    return SeedboxConfig(
        base_dir=Path(base_dir).expanduser(),
        log_level=os.getenv("SEEDBOX_LOG_LEVEL", file_data.get("log_level", "WARNING")),
        session_override=os.getenv("SEEDBOX_SESSION_ID", file_data.get("session_id")) or None,
    )
