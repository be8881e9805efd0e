"""Persisted store settings in ``<root>/config.json``.

Loading is a merge of known fields over defaults, not a raw deserialize:
unknown keys from other versions are dropped and missing or invalid
values fall back to the defaults.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any

from seedbox.store.fsutil import write_json
from seedbox.store.models import MENU_FILTERS

logger = logging.getLogger(__name__)

EXPANSION_MODES = ("interactive", "auto")
MODELS = ("opus", "sonnet", "haiku")
CONTEXT_TURNS_MAX = 20

# Menu order, most used first; differs from MENU_FILTERS on purpose.
FILTER_CYCLE = ("active", "outdated", "archived", "all")
CONTEXT_TURNS_CYCLE = (0, 3, 5, 10)


@dataclass(frozen=True)
class StoreSettings:
    """Store-wide settings. ``ttl_hours`` only applies to seeds created later."""

    enabled: bool = True
    ttl_hours: int = 72
    expansion_mode: str = "interactive"
    skip_permissions: bool = True
    model: str = "opus"
    default_filter: str = "active"
    context_turns: int = 3


DEFAULT_SETTINGS = StoreSettings()


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


_VALIDATORS = {
    "enabled": lambda v: isinstance(v, bool),
    "ttl_hours": lambda v: _is_int(v) and v > 0,
    "expansion_mode": lambda v: v in EXPANSION_MODES,
    "skip_permissions": lambda v: isinstance(v, bool),
    "model": lambda v: v in MODELS,
    "default_filter": lambda v: v in MENU_FILTERS,
    "context_turns": lambda v: _is_int(v) and 0 <= v <= CONTEXT_TURNS_MAX,
}


def merge_known(data: dict[str, Any]) -> StoreSettings:
    """Overlay valid known fields of data onto the defaults."""
    data = dict(data)
    # Older files stored the filter as menu_filter.
    if "default_filter" not in data and "menu_filter" in data:
        data["default_filter"] = data["menu_filter"]

    values: dict[str, Any] = {}
    for f in fields(StoreSettings):
        if f.name not in data:
            continue
        value = data[f.name]
        if _VALIDATORS[f.name](value):
            values[f.name] = value
        else:
            logger.debug("Ignoring invalid setting %s=%r", f.name, value)
    return replace(DEFAULT_SETTINGS, **values)


class SettingsStore:
    """Load-once, write-through access to config.json."""

    def __init__(self, root: Path) -> None:
        self.path = root / "config.json"
        self._settings = self._load()

    @property
    def settings(self) -> StoreSettings:
        return self._settings

    def _load(self) -> StoreSettings:
        if self.path.exists():
            try:
                data = json.loads(self.path.read_text(encoding="utf-8"))
                if isinstance(data, dict):
                    return merge_known(data)
                logger.warning("Settings file %s is not a JSON object, using defaults", self.path)
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                logger.warning("Failed to load settings from %s, using defaults: %s", self.path, e)
        self._save(DEFAULT_SETTINGS)
        return DEFAULT_SETTINGS

    def _save(self, settings: StoreSettings) -> None:
        write_json(self.path, asdict(settings))

    def update(self, **changes: Any) -> StoreSettings:
        """Validate and persist changes. Raises ValueError on an unknown or invalid field."""
        for name, value in changes.items():
            validator = _VALIDATORS.get(name)
            if validator is None:
                raise ValueError(f"Unknown setting: {name}")
            if not validator(value):
                raise ValueError(f"Invalid value for {name}: {value!r}")
        self._settings = replace(self._settings, **changes)
        self._save(self._settings)
        logger.info("Updated settings: %s", ", ".join(f"{k}={v!r}" for k, v in changes.items()))
        return self._settings

    def cycle_filter(self) -> str:
        """active → outdated → archived → all → active."""
        current = self._settings.default_filter
        idx = FILTER_CYCLE.index(current) if current in FILTER_CYCLE else -1
        nxt = FILTER_CYCLE[(idx + 1) % len(FILTER_CYCLE)]
        self.update(default_filter=nxt)
        return nxt

    def cycle_context_turns(self) -> int:
        """0 → 3 → 5 → 10 → 0; a value off the cycle jumps to 3."""
        current = self._settings.context_turns
        if current in CONTEXT_TURNS_CYCLE:
            idx = CONTEXT_TURNS_CYCLE.index(current)
            nxt = CONTEXT_TURNS_CYCLE[(idx + 1) % len(CONTEXT_TURNS_CYCLE)]
        else:
            nxt = DEFAULT_SETTINGS.context_turns
        self.update(context_turns=nxt)
        return nxt
