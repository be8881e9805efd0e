"""Seed records, anchors and expansion history, plus the input validators."""

from __future__ import annotations

import hashlib
import re
import secrets
import string
from dataclasses import dataclass, field
from typing import Any, Literal

from seedbox.store.freshness import FreshnessTier

SeedStatus = Literal["active", "archived"]
MenuFilter = Literal["all", "active", "outdated", "archived"]

MENU_FILTERS: tuple[str, ...] = ("all", "active", "outdated", "archived")

# Shell metacharacters and anything that breaks a one-line menu entry.
FORBIDDEN_TITLE_CHARS = re.compile(r"[$`'\"|;&\\<>(){}\x00-\x1f\x7f]")
FORBIDDEN_TITLE_DISPLAY = "$ ` ' \" | ; & \\ < > ( ) { } and control characters"

SEED_ID_RE = re.compile(r"seed-([0-9]+)-[a-z0-9]+")
SEED_ID_SUFFIX_LENGTH = 7
DEDUPE_KEY_LENGTH = 12

_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


def validate_title(title: str | None) -> str | None:
    """Return the rejection reason for a title, or None if it is acceptable."""
    if title is None or not title.strip():
        return "Title cannot be empty"
    if FORBIDDEN_TITLE_CHARS.search(title):
        return f"Invalid title: contains forbidden characters ({FORBIDDEN_TITLE_DISPLAY})"
    return None


def is_valid_seed_id(seed_id: str | None) -> bool:
    return bool(seed_id) and SEED_ID_RE.fullmatch(seed_id) is not None


def seed_id_timestamp(seed_id: str | None) -> int | None:
    """Unix ms embedded in a seed id, or None for a malformed id."""
    if not seed_id:
        return None
    match = SEED_ID_RE.fullmatch(seed_id)
    if not match:
        return None
    return int(match.group(1))


def new_seed_id(now_ms: int) -> str:
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(SEED_ID_SUFFIX_LENGTH))
    return f"seed-{now_ms}-{suffix}"


def parse_menu_filter(value: str | None, default: str) -> str:
    """Return value if it is a known filter, else default."""
    if value is not None and value in MENU_FILTERS:
        return value
    return default


@dataclass
class Anchor:
    """A source location that motivated a seed. Existence is not checked."""

    path: str
    context_start_text: str = ""
    context_end_text: str = ""
    line_start: int | None = None
    line_end: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Anchor:
        return cls(
            path=str(data.get("path", "")),
            context_start_text=str(data.get("context_start_text", "")),
            context_end_text=str(data.get("context_end_text", "")),
            line_start=data.get("line_start"),
            line_end=data.get("line_end"),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "path": self.path,
            "context_start_text": self.context_start_text,
            "context_end_text": self.context_end_text,
        }
        if self.line_start is not None:
            data["line_start"] = self.line_start
        if self.line_end is not None:
            data["line_end"] = self.line_end
        return data


@dataclass
class ExpansionRecord:
    """One investigation of a seed and what it concluded."""

    timestamp: str
    conclusion: str
    result_path: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExpansionRecord:
        return cls(
            timestamp=str(data.get("timestamp", "")),
            conclusion=str(data.get("conclusion", "")),
            result_path=data.get("result_path") or None,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"timestamp": self.timestamp, "conclusion": self.conclusion}
        if self.result_path:
            data["result_path"] = self.result_path
        return data


def dedupe_key(title: str, anchors: list[Anchor], options_hint: str | None = None) -> str:
    """Content hash over title, anchor paths/start snippets and hint."""
    anchor_str = "|".join(f"{a.path}:{a.context_start_text}" for a in anchors)
    payload = f"{title}:{anchor_str}:{options_hint or ''}"
    return hashlib.md5(payload.encode("utf-8")).hexdigest()[:DEDUPE_KEY_LENGTH]


_KNOWN_FIELDS = {
    "id",
    "title",
    "rationale",
    "anchors",
    "options_hint",
    "ttl_hours",
    "created_at",
    "dedupe_key",
    "session_id",
    "project_hash",
    "status",
    "expansions",
}
_DERIVED_FIELDS = {"is_outdated", "freshness_tier"}


@dataclass
class Seed:
    """A stored insight record.

    ``created_at`` is display-only and may come from an untrusted caller.
    Lifecycle decisions use ``timestamp_ms``, which is read from the
    store-generated ``id``.
    """

    id: str
    title: str
    rationale: str
    anchors: list[Anchor]
    ttl_hours: int
    created_at: str
    dedupe_key: str
    session_id: str
    project_hash: str | None = None
    options_hint: str | None = None
    status: SeedStatus = "active"
    expansions: list[ExpansionRecord] = field(default_factory=list)
    # Fields written by other versions; carried through rewrites untouched.
    extra: dict[str, Any] = field(default_factory=dict)

    # Derived on read, never persisted.
    is_outdated: bool | None = field(default=None, compare=False)
    freshness_tier: FreshnessTier | None = field(default=None, compare=False)

    @property
    def timestamp_ms(self) -> int | None:
        return seed_id_timestamp(self.id)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Seed:
        """Build from a parsed seed file. Raises ValueError on missing core fields."""
        if not isinstance(data, dict):
            raise ValueError("seed record is not a JSON object")
        if not isinstance(data.get("id"), str) or not isinstance(data.get("title"), str):
            raise ValueError("seed record lacks a string id/title")
        try:
            ttl_hours = int(data.get("ttl_hours", 0))
        except (TypeError, ValueError, OverflowError) as e:
            raise ValueError(f"invalid ttl_hours: {data.get('ttl_hours')!r}") from e
        for name in ("anchors", "expansions"):
            if not isinstance(data.get(name) or [], list):
                raise ValueError(f"{name} is not a list: {data[name]!r}")

        status = data.get("status") or "active"
        if status not in ("active", "archived"):
            status = "active"

        return cls(
            id=data["id"],
            title=data["title"],
            rationale=str(data.get("rationale", "")),
            anchors=[Anchor.from_dict(a) for a in data.get("anchors") or [] if isinstance(a, dict)],
            ttl_hours=ttl_hours,
            created_at=str(data.get("created_at", "")),
            dedupe_key=str(data.get("dedupe_key", "")),
            session_id=str(data.get("session_id", "")),
            project_hash=data.get("project_hash") or None,
            options_hint=data.get("options_hint"),
            status=status,
            expansions=[
                ExpansionRecord.from_dict(e) for e in data.get("expansions") or [] if isinstance(e, dict)
            ],
            extra={k: v for k, v in data.items() if k not in _KNOWN_FIELDS | _DERIVED_FIELDS},
        )

    def to_record(self) -> dict[str, Any]:
        """Persisted form: no derived fields."""
        data: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "rationale": self.rationale,
            "anchors": [a.to_dict() for a in self.anchors],
        }
        if self.options_hint is not None:
            data["options_hint"] = self.options_hint
        data.update(
            {
                "ttl_hours": self.ttl_hours,
                "created_at": self.created_at,
                "dedupe_key": self.dedupe_key,
                "session_id": self.session_id,
            }
        )
        if self.project_hash:
            data["project_hash"] = self.project_hash
        data["status"] = self.status
        data["expansions"] = [e.to_dict() for e in self.expansions]
        for key, value in self.extra.items():
            data.setdefault(key, value)
        return data

    def to_dict(self) -> dict[str, Any]:
        """Read-response form: persisted fields plus derived ones when computed."""
        data = self.to_record()
        if self.is_outdated is not None:
            data["is_outdated"] = self.is_outdated
        if self.freshness_tier is not None:
            data["freshness_tier"] = self.freshness_tier.value
        return data
