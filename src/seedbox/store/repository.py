"""Seed repository: create, find, list, archive and purge seed records.

Each seed is one JSON file at ``<root>/seeds/<namespace>/<id>.json``.
Lookups by id and the duplicate check scan every namespace, so a seed is
reachable from any session. Writes go through an atomic replace.

Known race: ``write()`` checks for a duplicate, then writes. Two processes
writing the same content at the same moment can both pass the check and
leave two records with one dedupe_key. There is no cross-process lock.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

from seedbox.identity import is_valid_session_id
from seedbox.store.freshness import FreshnessTier, is_outdated, sort_key, tier
from seedbox.store.fsutil import write_json
from seedbox.store.models import (
    FORBIDDEN_TITLE_CHARS,
    MENU_FILTERS,
    Anchor,
    Seed,
    dedupe_key,
    is_valid_seed_id,
    new_seed_id,
    validate_title,
)
from seedbox.store.namespace import list_namespaces, match_namespace
from seedbox.store.settings import SettingsStore

logger = logging.getLogger(__name__)


class Scope(str, Enum):
    PROJECT = "project"
    ALL = "all"


_FILTER_TIERS: dict[str, set[FreshnessTier]] = {
    "all": set(FreshnessTier),
    "active": {FreshnessTier.FRESH, FreshnessTier.GROWING},
    "outdated": {FreshnessTier.OUTDATED},
    "archived": {FreshnessTier.BOXED},
}


@dataclass
class WriteResult:
    """Outcome of write(). Validation failures are reported here, never raised."""

    success: bool
    seed: Seed | None = None
    reason: str | None = None
    code: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"success": self.success}
        if self.seed is not None:
            data["seed"] = self.seed.to_record()
        if self.reason:
            data["reason"] = self.reason
        if self.code:
            data["code"] = self.code
        return data


def now_ms() -> int:
    return time.time_ns() // 1_000_000


def iso_timestamp(ms: int) -> str:
    dt = datetime.fromtimestamp(ms / 1000, tz=timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class SeedRepository:
    """Read/write access to seeds for one resolved namespace."""

    def __init__(
        self,
        root: Path,
        session_id: str,
        project_hash: str | None = None,
        *,
        settings: SettingsStore | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        if not is_valid_session_id(session_id):
            raise ValueError(f"Invalid session id: {session_id!r}")
        self.root = root
        self.seeds_dir = root / "seeds"
        # Raises AmbiguousNamespaceError before anything is read or written.
        self.session_id = match_namespace(session_id, list_namespaces(self.seeds_dir))
        self.namespace_dir = self.seeds_dir / self.session_id
        self.project_hash = project_hash
        self.settings = settings if settings is not None else SettingsStore(root)
        self.clock = clock

    # ── Reading ──────────────────────────────────────────────

    def _read_seed(self, path: Path) -> Seed | None:
        """Parse one seed file; corrupt or unsafe records are skipped with a warning."""
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            # Removed by a concurrent process between listing and reading.
            return None
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning("Skipping unreadable seed %s: %s", path, e)
            return None

        try:
            seed = Seed.from_dict(data)
        except ValueError as e:
            logger.warning("Skipping malformed seed %s: %s", path, e)
            return None

        if FORBIDDEN_TITLE_CHARS.search(seed.title):
            logger.warning("Skipping seed with unsafe title: %s", path)
            return None
        return seed

    def _scan(self) -> Iterator[tuple[Path, Seed]]:
        """Every readable seed in every namespace."""
        for namespace in list_namespaces(self.seeds_dir):
            for path in sorted((self.seeds_dir / namespace).glob("*.json")):
                seed = self._read_seed(path)
                if seed is not None:
                    yield path, seed

    def _annotate(self, seed: Seed) -> Seed:
        timestamp = seed.timestamp_ms
        if timestamp is None:
            logger.warning("Invalid seed ID format: %s", seed.id)
            age_ms = None
        else:
            age_ms = self.clock() - timestamp
        seed.is_outdated = is_outdated(age_ms, seed.ttl_hours)
        seed.freshness_tier = tier(seed.status, age_ms, seed.ttl_hours)
        return seed

    def _in_project(self, seed: Seed) -> bool:
        if seed.project_hash:
            return seed.project_hash == self.project_hash
        # Records written before project_hash existed belong to their session only.
        return seed.session_id == self.session_id

    def _collect(self, filter: str, scope: Scope) -> list[tuple[Path, Seed]]:
        if filter not in MENU_FILTERS:
            raise ValueError(f"Invalid filter: {filter} (must be one of: {', '.join(MENU_FILTERS)})")
        wanted = _FILTER_TIERS[filter]
        found: list[tuple[Path, Seed]] = []
        for path, seed in self._scan():
            if not is_valid_seed_id(seed.id):
                logger.warning("Skipping seed with invalid ID: %s", path)
                continue
            if scope == Scope.PROJECT and not self._in_project(seed):
                continue
            self._annotate(seed)
            if seed.freshness_tier in wanted:
                found.append((path, seed))
        found.sort(key=lambda item: sort_key(item[1].freshness_tier, item[1].timestamp_ms))
        return found

    def locate(self, seed_id: str) -> tuple[Path, Seed] | None:
        """Find the file holding seed_id in any namespace."""
        if not seed_id:
            return None
        if is_valid_seed_id(seed_id):
            for namespace in list_namespaces(self.seeds_dir):
                path = self.seeds_dir / namespace / f"{seed_id}.json"
                if path.is_file():
                    seed = self._read_seed(path)
                    if seed is not None and seed.id == seed_id:
                        return path, seed
        # File names that do not match their record id.
        for path, seed in self._scan():
            if seed.id == seed_id:
                return path, seed
        return None

    def get(self, seed_id: str) -> Seed | None:
        """Return the seed with derived fields, or None. Never mutates."""
        found = self.locate(seed_id)
        if found is None:
            return None
        return self._annotate(found[1])

    def list_seeds(self, filter: str = "all", scope: Scope = Scope.PROJECT) -> list[Seed]:
        """Seeds in scope matching filter, sorted by tier then newest first."""
        return [seed for _, seed in self._collect(filter, scope)]

    def list_all_seeds(self, filter: str = "all") -> list[Seed]:
        return self.list_seeds(filter, Scope.ALL)

    # ── Writing ──────────────────────────────────────────────

    def rewrite(self, path: Path, seed: Seed) -> None:
        """Persist seed back to the file it was read from, without derived fields."""
        write_json(path, seed.to_record())

    def _find_duplicate(self, key: str) -> Seed | None:
        for _, seed in self._scan():
            if seed.dedupe_key == key:
                return seed
        return None

    def write(
        self,
        title: str,
        rationale: str,
        anchors: Iterable[Anchor | dict[str, Any]] = (),
        options_hint: str | None = None,
        ttl_hours: int | None = None,
    ) -> WriteResult:
        """Validate, deduplicate and persist a new seed in the current namespace."""
        settings = self.settings.settings
        if not settings.enabled:
            return WriteResult(False, reason="Seed store disabled", code="disabled")

        reason = validate_title(title)
        if reason:
            return WriteResult(False, reason=reason, code="invalid_title")

        if ttl_hours is not None and (
            not isinstance(ttl_hours, int) or isinstance(ttl_hours, bool) or ttl_hours <= 0
        ):
            return WriteResult(
                False, reason=f"ttl_hours must be a positive integer, got {ttl_hours!r}", code="invalid_ttl"
            )

        anchor_list = [a if isinstance(a, Anchor) else Anchor.from_dict(a) for a in anchors]
        key = dedupe_key(title, anchor_list, options_hint)
        existing = self._find_duplicate(key)
        if existing is not None:
            return WriteResult(
                False,
                reason=f"Duplicate seed (same title + anchors as {existing.id})",
                code="duplicate",
            )

        created = self.clock()
        seed = Seed(
            id=new_seed_id(created),
            title=title,
            rationale=rationale,
            anchors=anchor_list,
            options_hint=options_hint,
            ttl_hours=ttl_hours if ttl_hours is not None else settings.ttl_hours,
            created_at=iso_timestamp(created),
            dedupe_key=key,
            session_id=self.session_id,
            project_hash=self.project_hash,
        )
        write_json(self.namespace_dir / f"{seed.id}.json", seed.to_record())
        logger.info("Wrote seed %s in %s", seed.id, self.session_id)
        return WriteResult(True, seed=seed)

    def _set_status(self, seed_id: str, status: str) -> bool:
        found = self.locate(seed_id)
        if found is None:
            logger.debug("Seed %s not found", seed_id)
            return False
        path, seed = found
        seed.status = status
        self.rewrite(path, seed)
        logger.info("Set %s status=%s", seed_id, status)
        return True

    def archive(self, seed_id: str) -> bool:
        """Mark a seed archived. Archiving an archived seed succeeds."""
        return self._set_status(seed_id, "archived")

    def unarchive(self, seed_id: str) -> bool:
        """Restore a seed to active; its tier is recomputed from age on the next read."""
        return self._set_status(seed_id, "active")

    def _unlink(self, path: Path) -> bool:
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        return True

    def delete(self, seed_id: str) -> bool:
        """Permanently remove a seed."""
        found = self.locate(seed_id)
        if found is None:
            return False
        deleted = self._unlink(found[0])
        if deleted:
            logger.info("Deleted seed %s", seed_id)
        return deleted

    # ── Bulk operations ──────────────────────────────────────

    def archive_all(self, scope: Scope = Scope.PROJECT) -> int:
        """Archive every fresh or growing seed. Returns the count archived."""
        return self._archive_matching("active", scope)

    def archive_outdated(self, scope: Scope = Scope.PROJECT) -> int:
        """Archive only outdated-tier seeds, leaving fresh and growing ones."""
        return self._archive_matching("outdated", scope)

    def _archive_matching(self, filter: str, scope: Scope) -> int:
        archived = 0
        for path, seed in self._collect(filter, scope):
            seed.status = "archived"
            self.rewrite(path, seed)
            archived += 1
        if archived:
            logger.info("Archived %d %s seed(s)", archived, filter)
        return archived

    def delete_archived(self, scope: Scope = Scope.ALL) -> int:
        """Permanently delete boxed seeds."""
        deleted = sum(1 for path, _ in self._collect("archived", scope) if self._unlink(path))
        if deleted:
            logger.info("Deleted %d archived seed(s)", deleted)
        return deleted

    def cleanup_expired(self, scope: Scope = Scope.ALL) -> int:
        """Permanently delete seeds past their own ttl, whatever their status."""
        deleted = sum(
            1 for path, seed in self._collect("all", scope) if seed.is_outdated and self._unlink(path)
        )
        if deleted:
            logger.info("Cleaned up %d expired seed(s)", deleted)
        return deleted
