"""Expansion ledger: what investigating a seed concluded.

Conclusions are appended to the seed's ``expansions`` list and never edited,
removed or deduplicated. The long-form output of an expansion lives in
``<root>/results/<id>-result.md`` as Markdown with YAML front matter.
"""

from __future__ import annotations

import logging
from pathlib import Path

import frontmatter

from seedbox.store.fsutil import atomic_write
from seedbox.store.models import ExpansionRecord, is_valid_seed_id
from seedbox.store.repository import SeedRepository, iso_timestamp

logger = logging.getLogger(__name__)


class ExpansionLedger:
    """Append-only expansion history attached to seeds."""

    def __init__(self, repository: SeedRepository) -> None:
        self.repository = repository
        self.results_dir = repository.root / "results"

    def conclude(self, seed_id: str, conclusion: str, result_path: str | None = None) -> bool:
        """Append an expansion record. Returns False if the seed does not exist."""
        found = self.repository.locate(seed_id)
        if found is None:
            logger.debug("Cannot conclude unknown seed %s", seed_id)
            return False
        path, seed = found
        seed.expansions.append(
            ExpansionRecord(
                timestamp=iso_timestamp(self.repository.clock()),
                conclusion=conclusion,
                result_path=result_path or None,
            )
        )
        self.repository.rewrite(path, seed)
        logger.info("Recorded expansion #%d for %s", len(seed.expansions), seed_id)
        return True

    def history(self, seed_id: str) -> list[ExpansionRecord] | None:
        """Expansion records in the order they were appended, or None for an unknown seed."""
        found = self.repository.locate(seed_id)
        if found is None:
            return None
        return list(found[1].expansions)

    # ── Result files ─────────────────────────────────────────

    def result_path(self, seed_id: str) -> Path:
        """Path of the result file for seed_id. Raises ValueError on a malformed id."""
        if not is_valid_seed_id(seed_id):
            raise ValueError(f"Invalid seed ID format: {seed_id!r}")
        return self.results_dir / f"{seed_id}-result.md"

    def write_result(self, seed_id: str, text: str) -> Path:
        """Write (or replace) the expansion output for a seed."""
        path = self.result_path(seed_id)
        post = frontmatter.Post(
            f"# Reflection Result\n\n{text.rstrip()}\n",
            seed_id=seed_id,
            expanded_at=iso_timestamp(self.repository.clock()),
        )
        atomic_write(path, frontmatter.dumps(post) + "\n")
        logger.info("Wrote result for %s to %s", seed_id, path)
        return path

    def read_result(self, seed_id: str) -> frontmatter.Post | None:
        path = self.result_path(seed_id)
        if not path.exists():
            return None
        return frontmatter.load(str(path))
