"""Namespace lookup by full name or unique prefix, like abbreviated git refs."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

logger = logging.getLogger(__name__)


class AmbiguousNamespaceError(ValueError):
    """A namespace prefix matched more than one existing namespace."""

    def __init__(self, prefix: str, matches: list[str]) -> None:
        self.prefix = prefix
        self.matches = matches
        listing = "\n".join(f"  - {m}" for m in matches)
        super().__init__(
            f'Ambiguous session ID prefix "{prefix}" matches multiple sessions:\n'
            f"{listing}\n"
            "Please use a longer prefix to uniquely identify the session."
        )


def list_namespaces(seeds_dir: Path) -> list[str]:
    """Names of existing namespace directories (empty if seeds_dir is missing)."""
    if not seeds_dir.is_dir():
        return []
    return sorted(p.name for p in seeds_dir.iterdir() if p.is_dir())


def match_namespace(candidate: str, existing: Iterable[str]) -> str:
    """Resolve candidate against existing namespace names.

    Exact match wins, even when candidate is also a prefix of other names
    (a legacy 12-char name inside a longer one, for example). Otherwise a
    unique prefix match is used. No match returns candidate unchanged, to
    be created as a new namespace on first write.

    Raises:
        AmbiguousNamespaceError: candidate is a prefix of two or more names.
    """
    names = list(existing)
    if candidate in names:
        return candidate

    matches = sorted(n for n in names if n.startswith(candidate))
    if not matches:
        return candidate
    if len(matches) == 1:
        logger.debug("Namespace prefix %s resolved to %s", candidate, matches[0])
        return matches[0]
    raise AmbiguousNamespaceError(candidate, matches)
