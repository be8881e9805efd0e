"""Freshness tiers: how far along its lifecycle a seed is.

    fresh    🌱  younger than 24 hours
    growing  💭  older than 24 hours, within its ttl
    outdated 💤  older than 24 hours and past its ttl
    boxed    📦  archived by hand, regardless of age

``is_outdated`` is a separate signal: a seed with a 2-hour ttl is outdated
after 3 hours but stays in the ``fresh`` tier until it is a day old.
"""

from __future__ import annotations

from enum import Enum

HOUR_MS = 60 * 60 * 1000
FRESH_THRESHOLD_HOURS = 24


class FreshnessTier(str, Enum):
    FRESH = "fresh"
    GROWING = "growing"
    OUTDATED = "outdated"
    BOXED = "boxed"

    @property
    def glyph(self) -> str:
        return _GLYPHS[self]

    @property
    def rank(self) -> int:
        return _ORDER[self]


_GLYPHS = {
    FreshnessTier.FRESH: "🌱",
    FreshnessTier.GROWING: "💭",
    FreshnessTier.OUTDATED: "💤",
    FreshnessTier.BOXED: "📦",
}

_ORDER = {
    FreshnessTier.FRESH: 0,
    FreshnessTier.GROWING: 1,
    FreshnessTier.OUTDATED: 2,
    FreshnessTier.BOXED: 3,
}


def is_outdated(age_ms: int | None, ttl_hours: float) -> bool:
    """Past ttl. Unknown age counts as maximally aged."""
    if age_ms is None:
        return True
    return age_ms > ttl_hours * HOUR_MS


def tier(status: str, age_ms: int | None, ttl_hours: float) -> FreshnessTier:
    """Map (status, age, ttl) to a tier. Pure; unknown age is treated as outdated."""
    if status == "archived":
        return FreshnessTier.BOXED
    if age_ms is not None and age_ms < FRESH_THRESHOLD_HOURS * HOUR_MS:
        return FreshnessTier.FRESH
    if is_outdated(age_ms, ttl_hours):
        return FreshnessTier.OUTDATED
    return FreshnessTier.GROWING


def sort_key(freshness: FreshnessTier, timestamp_ms: int | None) -> tuple[int, int]:
    """Listing order: tier rank ascending, then newest first within a tier."""
    return (freshness.rank, -(timestamp_ms or 0))
