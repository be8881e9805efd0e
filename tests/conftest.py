"""Shared fixtures."""

from __future__ import annotations

import pytest

from seedbox.store.freshness import HOUR_MS

START_MS = 1_760_000_000_000


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, now_ms: int = START_MS) -> None:
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, hours: float) -> None:
        self.now_ms += int(hours * HOUR_MS)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
