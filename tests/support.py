"""Utilidades de test compartidas / Shared test utilities."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, List

WINDOW_START = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
WINDOW_END = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)
VOTER_KEY = bytes.fromhex("11" * 32)
OTHER_KEY = bytes.fromhex("22" * 32)


class FakeClock:
    """Reloj controlable / Controllable clock."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> None:
        self.now = self.now + timedelta(**delta)


class FeedStub:
    """Feed falso: devuelve resultados en orden, lanza los que son excepciones.

    English: Fake feed returning results in order (the last one repeats);
    exception instances are raised instead of returned.
    """

    def __init__(self, *results: Any) -> None:
        self._results: List[Any] = list(results)
        self.calls = 0

    def fetch(self) -> Any:
        self.calls += 1
        index = min(self.calls, len(self._results)) - 1
        result = self._results[index]
        if isinstance(result, BaseException):
            raise result
        return result
