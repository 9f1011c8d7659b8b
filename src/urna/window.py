"""Compuerta temporal de la ventana de votación.

English:
    Wall-clock gate for the voting window. Every decision is a pure function
    of ``now`` and the configured ``[start, end)`` interval and is evaluated
    per request, never cached.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from .errors import ErrorCode, VoteError
from .models import ensure_utc


class WindowPhase(str, Enum):
    """Fase de la elección / Election phase."""

    PENDING = "pending"
    OPEN = "open"
    CLOSED = "closed"


@dataclass(frozen=True)
class VotingWindow:
    """Intervalo ``[start, end)`` de votación, fijo durante el proceso."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", ensure_utc(self.start))
        object.__setattr__(self, "end", ensure_utc(self.end))

    def phase(self, now: datetime) -> WindowPhase:
        now = ensure_utc(now)
        if now < self.start:
            return WindowPhase.PENDING
        if now < self.end:
            return WindowPhase.OPEN
        return WindowPhase.CLOSED

    def check_vote(self, now: datetime) -> None:
        """Rechaza votos fuera de la ventana.

        English: Raise ``VoteError`` when ballots are not accepted at ``now``.
        """
        phase = self.phase(now)
        if phase is WindowPhase.PENDING:
            raise VoteError(ErrorCode.VOTING_NOT_STARTED)
        if phase is WindowPhase.CLOSED:
            raise VoteError(ErrorCode.VOTING_CLOSED)

    def reveals_candidates(self, now: datetime) -> bool:
        # Candidates stay hidden before the start, even when already cached.
        return self.phase(now) is not WindowPhase.PENDING

    def audit_requires_token(self, now: datetime) -> bool:
        # Audit views flip from private to public exactly at close.
        return self.phase(now) is not WindowPhase.CLOSED

    def has_closed_at(self, moment: datetime) -> bool:
        """True when ``moment`` lies strictly after the window end."""
        return ensure_utc(moment) > self.end
