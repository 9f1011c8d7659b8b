"""Caché del padrón y candidatos con refresco por TTL.

English:
    TTL-refreshed cache of the voter roll and candidate list.

    Two independent locks:
      * ``_refresh_lock`` serializes the decision to refresh and is held
        across network I/O. It is acquired non-blocking, so a concurrent
        caller returns at once instead of queuing behind a fetch.
      * ``_publish_lock`` guards the snapshot reference and is held only for
        a read or a swap, never across I/O.

    Readers therefore never wait on an upstream HTTP call.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional, Protocol, Tuple

from .errors import SourceError
from .models import RollSnapshot, VoterRollEntry, utc_now
from .window import VotingWindow

DEFAULT_TTL = timedelta(minutes=15)

logger = logging.getLogger(__name__)


class RollFeed(Protocol):
    def fetch(self) -> Dict[str, VoterRollEntry]: ...


class CandidateFeed(Protocol):
    def fetch(self) -> Tuple[Any, ...]: ...


class RollCache:
    """Dueño exclusivo del ``RollSnapshot`` vigente.

    English: Exclusive owner of the current ``RollSnapshot``. Handlers only
    ever receive immutable snapshots through :meth:`get`.
    """

    def __init__(
        self,
        roll_source: RollFeed,
        candidate_source: CandidateFeed,
        window: VotingWindow,
        *,
        ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], datetime] = utc_now,
        initial: Optional[RollSnapshot] = None,
    ) -> None:
        self._roll_source = roll_source
        self._candidate_source = candidate_source
        self._window = window
        self._ttl = ttl
        self._clock = clock
        self._snapshot = initial or RollSnapshot.empty()
        self._refresh_lock = threading.Lock()
        self._publish_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Read path (Ruta de lectura)
    # ------------------------------------------------------------------

    def get(self) -> RollSnapshot:
        with self._publish_lock:
            return self._snapshot

    def is_stale(self, snapshot: Optional[RollSnapshot] = None) -> bool:
        current = snapshot if snapshot is not None else self.get()
        return self._clock() - current.fetched_at > self._ttl

    def refresh_async(self) -> Optional[threading.Thread]:
        """Lanza un refresco en segundo plano sin esperar su resultado.

        English: Fire-and-forget refresh. The thread is never joined by
        request handlers; its outcome only becomes visible to later reads and
        any error is logged and dropped. Returns ``None`` when the snapshot is
        fresh or a refresh is already running.
        """
        if not self.is_stale() or self._refresh_lock.locked():
            return None
        thread = threading.Thread(
            target=self._refresh_in_background,
            name="urna-roll-refresh",
            daemon=True,
        )
        thread.start()
        return thread

    # ------------------------------------------------------------------
    # Refresh path (Ruta de refresco)
    # ------------------------------------------------------------------

    def maybe_refresh(self) -> bool:
        """Refresca el snapshot si está vencido.

        English: Refresh the snapshot when stale. Returns True only when a
        new snapshot was published. Fetch failures leave the current snapshot
        untouched and are retried on the next staleness check.
        """
        if not self._refresh_lock.acquire(blocking=False):
            return False
        try:
            previous = self.get()
            if not self.is_stale(previous):
                return False

            try:
                candidates = self._candidate_source.fetch()
            except SourceError as exc:
                logger.warning("candidates_refresh_failed error=%s", exc)
                return False

            fetched_at = self._clock()
            try:
                roll = self._resolve_roll(previous)
            except SourceError as exc:
                logger.warning("roll_refresh_failed error=%s", exc)
                return False

            snapshot = RollSnapshot.build(roll, candidates, fetched_at)
            self._publish(snapshot)
            logger.info(
                "roll_snapshot_published voters=%d candidates=%d fetched_at=%s",
                len(snapshot.roll),
                len(snapshot.candidates),
                snapshot.fetched_at.isoformat(),
            )
            return True
        finally:
            self._refresh_lock.release()

    def _resolve_roll(self, previous: RollSnapshot) -> Dict[str, VoterRollEntry]:
        # Roll is frozen once a snapshot was taken after the close.
        if self._window.has_closed_at(previous.fetched_at):
            if previous.roll:
                return dict(previous.roll)
            logger.error(
                "roll_refresh_after_close_empty fetched_at=%s window_end=%s",
                previous.fetched_at.isoformat(),
                self._window.end.isoformat(),
            )
        return self._roll_source.fetch()

    def _publish(self, snapshot: RollSnapshot) -> None:
        with self._publish_lock:
            self._snapshot = snapshot

    def _refresh_in_background(self) -> None:
        try:
            self.maybe_refresh()
        except Exception:  # noqa: BLE001
            logger.exception("roll_refresh_crashed")
