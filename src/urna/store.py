"""Almacén append-only de votos sobre SQLite.

English:
    Append-only SQLite ballot log. Ballots are only ever inserted and read
    back in insertion order; there is no update or delete.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import List

from .errors import StorageError
from .models import Ballot

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS ballots (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    address     TEXT NOT NULL,
    message     TEXT NOT NULL,
    signature   TEXT NOT NULL,
    created_at  TEXT NOT NULL
)
"""


class BallotStore:
    """Registro persistente de votos / Persistent ballot log.

    A fresh connection is opened per call, so the store is safe to share
    between request threads.
    """

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)
        self._initialize()

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(str(self.db_path), timeout=10.0)
        connection.row_factory = sqlite3.Row
        return connection

    def _initialize(self) -> None:
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            connection = self._connect()
            try:
                connection.execute("PRAGMA journal_mode=WAL")
                connection.execute(_SCHEMA)
                connection.commit()
            finally:
                connection.close()
        except (OSError, sqlite3.Error) as exc:
            raise StorageError(f"cannot initialize ballot store at {self.db_path}: {exc}") from exc

    def insert(self, ballot: Ballot) -> None:
        try:
            connection = self._connect()
            try:
                with connection:
                    connection.execute(
                        "INSERT INTO ballots (address, message, signature, created_at) VALUES (?, ?, ?, ?)",
                        (
                            ballot.voter_address,
                            ballot.message,
                            ballot.signature,
                            ballot.created_at.isoformat(),
                        ),
                    )
            finally:
                connection.close()
        except sqlite3.Error as exc:
            logger.error("ballot_insert_failed address=%s error=%s", ballot.voter_address, exc)
            raise StorageError(str(exc)) from exc

    def all_ballots(self) -> List[Ballot]:
        """Todos los votos en orden de inserción / All ballots, insertion order."""
        try:
            connection = self._connect()
            try:
                rows = connection.execute(
                    "SELECT address, message, signature, created_at FROM ballots ORDER BY id"
                ).fetchall()
            finally:
                connection.close()
        except sqlite3.Error as exc:
            logger.error("ballot_read_failed error=%s", exc)
            raise StorageError(str(exc)) from exc
        return [
            Ballot(
                voter_address=row["address"],
                message=row["message"],
                signature=row["signature"],
                created_at=datetime.fromisoformat(row["created_at"]),
            )
            for row in rows
        ]
