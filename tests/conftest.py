"""Fixtures compartidas para los tests de Urna.

Bilingual: Shared fixtures for the Urna tests (clock, window, keys, settings).
"""

from __future__ import annotations

import json
from datetime import timedelta
from typing import Any, Callable, Dict, Optional

import pytest

from support import OTHER_KEY, VOTER_KEY, WINDOW_END, WINDOW_START, FakeClock
from urna.config import UrnaSettings
from urna.models import VoterRollEntry
from urna.signing import address_from_private_key, sign_message
from urna.window import VotingWindow


@pytest.fixture
def window() -> VotingWindow:
    return VotingWindow(start=WINDOW_START, end=WINDOW_END)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(WINDOW_START + timedelta(days=1))


@pytest.fixture
def voter_address() -> str:
    return address_from_private_key(VOTER_KEY, "mainnet")


@pytest.fixture
def ballot_body() -> Callable[..., bytes]:
    """Construye el JSON de un voto firmado / Build a signed ballot JSON body."""

    def _build(
        message: str = "yes: candidate-1",
        *,
        key: bytes = VOTER_KEY,
        address: Optional[str] = None,
        **extra: Any,
    ) -> bytes:
        payload: Dict[str, Any] = {
            "address": address or address_from_private_key(key, "mainnet"),
            "message": message,
            "signature": sign_message(key, message),
        }
        payload.update(extra)
        return json.dumps(payload).encode("utf-8")

    return _build


@pytest.fixture
def roll(voter_address: str) -> Dict[str, VoterRollEntry]:
    entries = {
        "aa11:0": {"votingaddress": voter_address, "status": "ENABLED"},
        "bb22:1": {"votingaddress": address_from_private_key(OTHER_KEY, "mainnet"), "status": "ENABLED"},
    }
    return {voter_id: VoterRollEntry.from_feed(voter_id, entry) for voter_id, entry in entries.items()}


@pytest.fixture
def settings_factory(tmp_path) -> Callable[..., UrnaSettings]:
    def _build(**overrides: Any) -> UrnaSettings:
        values: Dict[str, Any] = {
            "DASH_NETWORK": "mainnet",
            "JWT_SECRET_KEY": "test-secret",
            "MNLIST_URL": "https://mnlist.example.org/api/mnlist",
            "CANDIDATES_URL": "https://feeds.example.org/{key}/candidates.json",
            "CANDIDATES_KEY": "sheet-1",
            "VOTE_START_DATE": WINDOW_START,
            "VOTE_END_DATE": WINDOW_END,
            "DB_PATH": tmp_path / "votes.db",
        }
        values.update(overrides)
        return UrnaSettings(**values)

    return _build
