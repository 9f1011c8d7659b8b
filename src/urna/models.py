"""Modelos inmutables de dominio: padrón, snapshot y votos.

English:
    Immutable domain models: roll entries, roll snapshots and ballots.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Tuple

from pydantic import BaseModel, ConfigDict, field_validator

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Feed keys that may carry the voting address, in lookup order.
VOTING_ADDRESS_KEYS = ("votingaddress", "votingAddress", "voting_address")


def utc_now() -> datetime:
    """Reloj por defecto / Default clock (aware UTC)."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Interpreta datetimes naive como UTC / Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class VoterRollEntry:
    """Entrada del padrón (masternode) / Roll entry (one masternode)."""

    voter_id: str
    voting_address: str
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_feed(cls, voter_id: str, payload: Mapping[str, Any]) -> "VoterRollEntry":
        """Construye la entrada desde el JSON del feed.

        English: Build an entry from the feed JSON. Raises ``ValueError`` when
        the entry has no voting address.
        """
        if not isinstance(payload, Mapping):
            raise ValueError(f"roll entry {voter_id!r} is not an object")
        for key in VOTING_ADDRESS_KEYS:
            value = payload.get(key)
            if isinstance(value, str) and value:
                return cls(voter_id=voter_id, voting_address=value, raw=MappingProxyType(dict(payload)))
        raise ValueError(f"roll entry {voter_id!r} has no voting address")

    def to_json(self) -> Dict[str, Any]:
        if self.raw:
            return dict(self.raw)
        return {"votingaddress": self.voting_address}


@dataclass(frozen=True)
class RollSnapshot:
    """Vista consistente del padrón y candidatos.

    English: Consistent view of the roll and candidates. ``voting_addresses``
    is always the projection of ``roll``; build snapshots with :meth:`build`.
    """

    roll: Mapping[str, VoterRollEntry]
    voting_addresses: Tuple[str, ...]
    candidates: Tuple[Any, ...]
    fetched_at: datetime

    @classmethod
    def build(
        cls,
        roll: Mapping[str, VoterRollEntry],
        candidates: Iterable[Any],
        fetched_at: datetime,
    ) -> "RollSnapshot":
        frozen_roll = MappingProxyType(dict(roll))
        return cls(
            roll=frozen_roll,
            voting_addresses=tuple(entry.voting_address for entry in frozen_roll.values()),
            candidates=tuple(candidates),
            fetched_at=ensure_utc(fetched_at),
        )

    @classmethod
    def empty(cls) -> "RollSnapshot":
        return cls.build({}, (), EPOCH)

    def roll_json(self) -> Dict[str, Dict[str, Any]]:
        return {voter_id: entry.to_json() for voter_id, entry in self.roll.items()}


@dataclass(frozen=True)
class Ballot:
    """Voto firmado almacenado / Stored signed ballot."""

    voter_address: str
    message: str
    signature: str
    created_at: datetime

    def to_json(self) -> Dict[str, Any]:
        return {
            "address": self.voter_address,
            "message": self.message,
            "signature": self.signature,
            "created_at": self.created_at.isoformat(),
        }


class BallotPayload(BaseModel):
    """Cuerpo del POST /api/vote.

    English: Body of POST /api/vote. Extra keys (including any client
    timestamp) are ignored.
    """

    model_config = ConfigDict(extra="ignore", strict=True)

    address: str
    message: str
    signature: str

    @field_validator("address", "message", "signature")
    @classmethod
    def _encodable_as_utf8(cls, value: str) -> str:
        # Lone surrogates are valid JSON escapes but cannot be hashed or stored.
        try:
            value.encode("utf-8")
        except UnicodeEncodeError as exc:
            raise ValueError("text is not encodable as UTF-8") from exc
        return value

    def to_ballot(self, created_at: datetime) -> Ballot:
        return Ballot(
            voter_address=self.address,
            message=self.message,
            signature=self.signature,
            created_at=ensure_utc(created_at),
        )
