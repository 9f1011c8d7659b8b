"""Clientes HTTP de las fuentes externas: padrón y candidatos.

English:
    HTTP clients for the two upstream feeds. Both return fully parsed values
    or raise ``SourceError``; a feed is never partially applied.

    ``httpx.Timeout`` bounds each network phase, and the whole request
    (connect, headers and body) is additionally bounded by
    ``asyncio.wait_for`` with the fetch deadline, so an upstream that
    trickles bytes is abandoned once the deadline passes.

Example .env configuration:
    MNLIST_URL=https://mnlist.example.org/api/mnlist
    CANDIDATES_URL=https://sheets.example.org/{key}/candidates.json
    CANDIDATES_KEY=1AbCdEf
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Dict, Optional, Tuple

import httpx

from .errors import SourceError
from .models import VoterRollEntry

DEFAULT_ROLL_TIMEOUT_SECONDS = 5.0
DEFAULT_CONNECT_TIMEOUT_SECONDS = 10.0

logger = logging.getLogger(__name__)


def build_timeout(timeout_seconds: float, connect_timeout_seconds: float) -> httpx.Timeout:
    """Timeout de lectura corto con presupuesto de conexión separado.

    English: Short read/write/pool timeout with a separate, longer connect and
    handshake budget.
    """
    return httpx.Timeout(timeout_seconds, connect=connect_timeout_seconds)


async def _request_json(
    url: str,
    timeout: httpx.Timeout,
    transport: Optional[httpx.AsyncBaseTransport],
) -> Any:
    async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
        response = await client.get(url, headers={"Accept": "application/json"})
        response.raise_for_status()
        return response.json()


def _get_json(
    url: str,
    timeout: httpx.Timeout,
    transport: Optional[httpx.AsyncBaseTransport],
    source_name: str,
    deadline_seconds: float,
) -> Any:
    """Descarga JSON con plazo total / Fetch JSON under an overall deadline.

    Runs its own event loop, so it must not be called from a running loop;
    the cache calls it from its refresh thread.
    """
    start = time.monotonic()
    try:
        payload = asyncio.run(
            asyncio.wait_for(_request_json(url, timeout, transport), timeout=deadline_seconds)
        )
    except asyncio.TimeoutError as exc:
        raise SourceError(f"{source_name} request exceeded deadline of {deadline_seconds:.1f}s") from exc
    except httpx.HTTPStatusError as exc:
        raise SourceError(f"{source_name} returned status {exc.response.status_code}") from exc
    except httpx.HTTPError as exc:
        raise SourceError(f"{source_name} request failed: {exc.__class__.__name__}: {exc}") from exc
    except ValueError as exc:
        raise SourceError(f"{source_name} returned invalid JSON") from exc
    logger.debug(
        "source_fetch_ok source=%s elapsed_seconds=%.3f",
        source_name,
        time.monotonic() - start,
    )
    return payload


class RollSource:
    """Fuente del padrón de masternodes / Masternode roll feed.

    The feed answers with an object keyed by voter identifier (collateral
    outpoint); every value carries a ``votingaddress``.
    """

    name = "roll"

    def __init__(
        self,
        url: str,
        *,
        timeout_seconds: float = DEFAULT_ROLL_TIMEOUT_SECONDS,
        connect_timeout_seconds: float = DEFAULT_CONNECT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.url = url
        self.timeout = build_timeout(timeout_seconds, connect_timeout_seconds)
        self.deadline_seconds = timeout_seconds
        self._transport = transport

    def fetch(self) -> Dict[str, VoterRollEntry]:
        logger.info("roll_fetch_started url=%s", self.url)
        payload = _get_json(self.url, self.timeout, self._transport, self.name, self.deadline_seconds)
        if not isinstance(payload, dict):
            raise SourceError("roll feed must be a JSON object keyed by voter id")
        roll: Dict[str, VoterRollEntry] = {}
        for voter_id, entry in payload.items():
            try:
                roll[voter_id] = VoterRollEntry.from_feed(voter_id, entry)
            except ValueError as exc:
                raise SourceError(f"invalid roll entry: {exc}") from exc
        return roll


class CandidateSource:
    """Fuente de candidatos / Candidate list feed.

    ``url`` may contain a ``{key}`` placeholder filled with the feed key.
    Candidates are opaque JSON values served verbatim.
    """

    name = "candidates"

    def __init__(
        self,
        url: str,
        key: str = "",
        *,
        timeout_seconds: float = DEFAULT_ROLL_TIMEOUT_SECONDS,
        connect_timeout_seconds: float = DEFAULT_CONNECT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.url = url.replace("{key}", key) if key else url
        self.timeout = build_timeout(timeout_seconds, connect_timeout_seconds)
        self.deadline_seconds = timeout_seconds
        self._transport = transport

    def fetch(self) -> Tuple[Any, ...]:
        payload = _get_json(self.url, self.timeout, self._transport, self.name, self.deadline_seconds)
        if isinstance(payload, dict) and isinstance(payload.get("candidates"), list):
            payload = payload["candidates"]
        if not isinstance(payload, list):
            raise SourceError("candidate feed must be a JSON list")
        return tuple(payload)
