"""Recepción y validación de votos.

English:
    Ballot intake. Validation order: window gate, payload decode, server
    timestamp, address network, message signature, store insert.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Callable

from pydantic import ValidationError

from .addresses import validate_address
from .errors import ErrorCode, SignatureError, StorageError, VoteError
from .models import Ballot, BallotPayload, utc_now
from .signing import verify_message
from .store import BallotStore
from .window import VotingWindow

logger = logging.getLogger(__name__)

Verifier = Callable[[str, str, str], None]


def decode_payload(raw: bytes) -> BallotPayload:
    try:
        return BallotPayload.model_validate(json.loads(raw))
    except (ValueError, ValidationError) as exc:
        raise VoteError(ErrorCode.BAD_REQUEST, str(exc)) from exc


class VoteIntake:
    """Orquesta la validación e inserción de un voto.

    English:
        ``enforce_signatures`` decides what happens when the signature does
        not verify: when True (default) the ballot is rejected with
        ``INVALID_SIGNATURE``; when False the failure is only logged and the
        ballot is stored anyway, matching the legacy permissive service.
        Roll membership is not checked here.
    """

    def __init__(
        self,
        store: BallotStore,
        window: VotingWindow,
        *,
        network: str,
        enforce_signatures: bool = True,
        verifier: Verifier = verify_message,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.window = window
        self.network = network
        self.enforce_signatures = enforce_signatures
        self._verifier = verifier
        self._clock = clock

    def submit(self, raw: bytes) -> Ballot:
        now = self._clock()
        self.window.check_vote(now)

        payload = decode_payload(raw)
        # The server is the only authority on ballot time.
        ballot = payload.to_ballot(created_at=now)

        validate_address(ballot.voter_address, self.network)

        try:
            self._verifier(ballot.voter_address, ballot.message, ballot.signature)
        except SignatureError as exc:
            if self.enforce_signatures:
                raise VoteError(ErrorCode.INVALID_SIGNATURE, str(exc)) from exc
            logger.warning(
                "vote_signature_unverified_stored address=%s error=%s",
                ballot.voter_address,
                exc,
            )

        try:
            self.store.insert(ballot)
        except StorageError as exc:
            raise VoteError(ErrorCode.DATABASE_WRITE) from exc

        logger.info("vote_recorded address=%s created_at=%s", ballot.voter_address, ballot.created_at.isoformat())
        return ballot
