"""Reconciliación del registro de votos: un voto vigente por votante.

English:
    Reduce the append-only ballot log to one current ballot per voter
    address. Recomputed from the full log on every call; no incremental
    state is kept.
"""

from __future__ import annotations

from typing import Collection, Dict, Iterable, List, Optional

from .models import Ballot


def current_votes(
    log: Iterable[Ballot],
    eligible: Optional[Collection[str]] = None,
) -> Dict[str, Ballot]:
    """Último voto por dirección; empates los gana el posterior en el log.

    English:
        Latest ballot per voter address by ``created_at``. Ties go to the
        ballot found later in log order. When ``eligible`` is given, ballots
        from addresses outside it are left out of the tally.
    """
    current: Dict[str, Ballot] = {}
    for ballot in log:
        if eligible is not None and ballot.voter_address not in eligible:
            continue
        held = current.get(ballot.voter_address)
        if held is None or ballot.created_at >= held.created_at:
            current[ballot.voter_address] = ballot
    return current


def all_votes(log: Iterable[Ballot]) -> List[Ballot]:
    return list(log)
