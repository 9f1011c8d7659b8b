"""Rutas HTTP de Urna: padrón, candidatos, votos y auditoría.

English:
    Urna HTTP routes: roll, candidates, ballot intake and audit views.
    Routes are registered directly on the application so the slowapi
    middleware resolves each endpoint and applies the default limits.
"""

from __future__ import annotations

from typing import Any, Dict, List

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from urna.errors import ErrorCode, StorageError, UrnaError
from urna.reconcile import all_votes, current_votes

from .auth import require_audit_access

API_PREFIX = "/api"


def _services(request: Request):
    return request.app.state.services


def _valid_votes(request: Request, eligible_only: bool) -> Dict[str, Any]:
    services = _services(request)
    try:
        log = services.store.all_ballots()
    except StorageError as exc:
        raise UrnaError(ErrorCode.DATABASE_GET_VALID) from exc
    eligible = set(services.cache.get().voting_addresses) if eligible_only else None
    votes = current_votes(log, eligible=eligible)
    return {address: ballot.to_json() for address, ballot in votes.items()}


def _all_votes(request: Request) -> List[Dict[str, Any]]:
    try:
        log = _services(request).store.all_ballots()
    except StorageError as exc:
        raise UrnaError(ErrorCode.DATABASE_GET_ALL) from exc
    return [ballot.to_json() for ballot in all_votes(log)]


def register_routes(app: FastAPI) -> None:
    """Registra las rutas ``/api`` en la app / Register the ``/api`` routes on the app."""

    @app.get(f"{API_PREFIX}/health")
    def api_health() -> Dict[str, Any]:
        """Salud sin autenticación / Unauthenticated health check."""
        return {"status": 200, "message": "OK"}

    # -----------------------------------------------------------------
    # Roll and candidates (Padrón y candidatos)
    # -----------------------------------------------------------------

    @app.get(f"{API_PREFIX}/candidates")
    def api_candidates(request: Request) -> List[Any]:
        """Candidatos vigentes; lista vacía antes del inicio de la votación.

        English: Current candidates; an empty list before voting starts.
        """
        services = _services(request)
        snapshot = services.cache.get()
        services.cache.refresh_async()
        if not services.window.reveals_candidates(services.clock()):
            return []
        return list(snapshot.candidates)

    @app.get(f"{API_PREFIX}/votingaddresses")
    def api_voting_addresses(request: Request) -> List[str]:
        services = _services(request)
        snapshot = services.cache.get()
        services.cache.refresh_async()
        return list(snapshot.voting_addresses)

    @app.get(f"{API_PREFIX}/mnlist")
    def api_mnlist(request: Request) -> Dict[str, Dict[str, Any]]:
        services = _services(request)
        snapshot = services.cache.get()
        services.cache.refresh_async()
        return snapshot.roll_json()

    # -----------------------------------------------------------------
    # Ballot intake (Recepción de votos)
    # -----------------------------------------------------------------

    @app.post(f"{API_PREFIX}/vote", status_code=201)
    async def api_vote(request: Request) -> JSONResponse:
        raw = await request.body()
        await run_in_threadpool(_services(request).intake.submit, raw)
        return JSONResponse(status_code=201, content={"status": 201, "message": "Vote Recorded"})

    # -----------------------------------------------------------------
    # Audit (Auditoría): private during the vote, public after it closes
    # -----------------------------------------------------------------

    audit = [Depends(require_audit_access)]

    @app.get(f"{API_PREFIX}/validVotes", dependencies=audit)
    def api_valid_votes(request: Request, eligible_only: bool = False) -> Dict[str, Any]:
        """Voto vigente por dirección / Current ballot per voter address."""
        return _valid_votes(request, eligible_only)

    @app.get(f"{API_PREFIX}/votes", dependencies=audit)
    def api_votes(request: Request, eligible_only: bool = False) -> Dict[str, Any]:
        return _valid_votes(request, eligible_only)

    @app.get(f"{API_PREFIX}/allVotes", dependencies=audit)
    def api_all_votes(request: Request) -> List[Dict[str, Any]]:
        """Registro completo, incluidos votos reemplazados / Full log, superseded ballots included."""
        return _all_votes(request)

    @app.get(f"{API_PREFIX}/all-votes", dependencies=audit)
    def api_all_votes_alias(request: Request) -> List[Dict[str, Any]]:
        return _all_votes(request)
