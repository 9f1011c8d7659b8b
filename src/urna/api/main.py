"""Aplicación FastAPI de Urna.

English:
    Urna FastAPI application factory. Wires the roll cache, ballot store,
    voting window and intake into ``app.state.services`` and installs the
    JSON error envelope ``{message?, status, url, error}`` for every non-2xx
    response.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from http import HTTPStatus
from typing import Callable, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.exceptions import HTTPException as StarletteHTTPException

from urna import __version__
from urna.cache import RollCache
from urna.config import UrnaSettings
from urna.errors import ErrorCode, UrnaError
from urna.intake import VoteIntake
from urna.models import utc_now
from urna.sources import CandidateSource, RollSource
from urna.store import BallotStore
from urna.window import VotingWindow

from .routes import register_routes

logger = logging.getLogger(__name__)


@dataclass
class AppServices:
    """Colaboradores compartidos por los handlers / Collaborators shared by handlers."""

    settings: UrnaSettings
    window: VotingWindow
    cache: RollCache
    store: BallotStore
    intake: VoteIntake
    clock: Callable[[], datetime]


def build_services(
    settings: UrnaSettings,
    *,
    clock: Callable[[], datetime] = utc_now,
    cache: Optional[RollCache] = None,
    store: Optional[BallotStore] = None,
) -> AppServices:
    window = settings.window()
    if cache is None:
        roll_source = RollSource(
            settings.MNLIST_URL,
            timeout_seconds=settings.ROLL_FETCH_TIMEOUT_SECONDS,
            connect_timeout_seconds=settings.CONNECT_TIMEOUT_SECONDS,
        )
        candidate_source = CandidateSource(
            settings.CANDIDATES_URL,
            settings.CANDIDATES_KEY,
            timeout_seconds=settings.ROLL_FETCH_TIMEOUT_SECONDS,
            connect_timeout_seconds=settings.CONNECT_TIMEOUT_SECONDS,
        )
        cache = RollCache(
            roll_source,
            candidate_source,
            window,
            ttl=timedelta(seconds=settings.CACHE_TTL_SECONDS),
            clock=clock,
        )
    if store is None:
        store = BallotStore(settings.DB_PATH)
    intake = VoteIntake(
        store,
        window,
        network=settings.DASH_NETWORK,
        enforce_signatures=settings.ENFORCE_SIGNATURES,
        clock=clock,
    )
    return AppServices(
        settings=settings,
        window=window,
        cache=cache,
        store=store,
        intake=intake,
        clock=clock,
    )


# ---------------------------------------------------------------------------
# Error envelope (Sobre de error)
# ---------------------------------------------------------------------------


def error_response(request: Request, status_code: int, message: Optional[str] = None) -> JSONResponse:
    content = {}
    if message:
        content["message"] = message
    content.update(
        {
            "status": status_code,
            "url": request.url.path,
            "error": HTTPStatus(status_code).phrase,
        }
    )
    return JSONResponse(status_code=status_code, content=content)


async def _urna_error_handler(request: Request, exc: UrnaError) -> JSONResponse:
    if exc.status >= 500:
        logger.error("request_failed path=%s code=%s", request.url.path, exc.code.value)
    return error_response(request, int(exc.status), exc.message)


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_response(request, exc.status_code)


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return error_response(request, 400)


def _rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning("rate_limited path=%s limit=%s", request.url.path, exc.detail)
    response = error_response(request, 429)
    response.headers["Retry-After"] = "60"
    return response


async def _unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error path=%s", request.url.path)
    return error_response(request, 500, ErrorCode.INTERNAL.value)


# ---------------------------------------------------------------------------
# Factory (Fábrica)
# ---------------------------------------------------------------------------


def create_app(
    settings: UrnaSettings,
    *,
    clock: Callable[[], datetime] = utc_now,
    cache: Optional[RollCache] = None,
    store: Optional[BallotStore] = None,
) -> FastAPI:
    """Construye la app con sus colaboradores / Build the app and its collaborators."""
    app = FastAPI(title="Urna Ballot API", version=__version__)
    app.state.services = build_services(settings, clock=clock, cache=cache, store=store)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[f"{settings.API_RATE_LIMIT}/minute"],
    )
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)

    app.add_exception_handler(UrnaError, _urna_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(RateLimitExceeded, _rate_limit_handler)
    app.add_exception_handler(Exception, _unexpected_error_handler)

    register_routes(app)

    window = app.state.services.window
    logger.info(
        "urna_app_ready network=%s window_start=%s window_end=%s",
        settings.DASH_NETWORK,
        window.start.isoformat(),
        window.end.isoformat(),
    )
    return app
