"""Taxonomía cerrada de errores de Urna.

English:
    Closed error taxonomy for Urna. Every error surfaced to an HTTP caller
    carries a stable machine-readable code and an HTTP status.
"""

from __future__ import annotations

from enum import Enum
from http import HTTPStatus
from typing import Optional


class ErrorCode(str, Enum):
    """Códigos de error estables / Stable error codes."""

    VOTING_NOT_STARTED = "E_VOTING_NOT_STARTED"
    VOTING_CLOSED = "E_VOTING_CLOSED"
    BAD_REQUEST = "BAD_REQUEST"
    INVALID_NETWORK = "INVALID_NETWORK"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"
    DATABASE_WRITE = "E_DATABASE_WRITE"
    DATABASE_GET_VALID = "E_DATABASE_GET_VALID"
    DATABASE_GET_ALL = "E_DATABASE_GET_ALL"
    INTERNAL = "E_INTERNAL"

    @property
    def status(self) -> HTTPStatus:
        """Estado HTTP asociado / Associated HTTP status."""
        return _STATUS_BY_CODE[self]

    @property
    def has_message(self) -> bool:
        """Bad requests render the bare envelope, without a message."""
        return self is not ErrorCode.BAD_REQUEST


_STATUS_BY_CODE = {
    ErrorCode.VOTING_NOT_STARTED: HTTPStatus.FORBIDDEN,
    ErrorCode.VOTING_CLOSED: HTTPStatus.FORBIDDEN,
    ErrorCode.BAD_REQUEST: HTTPStatus.BAD_REQUEST,
    ErrorCode.INVALID_NETWORK: HTTPStatus.BAD_REQUEST,
    ErrorCode.INVALID_SIGNATURE: HTTPStatus.BAD_REQUEST,
    ErrorCode.DATABASE_WRITE: HTTPStatus.INTERNAL_SERVER_ERROR,
    ErrorCode.DATABASE_GET_VALID: HTTPStatus.INTERNAL_SERVER_ERROR,
    ErrorCode.DATABASE_GET_ALL: HTTPStatus.INTERNAL_SERVER_ERROR,
    ErrorCode.INTERNAL: HTTPStatus.INTERNAL_SERVER_ERROR,
}


class UrnaError(Exception):
    """Error base con código estable.

    English: Base error carrying a stable code and optional detail.
    """

    def __init__(self, code: ErrorCode, detail: Optional[str] = None) -> None:
        self.code = code
        self.detail = detail
        super().__init__(self.message or code.value)

    @property
    def status(self) -> HTTPStatus:
        return self.code.status

    @property
    def message(self) -> Optional[str]:
        """Mensaje público / Public message, e.g. ``INVALID_SIGNATURE: bad length``."""
        if not self.code.has_message:
            return None
        if self.detail:
            return f"{self.code.value}: {self.detail}"
        return self.code.value


class VoteError(UrnaError):
    """Rechazo de un voto en la intake / Ballot rejected at intake."""


class StorageError(Exception):
    """Fallo del almacén de votos / Ballot store failure."""


class SourceError(Exception):
    """Fallo de una fuente externa (padrón o candidatos).

    English: Upstream feed failure (roll or candidates). Absorbed by the cache.
    """


class SignatureError(Exception):
    """Firma de mensaje inválida / Invalid signed message."""
