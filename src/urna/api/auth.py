"""Autorización Bearer JWT para rutas de auditoría.

English:
    Bearer JWT authorization for the audit routes. Only the HMAC family of
    signing algorithms is accepted, and only until the voting window closes;
    from the close onward the audit views are public.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import HTTPException, Request
from jose import JWTError, jwt

logger = logging.getLogger(__name__)

HMAC_ALGORITHMS = ["HS256", "HS384", "HS512"]
BEARER_PREFIX = "Bearer "


def verify_bearer_token(token: str, secret: str) -> dict:
    """Verifica firma y claims del token / Verify token signature and claims.

    Raises ``JWTError`` when the token is invalid, signed with a non-HMAC
    algorithm, or when no secret is configured.
    """
    if not secret:
        raise JWTError("no signing secret configured")
    return jwt.decode(token, secret, algorithms=HMAC_ALGORITHMS)


def _extract_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    if authorization.startswith(BEARER_PREFIX):
        return authorization[len(BEARER_PREFIX):].strip()
    return authorization.strip()


def require_audit_access(request: Request) -> None:
    """Dependencia FastAPI: token requerido mientras la votación no cierre.

    English: FastAPI dependency; a valid token is required until the window
    end, no token afterwards.
    """
    services = request.app.state.services
    if not services.window.audit_requires_token(services.clock()):
        return
    token = _extract_token(request.headers.get("Authorization"))
    if not token:
        raise HTTPException(status_code=401)
    try:
        verify_bearer_token(token, services.settings.JWT_SECRET_KEY)
    except JWTError as exc:
        logger.warning("audit_token_rejected path=%s error=%s", request.url.path, exc)
        raise HTTPException(status_code=401) from exc
