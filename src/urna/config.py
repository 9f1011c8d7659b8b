# Config Module
# AUTO-DOC-INDEX
#
# ES: Índice rápido
#   1) Propósito del módulo
#   2) Componentes principales
#   3) Puntos de extensión
#
# EN: Quick index
#   1) Module purpose
#   2) Main components
#   3) Extension points
#
# Secciones / Sections:
#   - Configuración / Configuration
#   - Lógica principal / Core logic
#   - Integraciones / Integrations

"""Configuración validada de Urna desde entorno, .env o YAML.

Validated Urna configuration from the environment, .env or YAML.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import AnyUrl, Field, TypeAdapter, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import ensure_utc
from .window import VotingWindow

logger = logging.getLogger(__name__)

_ENV_PATH = Path(".env")
_ENV_LOCAL_PATH = Path(".env.local")
# Seguridad: Cargar variables sensibles desde .env y .env.local. / Security: Load sensitive vars from .env/.env.local.
load_dotenv(_ENV_PATH, override=False)
load_dotenv(_ENV_LOCAL_PATH, override=False)


class UrnaSettings(BaseSettings):
    """Variables de entorno y archivo .env para Urna.

    English: Environment variables and .env file for Urna.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    DASH_NETWORK: str = "mainnet"
    JWT_SECRET_KEY: str = ""
    MNLIST_URL: str
    CANDIDATES_URL: str
    CANDIDATES_KEY: str = ""
    VOTE_START_DATE: datetime
    VOTE_END_DATE: datetime
    DB_PATH: Path = Path("data") / "votes.db"
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[Path] = None
    CACHE_TTL_SECONDS: int = Field(default=900, ge=1)
    ROLL_FETCH_TIMEOUT_SECONDS: float = Field(default=5.0, gt=0)
    CONNECT_TIMEOUT_SECONDS: float = Field(default=10.0, gt=0)
    ENFORCE_SIGNATURES: bool = True
    API_RATE_LIMIT: int = Field(default=120, ge=1)
    CORS_ORIGINS: str = "*"

    @field_validator("MNLIST_URL", "CANDIDATES_URL")
    @classmethod
    def _validate_url(cls, value: str) -> str:
        """Validate URLs without changing the stored type."""
        TypeAdapter(AnyUrl).validate_python(value.replace("{key}", "key"))
        return value

    @field_validator("VOTE_START_DATE", "VOTE_END_DATE")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @field_validator("DASH_NETWORK")
    @classmethod
    def _normalize_network(cls, value: str) -> str:
        return value.strip().lower()

    def window(self) -> VotingWindow:
        return VotingWindow(start=self.VOTE_START_DATE, end=self.VOTE_END_DATE)

    def cors_origins(self) -> List[str]:
        raw = self.CORS_ORIGINS.strip()
        if raw == "*":
            return ["*"]
        return [origin.strip() for origin in raw.split(",") if origin.strip()]


def _read_yaml(config_path: Path) -> Dict[str, Any]:
    raw = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"Invalid configuration: {config_path} must contain a mapping")
    return {str(key).upper(): value for key, value in raw.items()}


def load_config(config_path: Optional[Path] = None) -> UrnaSettings:
    """Carga y valida configuración, fallando con detalle / Load and validate configuration, failing with details."""
    try:
        if config_path:
            settings = UrnaSettings(**_read_yaml(config_path))
        else:
            settings = UrnaSettings()
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration: {exc}") from exc
    if settings.VOTE_START_DATE >= settings.VOTE_END_DATE:
        logger.warning(
            "voting_window_inverted start=%s end=%s",
            settings.VOTE_START_DATE.isoformat(),
            settings.VOTE_END_DATE.isoformat(),
        )
    if settings.DASH_NETWORK not in ("mainnet", "testnet"):
        logger.warning("unsupported_dash_network network=%s every_vote_will_fail=true", settings.DASH_NETWORK)
    return settings
