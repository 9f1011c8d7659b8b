"""
======================== ÍNDICE / INDEX ========================
1. Descripción general / Overview
2. Componentes principales / Main components
3. Notas de mantenimiento / Maintenance notes

======================== ESPAÑOL ========================
Archivo: `src/urna/logging.py`.
Configura structlog y los handlers estándar de consola/archivo, con
redacción de secretos (clave JWT) en cada registro.

Componentes detectados:
  - SensitiveDataFilter
  - setup_logging

Notas:
- Mantener esta cabecera sincronizada con cambios estructurales del archivo.

======================== ENGLISH ========================
File: `src/urna/logging.py`.
Configures structlog plus the stdlib console/file handlers, redacting
secrets (the JWT key) from every record.

Detected components:
  - SensitiveDataFilter
  - setup_logging

Notes:
- Keep this header in sync with structural changes in the file.
"""

from __future__ import annotations

import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Iterable, List, Optional

import structlog


class SensitiveDataFilter(logging.Filter):
    """Filtro seguro para redacción de secretos / Secure filter to redact secrets."""

    def __init__(self, sensitive_values: Iterable[str]) -> None:
        super().__init__()
        self._sensitive_values = [value for value in sensitive_values if value]

    def filter(self, record: logging.LogRecord) -> bool:
        if not self._sensitive_values:
            return True
        message = str(record.getMessage())
        for value in self._sensitive_values:
            if value in message:
                # Seguridad: Evita exposición de datos sensibles / Security: Avoid exposure of sensitive data.
                message = message.replace(value, "[REDACTED]")
        record.msg = message
        record.args = ()
        return True


def setup_logging(
    log_level: str,
    log_dir: Optional[Path] = None,
    secrets: Iterable[str] = (),
) -> structlog.BoundLogger:
    """Configura structlog y handlers de consola/archivo.

    English: Configure structlog and console/file handlers.
    """
    redact_filter = SensitiveDataFilter(secrets)
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(
            TimedRotatingFileHandler(
                log_dir / "urna.log",
                when="midnight",
                backupCount=30,
                encoding="utf-8",
            )
        )
    for handler in handlers:
        handler.addFilter(redact_filter)

    logging.basicConfig(
        level=log_level.upper(),
        handlers=handlers,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        force=True,
    )

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(log_level.upper())),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    return structlog.get_logger("urna")
