"""API HTTP de Urna / Urna HTTP API."""

from .main import create_app

__all__ = ["create_app"]
