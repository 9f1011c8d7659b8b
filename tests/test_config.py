"""Pruebas de carga y validación de configuración.

Tests for configuration loading (environment and YAML) and validation.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from pathlib import Path

import pytest

from support import WINDOW_END, WINDOW_START
from urna.config import UrnaSettings, load_config

yaml = pytest.importorskip("yaml")

REQUIRED_ENV = {
    "MNLIST_URL": "https://mnlist.example.org/api/mnlist",
    "CANDIDATES_URL": "https://feeds.example.org/{key}/candidates.json",
    "VOTE_START_DATE": "2026-03-01T12:00:00Z",
    "VOTE_END_DATE": "2026-03-15T12:00:00Z",
}


@pytest.fixture
def clean_env(monkeypatch):
    for name in list(REQUIRED_ENV) + ["DASH_NETWORK", "JWT_SECRET_KEY", "CACHE_TTL_SECONDS", "CORS_ORIGINS"]:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_load_config_from_environment(clean_env) -> None:
    for name, value in REQUIRED_ENV.items():
        clean_env.setenv(name, value)
    clean_env.setenv("DASH_NETWORK", " TestNet ")
    clean_env.setenv("CACHE_TTL_SECONDS", "60")

    settings = load_config()

    assert settings.DASH_NETWORK == "testnet"
    assert settings.CACHE_TTL_SECONDS == 60
    assert settings.VOTE_START_DATE == WINDOW_START
    assert settings.window().end == WINDOW_END
    assert settings.ENFORCE_SIGNATURES is True
    assert settings.ROLL_FETCH_TIMEOUT_SECONDS == 5.0


def test_load_config_reads_yaml(tmp_path, clean_env) -> None:
    """Español: las claves YAML se aceptan en minúsculas.

    English: YAML keys are accepted in lower case.
    """
    config_file = tmp_path / "urna.yaml"
    config_file.write_text(
        yaml.safe_dump(
            {
                "dash_network": "mainnet",
                "jwt_secret_key": "s3cret",
                "mnlist_url": REQUIRED_ENV["MNLIST_URL"],
                "candidates_url": REQUIRED_ENV["CANDIDATES_URL"],
                "candidates_key": "sheet-9",
                "vote_start_date": "2026-03-01T12:00:00+00:00",
                "vote_end_date": "2026-03-15T12:00:00+00:00",
                "db_path": str(tmp_path / "votes.db"),
                "enforce_signatures": False,
            }
        ),
        encoding="utf-8",
    )

    settings = load_config(config_file)

    assert settings.JWT_SECRET_KEY == "s3cret"
    assert settings.CANDIDATES_KEY == "sheet-9"
    assert settings.DB_PATH == Path(tmp_path / "votes.db")
    assert settings.ENFORCE_SIGNATURES is False


def test_load_config_rejects_non_mapping_yaml(tmp_path, clean_env) -> None:
    config_file = tmp_path / "urna.yaml"
    config_file.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError, match="must contain a mapping"):
        load_config(config_file)


def test_load_config_reports_missing_fields(tmp_path, clean_env) -> None:
    config_file = tmp_path / "urna.yaml"
    config_file.write_text(yaml.safe_dump({"dash_network": "mainnet"}), encoding="utf-8")
    with pytest.raises(ValueError, match="Invalid configuration"):
        load_config(config_file)


def test_invalid_url_is_rejected(settings_factory) -> None:
    with pytest.raises(ValueError):
        settings_factory(MNLIST_URL="not a url")


def test_ttl_must_be_positive(settings_factory) -> None:
    with pytest.raises(ValueError):
        settings_factory(CACHE_TTL_SECONDS=0)


def test_naive_dates_are_utc(settings_factory) -> None:
    settings = settings_factory(VOTE_START_DATE=WINDOW_START.replace(tzinfo=None))
    assert settings.VOTE_START_DATE == WINDOW_START


def test_inverted_window_is_logged(tmp_path, clean_env, caplog) -> None:
    for name, value in REQUIRED_ENV.items():
        clean_env.setenv(name, value)
    clean_env.setenv("VOTE_START_DATE", (WINDOW_END + timedelta(days=1)).isoformat())

    with caplog.at_level(logging.WARNING, logger="urna.config"):
        load_config()

    assert "voting_window_inverted" in caplog.text


def test_unsupported_network_is_logged(clean_env, caplog) -> None:
    for name, value in REQUIRED_ENV.items():
        clean_env.setenv(name, value)
    clean_env.setenv("DASH_NETWORK", "regtest")

    with caplog.at_level(logging.WARNING, logger="urna.config"):
        settings = load_config()

    assert settings.DASH_NETWORK == "regtest"
    assert "unsupported_dash_network" in caplog.text


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("*", ["*"]),
        ("https://a.example.org", ["https://a.example.org"]),
        ("https://a.example.org, https://b.example.org,", ["https://a.example.org", "https://b.example.org"]),
    ],
)
def test_cors_origins(settings_factory, raw: str, expected) -> None:
    assert settings_factory(CORS_ORIGINS=raw).cors_origins() == expected


def test_settings_ignore_unknown_keys(settings_factory) -> None:
    settings = settings_factory(UNRELATED_OPTION="x")
    assert isinstance(settings, UrnaSettings)
