from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from app.settings import DEV_JWT_SECRET, get_settings, load_settings  # noqa: E402


def test_defaults() -> None:
    s = load_settings({})
    assert s.db_path == str(ROOT / "db" / "app.sqlite")
    assert s.jwt_secret == DEV_JWT_SECRET
    assert s.jwt_ttl_minutes == 60
    assert s.reset_token_ttl_minutes == 15
    assert s.public_url == "http://localhost:8501"
    assert s.smtp_host is None
    assert s.smtp_port == 587
    assert s.log_level == "INFO"
    assert s.history_limit == 10
    assert s.report_font_path is None


def test_overrides_from_env() -> None:
    s = load_settings(
        {
            "IE_DB_PATH": "/tmp/ie.sqlite",
            "JWT_SECRET": "s3cret",
            "JWT_TTL_MINUTES": "120",
            "PUBLIC_URL": "https://calc.example.org/",
            "SMTP_HOST": " smtp.example.org ",
            "LOG_LEVEL": "debug",
            "HISTORY_LIMIT": "0",
            "REPORT_FONT_PATH": "/opt/fonts/DejaVuSans.ttf",
        }
    )
    assert s.report_font_path == "/opt/fonts/DejaVuSans.ttf"
    assert s.db_path == "/tmp/ie.sqlite"
    assert s.jwt_secret == "s3cret"
    assert s.jwt_ttl_minutes == 120
    assert s.public_url == "https://calc.example.org"
    assert s.smtp_host == "smtp.example.org"
    assert s.log_level == "DEBUG"
    assert s.history_limit == 0


def test_blank_values_fall_back_to_defaults() -> None:
    s = load_settings({"JWT_SECRET": "   ", "SMTP_PORT": ""})
    assert s.jwt_secret == DEV_JWT_SECRET
    assert s.smtp_port == 587


def test_invalid_integers_rejected() -> None:
    with pytest.raises(ValueError, match="SMTP_PORT must be an integer"):
        load_settings({"SMTP_PORT": "twenty"})
    with pytest.raises(ValueError, match="HISTORY_LIMIT"):
        load_settings({"HISTORY_LIMIT": "-1"})


def test_get_settings_reads_process_env(monkeypatch) -> None:
    monkeypatch.setenv("JWT_SECRET", "from-env")
    get_settings.cache_clear()
    try:
        assert get_settings().jwt_secret == "from-env"
        assert get_settings() is get_settings()
    finally:
        get_settings.cache_clear()
