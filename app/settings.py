from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Mapping

ROOT = Path(__file__).resolve().parents[1]

DEV_JWT_SECRET = "dev-secret-change-me"


@dataclass(frozen=True)
class AppSettings:
    db_path: str
    jwt_secret: str
    jwt_ttl_minutes: int = 60
    reset_token_ttl_minutes: int = 15
    public_url: str = "http://localhost:8501"
    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_user: str | None = None
    smtp_password: str | None = None
    from_email: str = "no-reply@localhost"
    from_name: str = "Calculadoras IE"
    log_level: str = "INFO"
    report_logo_path: str | None = None
    report_font_path: str | None = None
    history_limit: int = 10


def _opt(env: Mapping[str, str], key: str) -> str | None:
    value = (env.get(key) or "").strip()
    return value or None


def _int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = _opt(env, key)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{key} must be an integer, got {raw!r}") from exc


def load_settings(env: Mapping[str, str] | None = None) -> AppSettings:
    env = os.environ if env is None else env
    history_limit = _int(env, "HISTORY_LIMIT", 10)
    if history_limit < 0:
        raise ValueError("HISTORY_LIMIT must be >= 0")
    return AppSettings(
        db_path=_opt(env, "IE_DB_PATH") or str(ROOT / "db" / "app.sqlite"),
        jwt_secret=_opt(env, "JWT_SECRET") or DEV_JWT_SECRET,
        jwt_ttl_minutes=_int(env, "JWT_TTL_MINUTES", 60),
        reset_token_ttl_minutes=_int(env, "RESET_TOKEN_TTL_MINUTES", 15),
        public_url=(_opt(env, "PUBLIC_URL") or "http://localhost:8501").rstrip("/"),
        smtp_host=_opt(env, "SMTP_HOST"),
        smtp_port=_int(env, "SMTP_PORT", 587),
        smtp_user=_opt(env, "SMTP_USER"),
        smtp_password=_opt(env, "SMTP_PASSWORD"),
        from_email=_opt(env, "FROM_EMAIL") or "no-reply@localhost",
        from_name=_opt(env, "FROM_NAME") or "Calculadoras IE",
        log_level=(_opt(env, "LOG_LEVEL") or "INFO").upper(),
        report_logo_path=_opt(env, "REPORT_LOGO_PATH"),
        report_font_path=_opt(env, "REPORT_FONT_PATH"),
        history_limit=history_limit,
    )


@lru_cache()
def get_settings() -> AppSettings:
    return load_settings()
