"""Registration, JWT sessions and the password-reset flow on a fresh sqlite DB."""

from __future__ import annotations

import sqlite3
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import jwt
import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from app import auth, db  # noqa: E402
from app.settings import load_settings  # noqa: E402

SETTINGS = load_settings({"JWT_SECRET": "test-secret", "PUBLIC_URL": "https://calc.example.org/"})


def _make_db(tmp_path: Path) -> sqlite3.Connection:
    conn = db.connect(tmp_path / "auth.sqlite")
    db.apply_migrations(conn)
    return conn


class _Outbox:
    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []

    def __call__(self, settings, to: str, link: str) -> bool:
        self.sent.append((to, link))
        return True


def test_register_and_login(tmp_path: Path) -> None:
    conn = _make_db(tmp_path)
    try:
        user_id = auth.register_user(conn, "  Ana@Example.com ", "secreto1")
        stored = db.get_user(conn, user_id)
        assert stored["email"] == "ana@example.com"
        assert stored["password_hash"] != "secreto1"
        assert stored["password_hash"].startswith("$pbkdf2-sha256$")

        session = auth.login(conn, "ANA@example.com", "secreto1", SETTINGS)
        assert session.user_id == user_id
        assert session.email == "ana@example.com"

        claims = auth.verify_token(session.token, SETTINGS)
        assert claims["userId"] == user_id
        assert claims["email"] == "ana@example.com"
        assert claims["exp"] - claims["iat"] == 60 * 60
    finally:
        conn.close()


def test_register_duplicate_email(tmp_path: Path) -> None:
    conn = _make_db(tmp_path)
    try:
        auth.register_user(conn, "ana@example.com", "secreto1")
        with pytest.raises(auth.UserExists):
            auth.register_user(conn, "ANA@EXAMPLE.COM", "otro-secreto")
        assert db.count_table(conn, "users") == 1
    finally:
        conn.close()


def test_register_rejects_short_password_and_empty_email(tmp_path: Path) -> None:
    conn = _make_db(tmp_path)
    try:
        with pytest.raises(auth.PasswordTooShort):
            auth.register_user(conn, "ana@example.com", "12345")
        with pytest.raises(ValueError, match="email"):
            auth.register_user(conn, "   ", "secreto1")
        assert db.count_table(conn, "users") == 0
    finally:
        conn.close()


def test_login_failures(tmp_path: Path) -> None:
    conn = _make_db(tmp_path)
    try:
        auth.register_user(conn, "ana@example.com", "secreto1")
        with pytest.raises(auth.UserNotFound):
            auth.login(conn, "bob@example.com", "secreto1", SETTINGS)
        with pytest.raises(auth.InvalidCredentials):
            auth.login(conn, "ana@example.com", "secreto2", SETTINGS)
    finally:
        conn.close()


def test_expired_token_rejected() -> None:
    issued = datetime.now(timezone.utc) - timedelta(hours=2)
    token = auth.issue_token("u1", "ana@example.com", SETTINGS, now=issued)
    with pytest.raises(auth.TokenRejected, match="expired"):
        auth.verify_token(token, SETTINGS)


def test_token_signed_with_other_secret_rejected() -> None:
    other = load_settings({"JWT_SECRET": "other-secret"})
    token = auth.issue_token("u1", "ana@example.com", other)
    with pytest.raises(auth.TokenRejected):
        auth.session_from_token(token, SETTINGS)


def test_token_without_claims_rejected() -> None:
    token = jwt.encode({"sub": "u1"}, SETTINGS.jwt_secret, algorithm=auth.JWT_ALGORITHM)
    with pytest.raises(auth.TokenRejected, match="claims"):
        auth.verify_token(token, SETTINGS)
    with pytest.raises(auth.TokenRejected):
        auth.verify_token("", SETTINGS)


def test_session_from_token() -> None:
    token = auth.issue_token("u1", "ana@example.com", SETTINGS)
    session = auth.session_from_token(token, SETTINGS)
    assert session == auth.Session(user_id="u1", email="ana@example.com", token=token)


def test_password_reset_flow(tmp_path: Path) -> None:
    conn = _make_db(tmp_path)
    outbox = _Outbox()
    try:
        user_id = auth.register_user(conn, "ana@example.com", "secreto1")
        token = auth.request_password_reset(conn, "Ana@Example.com", SETTINGS, send=outbox)

        assert len(token) == 64
        assert outbox.sent == [("ana@example.com", f"https://calc.example.org/?reset_token={token}")]
        stored = db.get_user(conn, user_id)
        assert stored["reset_token"] == token
        assert db.parse_ts(stored["reset_token_exp"]) > datetime.now(timezone.utc).timestamp()

        assert auth.reset_password(conn, token, "nuevo-secreto") == user_id
        assert db.get_user(conn, user_id)["reset_token"] is None

        auth.login(conn, "ana@example.com", "nuevo-secreto", SETTINGS)
        with pytest.raises(auth.InvalidCredentials):
            auth.login(conn, "ana@example.com", "secreto1", SETTINGS)

        # single use
        with pytest.raises(auth.InvalidResetToken):
            auth.reset_password(conn, token, "otra-clave")
    finally:
        conn.close()


def test_password_reset_token_expires(tmp_path: Path) -> None:
    conn = _make_db(tmp_path)
    try:
        auth.register_user(conn, "ana@example.com", "secreto1")
        issued = datetime.now(timezone.utc) - timedelta(minutes=20)
        token = auth.request_password_reset(conn, "ana@example.com", SETTINGS, send=_Outbox(), now=issued)
        with pytest.raises(auth.InvalidResetToken, match="expired"):
            auth.reset_password(conn, token, "nuevo-secreto")
        # still valid inside the 15 minute window
        assert auth.reset_password(conn, token, "nuevo-secreto", now=issued + timedelta(minutes=14))
    finally:
        conn.close()


def test_password_reset_unknown_user_and_token(tmp_path: Path) -> None:
    conn = _make_db(tmp_path)
    outbox = _Outbox()
    try:
        with pytest.raises(auth.UserNotFound):
            auth.request_password_reset(conn, "nadie@example.com", SETTINGS, send=outbox)
        assert outbox.sent == []
        with pytest.raises(auth.InvalidResetToken):
            auth.reset_password(conn, "0" * 64, "nuevo-secreto")
        with pytest.raises(auth.PasswordTooShort):
            auth.reset_password(conn, "0" * 64, "corta")
    finally:
        conn.close()
