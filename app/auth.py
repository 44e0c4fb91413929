from __future__ import annotations

import logging
import secrets
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable
from urllib.parse import quote

import jwt
from passlib.context import CryptContext

from app import db
from app.mailer import send_reset_email
from app.settings import AppSettings

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
MIN_PASSWORD_LENGTH = 6

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class AuthError(Exception):
    pass


class UserExists(AuthError):
    pass


class UserNotFound(AuthError):
    pass


class InvalidCredentials(AuthError):
    pass


class PasswordTooShort(AuthError):
    pass


class InvalidResetToken(AuthError):
    pass


class TokenRejected(AuthError):
    pass


@dataclass(frozen=True)
class Session:
    user_id: str
    email: str
    token: str


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def _check_password(password: str) -> None:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordTooShort(f"password must have at least {MIN_PASSWORD_LENGTH} characters")


def register_user(conn: sqlite3.Connection, email: str, password: str) -> str:
    email = normalize_email(email)
    if not email:
        raise ValueError("email is required")
    _check_password(password)
    if db.get_user_by_email(conn, email) is not None:
        raise UserExists(email)
    try:
        with db.tx(conn):
            user_id = db.insert_user(conn, email, hash_password(password))
    except sqlite3.IntegrityError as exc:
        # concurrent registration of the same email
        raise UserExists(email) from exc
    logger.info("User registered: %s", email)
    return user_id


def issue_token(user_id: str, email: str, settings: AppSettings, *, now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    payload = {
        "userId": user_id,
        "email": email,
        "iat": now,
        "exp": now + timedelta(minutes=settings.jwt_ttl_minutes),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=JWT_ALGORITHM)


def verify_token(token: str, settings: AppSettings) -> dict[str, Any]:
    if not token:
        raise TokenRejected("missing token")
    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError as exc:
        logger.info("Token rejected: expired")
        raise TokenRejected("token expired") from exc
    except jwt.InvalidTokenError as exc:
        logger.warning("Token rejected: %s", exc)
        raise TokenRejected(str(exc)) from exc
    if "userId" not in claims or "email" not in claims:
        raise TokenRejected("token without userId/email claims")
    return claims


def login(conn: sqlite3.Connection, email: str, password: str, settings: AppSettings) -> Session:
    email = normalize_email(email)
    user = db.get_user_by_email(conn, email)
    if user is None:
        logger.info("Login failed, unknown user: %s", email)
        raise UserNotFound(email)
    if not verify_password(password or "", user["password_hash"]):
        logger.info("Login failed, bad password: %s", email)
        raise InvalidCredentials(email)
    token = issue_token(user["id"], user["email"], settings)
    logger.info("Login success: %s", email)
    return Session(user_id=user["id"], email=user["email"], token=token)


def session_from_token(token: str, settings: AppSettings) -> Session:
    claims = verify_token(token, settings)
    return Session(user_id=str(claims["userId"]), email=str(claims["email"]), token=token)


def reset_link(settings: AppSettings, token: str) -> str:
    return f"{settings.public_url}/?reset_token={quote(token)}"


def request_password_reset(
    conn: sqlite3.Connection,
    email: str,
    settings: AppSettings,
    *,
    send: Callable[[AppSettings, str, str], bool] = send_reset_email,
    now: datetime | None = None,
) -> str:
    """
    Genera un token de 32 bytes (hex) válido RESET_TOKEN_TTL_MINUTES
    y envía el enlace por correo. Devuelve el token.
    """
    email = normalize_email(email)
    user = db.get_user_by_email(conn, email)
    if user is None:
        raise UserNotFound(email)

    now = now or datetime.now(timezone.utc)
    token = secrets.token_hex(32)
    expires_at = (now + timedelta(minutes=settings.reset_token_ttl_minutes)).isoformat(timespec="seconds")
    with db.tx(conn):
        db.set_reset_token(conn, user["id"], token, expires_at)
    link = reset_link(settings, token)
    logger.info("Reset link issued for %s (expires %s)", email, expires_at)
    send(settings, user["email"], link)
    return token


def reset_password(
    conn: sqlite3.Connection,
    token: str,
    new_password: str,
    *,
    now: datetime | None = None,
) -> str:
    _check_password(new_password)
    user = db.get_user_by_reset_token(conn, token) if token else None
    if user is None:
        raise InvalidResetToken("unknown token")
    now = now or datetime.now(timezone.utc)
    expires_ts = db.parse_ts(user["reset_token_exp"])
    if expires_ts is None or expires_ts <= now.timestamp():
        raise InvalidResetToken("token expired")
    with db.tx(conn):
        db.update_password(conn, user["id"], hash_password(new_password))
    logger.info("Password changed for %s", user["email"])
    return user["id"]
