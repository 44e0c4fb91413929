from __future__ import annotations

import contextlib
import logging
import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable
from urllib.parse import quote

logger = logging.getLogger(__name__)

ROOT = Path(__file__).resolve().parents[1]
MIGRATIONS_DIR = ROOT / "db" / "migrations"

REQUIRED_TABLES = {"users", "calc_history"}


def iso_utc_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def _db_uri(db_path: str | Path, read_only: bool) -> str:
    db_abs = Path(db_path).resolve()
    if not read_only:
        return str(db_abs)
    return f"file:{quote(str(db_abs), safe='/')}?mode=ro"


def connect(db_path: str | Path, *, read_only: bool = False) -> sqlite3.Connection:
    if not read_only:
        Path(db_path).resolve().parent.mkdir(parents=True, exist_ok=True)
    db_uri = _db_uri(db_path, read_only)
    # Streamlit reruns the script on worker threads
    conn = sqlite3.connect(db_uri, uri=read_only, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


@contextlib.contextmanager
def tx(conn: sqlite3.Connection) -> Iterable[sqlite3.Connection]:
    try:
        conn.execute("BEGIN")
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise


def table_exists(conn: sqlite3.Connection, table: str) -> bool:
    row = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
        (table,),
    ).fetchone()
    return row is not None


def list_tables(conn: sqlite3.Connection) -> set[str]:
    rows = conn.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
    return {str(r[0]) for r in rows}


def count_table(conn: sqlite3.Connection, table: str, where: str = "", params: tuple[Any, ...] = ()) -> int:
    sql = f"SELECT COUNT(*) FROM {table}"
    if where:
        sql += f" WHERE {where}"
    return int(conn.execute(sql, params).fetchone()[0])


def apply_migrations(conn: sqlite3.Connection, migrations_dir: str | Path = MIGRATIONS_DIR) -> list[str]:
    """Applies pending db/migrations/*.sql in name order. Returns applied versions."""
    migration_files = sorted(Path(migrations_dir).glob("*.sql"))
    if not migration_files:
        raise RuntimeError(f"No migrations found in {migrations_dir}")

    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS schema_migrations (
          version TEXT PRIMARY KEY,
          applied_at TEXT NOT NULL DEFAULT (datetime('now'))
        )
        """
    )
    conn.commit()
    applied = {
        str(row[0]) for row in conn.execute("SELECT version FROM schema_migrations").fetchall()
    }

    new_versions: list[str] = []
    for mf in migration_files:
        version = mf.stem
        if version in applied:
            continue
        try:
            conn.executescript(mf.read_text(encoding="utf-8"))
            conn.execute("INSERT INTO schema_migrations (version) VALUES (?)", (version,))
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        logger.info("Applied migration %s", version)
        new_versions.append(version)
    return new_versions


def schema_status(conn: sqlite3.Connection) -> dict[str, Any]:
    tables = list_tables(conn)
    has_migrations = "schema_migrations" in tables
    migrations = []
    if has_migrations:
        migrations = [
            str(r[0]) for r in conn.execute("SELECT version FROM schema_migrations ORDER BY version")
        ]
    return {
        "missing_tables": sorted(REQUIRED_TABLES - tables),
        "has_migrations": has_migrations,
        "migrations": migrations,
    }


def project_counts(conn: sqlite3.Connection, user_id: str | None = None) -> dict[str, int]:
    if user_id is None:
        return {
            "users": count_table(conn, "users"),
            "calc_history": count_table(conn, "calc_history"),
        }
    counts = {"CAVITY": 0, "TOTAL_FLUX": 0, "CONDUCTOR": 0}
    rows = conn.execute(
        "SELECT calculator, COUNT(*) FROM calc_history WHERE user_id = ? GROUP BY calculator",
        (user_id,),
    ).fetchall()
    for calculator, n in rows:
        counts[str(calculator)] = int(n)
    return counts


# --- users -----------------------------------------------------------------


def get_user_by_email(conn: sqlite3.Connection, email: str) -> dict[str, Any] | None:
    row = conn.execute(
        """
        SELECT id, email, password_hash, reset_token, reset_token_exp, created_at
        FROM users
        WHERE email = ?
        """,
        (email,),
    ).fetchone()
    return dict(row) if row else None


def get_user(conn: sqlite3.Connection, user_id: str) -> dict[str, Any] | None:
    row = conn.execute(
        """
        SELECT id, email, password_hash, reset_token, reset_token_exp, created_at
        FROM users
        WHERE id = ?
        """,
        (user_id,),
    ).fetchone()
    return dict(row) if row else None


def get_user_by_reset_token(conn: sqlite3.Connection, token: str) -> dict[str, Any] | None:
    row = conn.execute(
        """
        SELECT id, email, password_hash, reset_token, reset_token_exp, created_at
        FROM users
        WHERE reset_token = ?
        """,
        (token,),
    ).fetchone()
    return dict(row) if row else None


def insert_user(conn: sqlite3.Connection, email: str, password_hash: str) -> str:
    user_id = str(uuid.uuid4())
    conn.execute(
        """
        INSERT INTO users (id, email, password_hash, created_at)
        VALUES (?, ?, ?, ?)
        """,
        (user_id, email, password_hash, iso_utc_now()),
    )
    return user_id


def set_reset_token(conn: sqlite3.Connection, user_id: str, token: str, expires_at: str) -> None:
    conn.execute(
        "UPDATE users SET reset_token = ?, reset_token_exp = ? WHERE id = ?",
        (token, expires_at, user_id),
    )


def update_password(conn: sqlite3.Connection, user_id: str, password_hash: str) -> None:
    conn.execute(
        """
        UPDATE users
        SET password_hash = ?, reset_token = NULL, reset_token_exp = NULL
        WHERE id = ?
        """,
        (password_hash, user_id),
    )


def parse_ts(value: str | None) -> float | None:
    """UTC timestamp from sqlite datetime('now') text or ISO-8601; None when unparseable."""
    if not value:
        return None
    text = str(value).strip()
    if not text:
        return None
    for fmt in ("%Y-%m-%d %H:%M:%S",):
        try:
            dt = datetime.strptime(text, fmt)
            return dt.replace(tzinfo=timezone.utc).timestamp()
        except ValueError:
            pass
    try:
        dt = datetime.fromisoformat(text)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.timestamp()
    except ValueError:
        return None