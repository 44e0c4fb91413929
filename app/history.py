from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Protocol

import pandas as pd

from app import db
from elec_core.export_payload import CALCULATORS, build_payload

logger = logging.getLogger(__name__)

EXPORT_FORMAT = "ie-calc-history"
EXPORT_VERSION = 1


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds")


@dataclass(frozen=True)
class HistoryRecord:
    calculator: str
    input: dict[str, Any]
    result: dict[str, Any]
    user_id: str | None = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: str = field(default_factory=_now_iso)


class HistoryRepository(Protocol):
    def save(self, record: HistoryRecord) -> HistoryRecord: ...

    def list(self, calculator: str | None = None) -> list[HistoryRecord]: ...

    def get(self, record_id: str) -> HistoryRecord | None: ...

    def delete(self, record_id: str) -> bool: ...

    def clear(self, calculator: str | None = None) -> int: ...


def record_from_calculation(calculator: str, inp: object, result: object) -> HistoryRecord:
    payload = build_payload(calculator, inp, result)
    stored_result = dict(payload["result"])
    stored_result["formulas"] = payload["formulas"]
    return HistoryRecord(calculator=calculator, input=payload["input"], result=stored_result)


class SqliteHistoryRepository:
    """calc_history rows of one user; keeps the newest `limit` per calculator (0 = all)."""

    def __init__(self, conn: sqlite3.Connection, user_id: str, *, limit: int = 10) -> None:
        self.conn = conn
        self.user_id = user_id
        self.limit = limit

    def _row_to_record(self, row: sqlite3.Row) -> HistoryRecord:
        return HistoryRecord(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            calculator=str(row["calculator"]),
            created_at=str(row["created_at"]),
            input=json.loads(row["input_json"]),
            result=json.loads(row["result_json"]),
        )

    def _trim(self, calculator: str) -> int:
        if self.limit <= 0:
            return 0
        cur = self.conn.execute(
            """
            DELETE FROM calc_history
            WHERE user_id = ? AND calculator = ?
              AND id NOT IN (
                SELECT id FROM calc_history
                WHERE user_id = ? AND calculator = ?
                ORDER BY created_at DESC, rowid DESC
                LIMIT ?
              )
            """,
            (self.user_id, calculator, self.user_id, calculator, self.limit),
        )
        return cur.rowcount

    def save(self, record: HistoryRecord) -> HistoryRecord:
        if record.calculator not in CALCULATORS:
            raise ValueError(f"Unknown calculator: {record.calculator}")
        with db.tx(self.conn):
            self.conn.execute(
                """
                INSERT INTO calc_history (id, user_id, calculator, created_at, input_json, result_json)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO NOTHING
                """,
                (
                    record.id,
                    self.user_id,
                    record.calculator,
                    record.created_at,
                    json.dumps(record.input, ensure_ascii=False),
                    json.dumps(record.result, ensure_ascii=False),
                ),
            )
            trimmed = self._trim(record.calculator)
        logger.info(
            "History saved: user=%s calculator=%s id=%s trimmed=%s",
            self.user_id,
            record.calculator,
            record.id,
            trimmed,
        )
        return HistoryRecord(
            id=record.id,
            user_id=self.user_id,
            calculator=record.calculator,
            created_at=record.created_at,
            input=record.input,
            result=record.result,
        )

    def list(self, calculator: str | None = None) -> list[HistoryRecord]:
        sql = """
            SELECT id, user_id, calculator, created_at, input_json, result_json
            FROM calc_history
            WHERE user_id = ?
        """
        params: tuple[Any, ...] = (self.user_id,)
        if calculator is not None:
            sql += " AND calculator = ?"
            params += (calculator,)
        sql += " ORDER BY created_at DESC, rowid DESC"
        return [self._row_to_record(r) for r in self.conn.execute(sql, params).fetchall()]

    def get(self, record_id: str) -> HistoryRecord | None:
        row = self.conn.execute(
            """
            SELECT id, user_id, calculator, created_at, input_json, result_json
            FROM calc_history
            WHERE user_id = ? AND id = ?
            """,
            (self.user_id, record_id),
        ).fetchone()
        return self._row_to_record(row) if row else None

    def delete(self, record_id: str) -> bool:
        with db.tx(self.conn):
            cur = self.conn.execute(
                "DELETE FROM calc_history WHERE user_id = ? AND id = ?",
                (self.user_id, record_id),
            )
        deleted = cur.rowcount > 0
        if deleted:
            logger.info("History deleted: user=%s id=%s", self.user_id, record_id)
        return deleted

    def clear(self, calculator: str | None = None) -> int:
        sql = "DELETE FROM calc_history WHERE user_id = ?"
        params: tuple[Any, ...] = (self.user_id,)
        if calculator is not None:
            sql += " AND calculator = ?"
            params += (calculator,)
        with db.tx(self.conn):
            n = self.conn.execute(sql, params).rowcount
        logger.info("History cleared: user=%s calculator=%s rows=%s", self.user_id, calculator, n)
        return n


def history_to_dataframe(records: Iterable[HistoryRecord]) -> pd.DataFrame:
    rows = []
    for rec in records:
        result = {k: v for k, v in rec.result.items() if k != "formulas"}
        rows.append(
            {
                "id": rec.id,
                "created_at": rec.created_at,
                "calculator": rec.calculator,
                "input": rec.input,
                "result": result,
            }
        )
    if not rows:
        return pd.DataFrame(columns=["id", "created_at", "calculator"])
    return pd.json_normalize(rows, sep=".")


def export_history_json(records: Iterable[HistoryRecord]) -> str:
    data = {
        "format": EXPORT_FORMAT,
        "version": EXPORT_VERSION,
        "records": [
            {k: v for k, v in asdict(rec).items() if k != "user_id"} for rec in records
        ],
    }
    return json.dumps(data, ensure_ascii=False, indent=2) + "\n"


def import_history_json(text: str) -> list[HistoryRecord]:
    """
    Parses an export_history_json document (or a bare list of records).
    Imported records get fresh ids. Raises ValueError on malformed input; nothing is saved here.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON: {exc}") from exc

    if isinstance(data, dict):
        if data.get("format") != EXPORT_FORMAT:
            raise ValueError("Not a history export")
        items = data.get("records")
    else:
        items = data
    if not isinstance(items, list):
        raise ValueError("records must be a list")

    records: list[HistoryRecord] = []
    for idx, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValueError(f"record #{idx} is not an object")
        calculator = item.get("calculator")
        if calculator not in CALCULATORS:
            raise ValueError(f"record #{idx}: unknown calculator {calculator!r}")
        inp = item.get("input")
        res = item.get("result")
        if not isinstance(inp, dict) or not isinstance(res, dict):
            raise ValueError(f"record #{idx}: input and result must be objects")
        kwargs: dict[str, Any] = {"calculator": calculator, "input": inp, "result": res}
        if item.get("created_at"):
            kwargs["created_at"] = str(item["created_at"])
        records.append(HistoryRecord(**kwargs))
    return records
