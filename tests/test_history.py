"""Per-user calculation history: sqlite repository, retention limit, dataframe and JSON export/import."""

from __future__ import annotations

import json
import sqlite3
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from app import db  # noqa: E402
from app.history import (  # noqa: E402
    EXPORT_FORMAT,
    HistoryRecord,
    SqliteHistoryRepository,
    export_history_json,
    history_to_dataframe,
    import_history_json,
    record_from_calculation,
)
from elec_core.export_payload import run_calculator  # noqa: E402


def _make_db(tmp_path: Path) -> tuple[sqlite3.Connection, str, str]:
    conn = db.connect(tmp_path / "history.sqlite")
    db.apply_migrations(conn)
    with db.tx(conn):
        ana = db.insert_user(conn, "ana@example.com", "h")
        bob = db.insert_user(conn, "bob@example.com", "h")
    return conn, ana, bob


def _cavity_record(**overrides) -> HistoryRecord:
    inp, res = run_calculator("CAVITY", overrides)
    return record_from_calculation("CAVITY", inp, res)


def _conductor_record() -> HistoryRecord:
    inp, res = run_calculator("CONDUCTOR", {"power_w": 3500, "voltage_v": 127})
    return record_from_calculation("CONDUCTOR", inp, res)


def test_record_from_calculation_keeps_formulas() -> None:
    rec = _cavity_record()
    assert rec.calculator == "CAVITY"
    assert rec.user_id is None
    assert rec.input["length"] == 12.0
    assert rec.result["fixture_count"] == 34
    assert rec.result["formulas"][0].startswith("H = ")
    json.dumps(rec.result, allow_nan=False)


def test_save_and_list_newest_first(tmp_path: Path) -> None:
    conn, ana, _ = _make_db(tmp_path)
    try:
        repo = SqliteHistoryRepository(conn, ana)
        first = repo.save(_cavity_record(length=10.0))
        second = repo.save(_cavity_record(length=20.0))
        third = repo.save(_conductor_record())

        assert first.user_id == ana
        assert [r.id for r in repo.list()] == [third.id, second.id, first.id]
        assert [r.id for r in repo.list("CAVITY")] == [second.id, first.id]

        got = repo.get(first.id)
        assert got is not None
        assert got.input["length"] == 10.0
        assert got.result["formulas"] == first.result["formulas"]
        assert db.project_counts(conn, ana) == {"CAVITY": 2, "TOTAL_FLUX": 0, "CONDUCTOR": 1}
    finally:
        conn.close()


def test_save_is_idempotent_per_id(tmp_path: Path) -> None:
    conn, ana, _ = _make_db(tmp_path)
    try:
        repo = SqliteHistoryRepository(conn, ana)
        rec = _cavity_record()
        repo.save(rec)
        repo.save(rec)
        assert len(repo.list()) == 1
    finally:
        conn.close()


def test_limit_keeps_newest_per_calculator(tmp_path: Path) -> None:
    conn, ana, _ = _make_db(tmp_path)
    try:
        repo = SqliteHistoryRepository(conn, ana, limit=3)
        saved = [repo.save(_cavity_record(length=float(n))) for n in range(1, 6)]
        conductor = repo.save(_conductor_record())

        cavity = repo.list("CAVITY")
        assert [r.id for r in cavity] == [r.id for r in reversed(saved[2:])]
        assert [r.input["length"] for r in cavity] == [5.0, 4.0, 3.0]
        assert [r.id for r in repo.list("CONDUCTOR")] == [conductor.id]
    finally:
        conn.close()


def test_limit_zero_keeps_everything(tmp_path: Path) -> None:
    conn, ana, _ = _make_db(tmp_path)
    try:
        repo = SqliteHistoryRepository(conn, ana, limit=0)
        for n in range(12):
            repo.save(_cavity_record(length=float(n + 1)))
        assert len(repo.list()) == 12
    finally:
        conn.close()


def test_users_do_not_see_each_other(tmp_path: Path) -> None:
    conn, ana, bob = _make_db(tmp_path)
    try:
        ana_repo = SqliteHistoryRepository(conn, ana)
        bob_repo = SqliteHistoryRepository(conn, bob)
        rec = ana_repo.save(_cavity_record())

        assert bob_repo.list() == []
        assert bob_repo.get(rec.id) is None
        assert bob_repo.delete(rec.id) is False
        assert bob_repo.clear() == 0
        assert len(ana_repo.list()) == 1
    finally:
        conn.close()


def test_delete_and_clear(tmp_path: Path) -> None:
    conn, ana, _ = _make_db(tmp_path)
    try:
        repo = SqliteHistoryRepository(conn, ana)
        a = repo.save(_cavity_record())
        repo.save(_cavity_record(width=7.0))
        repo.save(_conductor_record())

        assert repo.delete(a.id) is True
        assert repo.delete(a.id) is False
        assert repo.clear("CAVITY") == 1
        assert [r.calculator for r in repo.list()] == ["CONDUCTOR"]
        assert repo.clear() == 1
        assert repo.list() == []
    finally:
        conn.close()


def test_save_rejects_unknown_calculator(tmp_path: Path) -> None:
    conn, ana, _ = _make_db(tmp_path)
    try:
        repo = SqliteHistoryRepository(conn, ana)
        with pytest.raises(ValueError, match="Unknown calculator"):
            repo.save(HistoryRecord(calculator="RTM", input={}, result={}))
    finally:
        conn.close()


def test_history_to_dataframe_flattens_input_and_result() -> None:
    records = [_cavity_record(), _conductor_record()]
    df = history_to_dataframe(records)

    assert len(df) == 2
    assert {"id", "created_at", "calculator", "input.length", "result.area"} <= set(df.columns)
    assert "result.labels.breaker" in df.columns
    assert not any(col.startswith("result.formulas") for col in df.columns)
    assert df.loc[0, "result.area"] == pytest.approx(72.0)


def test_history_to_dataframe_empty() -> None:
    df = history_to_dataframe([])
    assert df.empty
    assert list(df.columns) == ["id", "created_at", "calculator"]


def test_export_then_import_assigns_fresh_ids(tmp_path: Path) -> None:
    conn, ana, bob = _make_db(tmp_path)
    try:
        ana_repo = SqliteHistoryRepository(conn, ana)
        original = ana_repo.save(_conductor_record())
        text = export_history_json(ana_repo.list())

        data = json.loads(text)
        assert data["format"] == EXPORT_FORMAT
        assert "user_id" not in data["records"][0]

        imported = import_history_json(text)
        assert len(imported) == 1
        assert imported[0].id != original.id
        assert imported[0].created_at == original.created_at
        assert imported[0].result["labels"]["breaker"] == "1 X 30A"

        bob_repo = SqliteHistoryRepository(conn, bob)
        bob_repo.save(imported[0])
        assert len(bob_repo.list()) == 1
        assert len(ana_repo.list()) == 1
    finally:
        conn.close()


def test_import_accepts_bare_list() -> None:
    text = json.dumps([{"calculator": "TOTAL_FLUX", "input": {"width": 8}, "result": {"area": 80}}])
    [rec] = import_history_json(text)
    assert rec.calculator == "TOTAL_FLUX"
    assert rec.input == {"width": 8}


@pytest.mark.parametrize(
    ("text", "message"),
    [
        ("not json", "Invalid JSON"),
        ('{"format": "other", "records": []}', "Not a history export"),
        (json.dumps({"format": EXPORT_FORMAT, "records": {}}), "records must be a list"),
        ("[1]", "is not an object"),
        ('[{"calculator": "RTM", "input": {}, "result": {}}]', "unknown calculator"),
        ('[{"calculator": "CAVITY", "input": [], "result": {}}]', "must be objects"),
    ],
)
def test_import_rejects_malformed(text: str, message: str) -> None:
    with pytest.raises(ValueError, match=message):
        import_history_json(text)
