from __future__ import annotations

import json
import os
import subprocess
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from app import auth, db  # noqa: E402


def _run(args: list[str], tmp_path: Path, stdin: str | None = None) -> subprocess.CompletedProcess:
    env = dict(os.environ)
    env.pop("SMTP_HOST", None)
    env["IE_DB_PATH"] = str(tmp_path / "unused.sqlite")
    return subprocess.run(
        [sys.executable, str(ROOT / "tools" / "run_calc.py"), *args],
        cwd=ROOT,
        env=env,
        input=stdin,
        capture_output=True,
        text=True,
        check=False,
    )


def test_run_calc_defaults_to_stdout(tmp_path: Path) -> None:
    proc = _run(["--calculator", "CAVITY"], tmp_path)
    assert proc.returncode == 0, proc.stderr
    payload = json.loads(proc.stdout)
    assert payload["calculator"] == "CAVITY"
    assert payload["result"]["fixture_count"] == 34


def test_run_calc_reads_stdin_and_writes_file(tmp_path: Path) -> None:
    out = tmp_path / "out" / "conductor.json"
    proc = _run(
        ["--calculator", "CONDUCTOR", "--input", "-", "--out", str(out)],
        tmp_path,
        stdin=json.dumps({"power_w": 3500, "voltage_v": 127}),
    )
    assert proc.returncode == 0, proc.stderr
    payload = json.loads(out.read_text(encoding="utf-8"))
    assert payload["result"]["labels"]["breaker"] == "1 X 30A"


def test_run_calc_bad_input_exits_2(tmp_path: Path) -> None:
    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps({"colour": "red"}), encoding="utf-8")
    proc = _run(["--calculator", "CAVITY", "--input", str(bad)], tmp_path)
    assert proc.returncode == 2
    assert "Unknown input fields" in proc.stderr


def test_run_calc_saves_to_user_history(tmp_path: Path) -> None:
    db_path = tmp_path / "app.sqlite"
    conn = db.connect(db_path)
    try:
        db.apply_migrations(conn)
        auth.register_user(conn, "ana@example.com", "secreto1")
    finally:
        conn.close()

    proc = _run(
        ["--calculator", "TOTAL_FLUX", "--db", str(db_path), "--user-email", "Ana@Example.com"],
        tmp_path,
    )
    assert proc.returncode == 0, proc.stderr
    assert "migrations_applied: 0" in proc.stderr
    assert "history_id:" in proc.stderr

    conn = db.connect(db_path)
    try:
        row = conn.execute("SELECT calculator, result_json FROM calc_history").fetchone()
        assert row["calculator"] == "TOTAL_FLUX"
        assert json.loads(row["result_json"])["fixture_count"] == 11
    finally:
        conn.close()


def test_run_calc_unknown_user(tmp_path: Path) -> None:
    proc = _run(
        ["--calculator", "CAVITY", "--db", str(tmp_path / "app.sqlite"), "--user-email", "x@example.com"],
        tmp_path,
    )
    assert proc.returncode == 2
    assert "User not found" in proc.stderr
