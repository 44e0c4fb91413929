#!/usr/bin/env python3

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]

# Allow running as "python tools/run_calc.py" (so repo root is importable)
sys.path.insert(0, str(ROOT))

from app import db  # noqa: E402
from app.history import SqliteHistoryRepository, record_from_calculation  # noqa: E402
from app.settings import get_settings  # noqa: E402
from elec_core.export_payload import CALCULATORS, build_payload, run_calculator  # noqa: E402


def _read_input(path: str | None) -> dict:
    if path is None:
        return {}
    if path == "-":
        data = json.load(sys.stdin)
    else:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("input JSON must be an object")
    return data


def ensure_migrations(db_path: Path) -> list[str]:
    conn = db.connect(db_path)
    try:
        return db.apply_migrations(conn)
    finally:
        conn.close()


def save_to_history(db_path: Path, email: str, calculator: str, inp, res, limit: int) -> str:
    conn = db.connect(db_path)
    try:
        user = db.get_user_by_email(conn, email.strip().lower())
        if user is None:
            raise ValueError(f"User not found: {email}")
        repo = SqliteHistoryRepository(conn, user["id"], limit=limit)
        return repo.save(record_from_calculation(calculator, inp, res)).id
    finally:
        conn.close()


def main() -> int:
    settings = get_settings()
    ap = argparse.ArgumentParser(
        description="Run one calculator (cavity / total flux / conductor) from a JSON input and print the payload."
    )
    ap.add_argument("--calculator", required=True, choices=sorted(CALCULATORS), help="Calculator code.")
    ap.add_argument(
        "--input",
        default=None,
        help="JSON object with input fields ('-' = stdin). Missing fields use defaults.",
    )
    ap.add_argument("--out", default=None, help="Write payload JSON here instead of stdout.")
    ap.add_argument("--db", default=None, help="SQLite DB: apply migrations (e.g. db/app.sqlite).")
    ap.add_argument("--user-email", default=None, help="With --db: save the result to this user's history.")
    ap.add_argument("--log-level", default=settings.log_level)
    args = ap.parse_args()

    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    if args.user_email and not args.db:
        ap.error("--user-email requires --db")

    try:
        data = _read_input(args.input)
        inp, res = run_calculator(args.calculator, data)
    except (ValueError, TypeError, json.JSONDecodeError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2

    payload = build_payload(args.calculator, inp, res)
    text = json.dumps(payload, ensure_ascii=False, indent=2) + "\n"

    if args.db:
        db_path = Path(args.db)
        applied = ensure_migrations(db_path)
        print(f"migrations_applied: {len(applied)}", file=sys.stderr)
        if args.user_email:
            try:
                record_id = save_to_history(
                    db_path, args.user_email, args.calculator, inp, res, settings.history_limit
                )
            except ValueError as exc:
                print(f"ERROR: {exc}", file=sys.stderr)
                return 2
            print(f"history_id: {record_id}", file=sys.stderr)

    if args.out:
        out_path = Path(args.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(text, encoding="utf-8")
        print(f"OK: {out_path}")
    else:
        sys.stdout.write(text)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
