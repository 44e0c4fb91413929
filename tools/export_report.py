#!/usr/bin/env python3

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]

sys.path.insert(0, str(ROOT))

from app.report_pdf import build_report_pdf  # noqa: E402
from app.settings import get_settings  # noqa: E402
from elec_core.export_payload import CALCULATORS, run_calculator  # noqa: E402


def main() -> int:
    settings = get_settings()
    ap = argparse.ArgumentParser(description="Run a calculator from a JSON input and write its PDF report.")
    ap.add_argument("--calculator", required=True, choices=sorted(CALCULATORS))
    ap.add_argument("--input", default=None, help="JSON object with input fields (defaults when absent).")
    ap.add_argument("--out", required=True, help="Output PDF path.")
    ap.add_argument("--logo", default=settings.report_logo_path, help="Header logo image (optional).")
    ap.add_argument("--font", default=settings.report_font_path, help="TrueType font for the report (optional).")
    args = ap.parse_args()

    logging.basicConfig(level=settings.log_level, format="%(levelname)s %(name)s: %(message)s")

    try:
        data = {}
        if args.input:
            data = json.loads(Path(args.input).read_text(encoding="utf-8"))
        inp, res = run_calculator(args.calculator, data)
    except (ValueError, TypeError, json.JSONDecodeError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2

    pdf = build_report_pdf(args.calculator, inp, res, logo_path=args.logo, font_path=args.font)
    out_path = Path(args.out)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_bytes(pdf)
    print(f"OK: {out_path} ({len(pdf)} bytes)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
