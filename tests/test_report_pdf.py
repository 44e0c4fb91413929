from __future__ import annotations

import logging
import re
import sys
from datetime import datetime
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from app.report_pdf import (  # noqa: E402
    BUILTIN_FONTS,
    DEFAULT_FONT_FILE,
    FONT_DIRS,
    REPORT_BUILDERS,
    build_report_pdf,
    cavity_report,
    conductor_report,
    render_report_pdf,
    report_fonts,
    total_flux_report,
)
from elec_core.export_payload import run_calculator  # noqa: E402


def _page_count(pdf: bytes) -> int:
    m = re.search(rb"/Count (\d+) /Kids", pdf)
    assert m is not None
    return int(m.group(1))


@pytest.mark.parametrize("calculator", sorted(REPORT_BUILDERS))
def test_build_report_pdf_for_each_calculator(calculator: str) -> None:
    data = {"power_w": 3500, "voltage_v": 127} if calculator == "CONDUCTOR" else {}
    inp, res = run_calculator(calculator, data)
    pdf = build_report_pdf(calculator, inp, res)
    assert pdf.startswith(b"%PDF-")
    assert b"%%EOF" in pdf[-32:]
    assert _page_count(pdf) >= 1


def test_long_report_spans_pages() -> None:
    lines = [f"Línea {n}" for n in range(200)]
    pdf = render_report_pdf(
        "Informe largo",
        [("Datos", lines)],
        ["S = 1 × 2 = 2"] * 20,
        "Nota",
        generated_at=datetime(2026, 1, 1, 12, 0, 0),
    )
    assert _page_count(pdf) > 1


def test_missing_logo_is_skipped(tmp_path: Path, caplog) -> None:
    inp, res = run_calculator("CAVITY", {})
    with caplog.at_level(logging.WARNING, logger="app.report_pdf"):
        pdf = build_report_pdf("CAVITY", inp, res, logo_path=str(tmp_path / "logo.png"))
    assert pdf.startswith(b"%PDF-")
    assert "logo not found" in caplog.text


def test_unknown_calculator() -> None:
    inp, res = run_calculator("CAVITY", {})
    with pytest.raises(ValueError, match="Unknown calculator"):
        build_report_pdf("RTM", inp, res)


def test_conductor_report_content() -> None:
    inp, res = run_calculator("CONDUCTOR", {"power_w": 3500, "voltage_v": 127})
    report = conductor_report(inp, res)

    assert report["title"] == "Cálculo de Conductores Eléctricos"
    inputs = dict(report["sections"])["Datos de entrada"]
    results = dict(report["sections"])["Resultados"]
    assert "Sistema: Monofásico a 2 Hilos" in inputs
    assert "Método: Por corriente" in inputs
    assert "Tipo de tubería: THIN WALL 40" in inputs
    assert "Interruptor termomagnético: 1 X 30A" in results
    assert report["formulas"] == list(res.formulas)
    assert report["note"] == res.note


def test_illumination_report_content() -> None:
    inp, res = run_calculator("CAVITY", {})
    report = cavity_report(inp, res)
    results = dict(report["sections"])["Resultados"]
    assert "RCL: 2.1250" in results
    assert "Número de luminarias: 33.4 ⇒ 34" in results

    inp, res = run_calculator("TOTAL_FLUX", {})
    report = total_flux_report(inp, res)
    inputs = dict(report["sections"])["Datos de entrada"]
    assert "Sistema de alumbrado: Semi Indirect" in inputs
    assert "Distribución: 3 × 4" in dict(report["sections"])["Resultados"]


def test_builtin_fonts_spell_out_formula_symbols() -> None:
    assert BUILTIN_FONTS.text("N_ancho = √(6 × 33.4 / 12) ⇒ 4") == "N_ancho = sqrt(6 × 33.4 / 12) => 4"
    assert BUILTIN_FONTS.text("Φtot, Cosθ, η") == "Phitot, Costheta, eta"


def test_missing_font_file_uses_builtin_fonts(tmp_path: Path, caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="app.report_pdf"):
        fonts = report_fonts(str(tmp_path / "missing.ttf"))
    assert fonts == BUILTIN_FONTS
    assert "font not found" in caplog.text


def test_truetype_font_keeps_formula_symbols() -> None:
    path = next((d / DEFAULT_FONT_FILE for d in FONT_DIRS if (d / DEFAULT_FONT_FILE).is_file()), None)
    if path is None:
        pytest.skip("DejaVu Sans is not installed")
    fonts = report_fonts(str(path))
    assert fonts.unicode
    assert fonts.text("√ ⇒ Φ") == "√ ⇒ Φ"

    inp, res = run_calculator("CAVITY", {})
    pdf = build_report_pdf("CAVITY", inp, res, font_path=str(path))
    assert pdf.startswith(b"%PDF-")
    assert path.stem.encode() in pdf
