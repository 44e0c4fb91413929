from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache
from pathlib import Path
from typing import Sequence
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.pdfgen import canvas
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from elec_core import tables
from elec_core.conductors import (
    METHOD_CURRENT,
    ConductorInput,
    ConductorResult,
    result_lines,
)
from elec_core.illumination import CavityInput, CavityResult, TotalFluxInput, TotalFluxResult

logger = logging.getLogger(__name__)

Section = tuple[str, Sequence[str]]

MARGIN = 15 * mm
HEADER_TOP = 40 * mm
CONTENT_WIDTH = letter[0] - 2 * MARGIN

SYSTEM_LABELS = {
    tables.SYSTEM_1PH2W: "Monofásico a 2 Hilos",
    tables.SYSTEM_2PH3W: "Monofásico a 3 Hilos/Bifásico",
    tables.SYSTEM_3PH3W: "Trifásico a 3 Hilos",
}
ENVIRONMENT_LABELS = {tables.ENV_INDOOR: "Interior", tables.ENV_OUTDOOR: "Intemperie"}

CAVITY_NOTE = (
    "Nota: El coeficiente de utilización se interpola con la relación de cavidad del local (RCL). "
    "Verifica los datos del fabricante de la luminaria."
)
TOTAL_FLUX_NOTE = (
    "Nota: El número de luminarias se redondea hacia arriba; la distribución ancho × largo se "
    "calcula con el valor exacto."
)

FONT_DIRS = (
    Path("/usr/share/fonts/truetype/dejavu"),
    Path("/usr/share/fonts/dejavu"),
    Path("/usr/share/fonts/TTF"),
    Path("/usr/local/share/fonts"),
    Path("/Library/Fonts"),
)
DEFAULT_FONT_FILE = "DejaVuSans.ttf"

# Helvetica/Courier only cover Latin-1
BUILTIN_REPLACEMENTS = {
    "√": "sqrt",
    "θ": "theta",
    "Φ": "Phi",
    "η": "eta",
    "⇒": "=>",
}


@dataclass(frozen=True)
class ReportFonts:
    regular: str
    bold: str
    mono: str
    unicode: bool

    def text(self, value: str) -> str:
        if not self.unicode:
            for glyph, spelled in BUILTIN_REPLACEMENTS.items():
                value = value.replace(glyph, spelled)
        return value


BUILTIN_FONTS = ReportFonts("Helvetica", "Helvetica-Bold", "Courier", unicode=False)


def _find_font_file(font_path: str | None) -> Path | None:
    if font_path:
        path = Path(font_path)
        if path.is_file():
            return path
        logger.warning("Report font not found, using built-in fonts: %s", font_path)
        return None
    for folder in FONT_DIRS:
        candidate = folder / DEFAULT_FONT_FILE
        if candidate.is_file():
            return candidate
    logger.warning("No TrueType font found, formulas use ASCII spellings")
    return None


def _register(path: Path) -> str:
    pdfmetrics.registerFont(TTFont(path.stem, str(path)))
    return path.stem


@lru_cache()
def report_fonts(font_path: str | None = None) -> ReportFonts:
    """
    Fuentes del informe.

    Con un TTF (REPORT_FONT_PATH o DejaVu Sans del sistema) se registran la
    variante normal, la negrita "<nombre>-Bold" y la monoespaciada "<nombre>Mono"
    que estén junto al archivo; si falta alguna se usa la normal.
    Sin TTF se usan Helvetica/Courier y los símbolos fuera de Latin-1 se escriben
    en ASCII.
    """
    path = _find_font_file(font_path)
    if path is None:
        return BUILTIN_FONTS
    bold = path.with_name(f"{path.stem}-Bold{path.suffix}")
    mono = path.with_name(f"{path.stem}Mono{path.suffix}")
    regular = _register(path)
    fonts = ReportFonts(
        regular=regular,
        bold=_register(bold) if bold.is_file() else regular,
        mono=_register(mono) if mono.is_file() else regular,
        unicode=True,
    )
    pdfmetrics.registerFontFamily(
        regular, normal=regular, bold=fonts.bold, italic=regular, boldItalic=fonts.bold
    )
    logger.info("Report font: %s", path)
    return fonts


class _NumberedCanvas(canvas.Canvas):
    """Defers page output so each page can print 'Página i de n'."""

    def __init__(
        self,
        *args,
        title: str = "",
        logo_path: str | None = None,
        fonts: ReportFonts = BUILTIN_FONTS,
        **kwargs,
    ):
        super().__init__(*args, **kwargs)
        self._saved_page_states: list[dict] = []
        self._report_title = title
        self._logo_path = logo_path
        self._fonts = fonts

    def showPage(self) -> None:
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self) -> None:
        total = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self._draw_header_footer(total)
            super().showPage()
        super().save()

    def _draw_header_footer(self, total: int) -> None:
        width, height = self._pagesize
        if self._logo_path:
            self.drawImage(
                self._logo_path,
                width - MARGIN - 80 * mm,
                height - 35 * mm,
                width=80 * mm,
                height=30 * mm,
                preserveAspectRatio=True,
                mask="auto",
            )
        self.setFont(self._fonts.bold, 18)
        self.setFillColor(colors.black)
        self.drawString(MARGIN, height - 30 * mm, self._fonts.text(self._report_title))
        self.setStrokeColor(colors.grey)
        self.setLineWidth(0.3 * mm)
        self.line(MARGIN, height - 35 * mm, width - MARGIN, height - 35 * mm)
        self.setFont(self._fonts.regular, 10)
        self.setFillColor(colors.grey)
        self.drawCentredString(width / 2, 10 * mm, f"Página {self._pageNumber} de {total}")


def _styles(fonts: ReportFonts) -> dict[str, ParagraphStyle]:
    base = getSampleStyleSheet()
    return {
        "date": ParagraphStyle(
            "ReportDate", parent=base["Normal"], fontName=fonts.regular, fontSize=10
        ),
        "heading": ParagraphStyle(
            "ReportHeading",
            parent=base["Heading2"],
            fontName=fonts.bold,
            fontSize=14,
            spaceBefore=10,
            spaceAfter=4,
        ),
        "bullet": ParagraphStyle(
            "ReportBullet",
            parent=base["BodyText"],
            fontName=fonts.regular,
            bulletFontName=fonts.regular,
            fontSize=11,
            leftIndent=6,
        ),
        "formula": ParagraphStyle(
            "ReportFormula",
            parent=base["Code"],
            fontName=fonts.mono,
            fontSize=9,
            leading=12,
            spaceAfter=4,
        ),
        "note": ParagraphStyle(
            "ReportNote",
            parent=base["BodyText"],
            fontName=fonts.regular,
            fontSize=12,
            textColor=colors.Color(0.78, 0, 0),
        ),
    }


def _rule() -> Table:
    rule = Table([[""]], colWidths=[CONTENT_WIDTH], rowHeights=[1])
    rule.setStyle(TableStyle([("LINEBELOW", (0, 0), (-1, -1), 0.3 * mm, colors.grey)]))
    return rule


def render_report_pdf(
    title: str,
    sections: Sequence[Section],
    formulas: Sequence[str],
    note: str | None,
    *,
    logo_path: str | None = None,
    font_path: str | None = None,
    generated_at: datetime | None = None,
) -> bytes:
    """
    Informe en tamaño carta:
    encabezado (título + logo opcional) y pie "Página i de n" en todas las páginas,
    secciones con viñetas, desarrollo de fórmulas y nota resaltada al final.
    """
    if logo_path and not Path(logo_path).is_file():
        logger.warning("Report logo not found, skipped: %s", logo_path)
        logo_path = None

    fonts = report_fonts(font_path)
    styles = _styles(fonts)

    def _p(text: str, style: str, **kwargs) -> Paragraph:
        return Paragraph(escape(fonts.text(text)), styles[style], **kwargs)

    story: list = []
    stamp = (generated_at or datetime.now()).strftime("%d/%m/%Y %H:%M:%S")
    story.append(_p(f"Fecha: {stamp}", "date"))
    story.append(Spacer(1, 6 * mm))

    for heading, lines in sections:
        story.append(_p(heading, "heading"))
        story.append(_rule())
        for line in lines:
            story.append(_p(line, "bullet", bulletText="•"))

    if formulas:
        story.append(_p("Desarrollo de las fórmulas", "heading"))
        story.append(_rule())
        story.append(Spacer(1, 2 * mm))
        for step in formulas:
            story.append(_p(step, "formula"))

    if note:
        story.append(Spacer(1, 4 * mm))
        box = Table([[_p(note, "note")]], colWidths=[CONTENT_WIDTH])
        box.setStyle(
            TableStyle(
                [
                    ("BACKGROUND", (0, 0), (-1, -1), colors.Color(0.96, 0.96, 0.96)),
                    ("LEFTPADDING", (0, 0), (-1, -1), 6),
                    ("RIGHTPADDING", (0, 0), (-1, -1), 6),
                ]
            )
        )
        story.append(box)

    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=letter,
        leftMargin=MARGIN,
        rightMargin=MARGIN,
        topMargin=HEADER_TOP,
        bottomMargin=20 * mm,
        title=title,
    )

    def _make_canvas(*args, **kwargs):
        return _NumberedCanvas(*args, title=title, logo_path=logo_path, fonts=fonts, **kwargs)

    doc.build(story, canvasmaker=_make_canvas)
    data = buffer.getvalue()
    logger.info("Report generated: %s (%d bytes)", title, len(data))
    return data


# --- builders ----------------------------------------------------------------


def conductor_report(inp: ConductorInput, res: ConductorResult) -> dict:
    inputs = [
        f"Sistema: {SYSTEM_LABELS.get(inp.system_type, inp.system_type)}",
        f"Método: {'Por corriente' if res.method == METHOD_CURRENT else 'Por caída de tensión'}",
        f"Potencia total (Wtot): {inp.power_w:g} W",
        f"Tensión (En): {inp.voltage_v:g} V",
        f"Factor de potencia (Cosθ): {inp.power_factor:g}",
        f"Factor de demanda (FD): {inp.demand_factor:g}",
        f"Tipo de aislamiento: {inp.insulation.replace('_', ' ')}",
        f"Tipo de instalación: {ENVIRONMENT_LABELS.get(inp.environment, inp.environment)}",
        f"Número de conductores: {inp.conductor_count}",
        f"Tipo de tubería: {inp.conduit_type.replace('_', ' ')}",
    ]
    return {
        "title": "Cálculo de Conductores Eléctricos",
        "sections": [("Datos de entrada", inputs), ("Resultados", result_lines(inp, res))],
        "formulas": list(res.formulas),
        "note": res.note,
    }


def cavity_report(inp: CavityInput, res: CavityResult) -> dict:
    d = res.display
    inputs = [
        f"Largo: {inp.length:g} m, Ancho: {inp.width:g} m, Altura total: {inp.total_height:g} m",
        f"Altura de cavidad de techo (HT): {inp.ceiling_cavity_height:g} m",
        f"Altura de cavidad de piso (HS): {inp.floor_cavity_height:g} m",
        f"Plano de trabajo (PT): {inp.work_plane_height:g} m",
        f"Iluminancia (E): {inp.illuminance_lux:g} lx",
        f"Reflectancias techo/paredes/piso: {inp.ceiling_reflectance:g} / {inp.wall_reflectance:g} / "
        f"{inp.floor_reflectance:g}",
        f"Flujo por lámpara (Φ): {inp.luminous_flux_per_lamp:g} lm, lámparas por luminaria: "
        f"{inp.lamps_per_fixture:g}",
        f"Factor de pérdidas totales (FPT): {inp.maintenance_factor:g}",
        f"Tabla CU: ({inp.cu_x1:g}, {inp.cu_y1:g}) - ({inp.cu_x2:g}, {inp.cu_y2:g})",
    ]
    results = [
        f"Altura de cavidad del local (H): {d['cavity_height']} m",
        f"RCL: {d['room_cavity_ratio']}",
        f"RCT: {d['ceiling_cavity_ratio']}",
        f"RCP: {d['floor_cavity_ratio']}",
        f"Área (S): {d['area']} m²",
        f"Coeficiente de utilización (CU): {d['utilization_coefficient']}",
        f"Flujo requerido: {d['required_flux_lm']} lm",
        f"Número de luminarias: {d['fixture_count_exact']} ⇒ {res.fixture_count}",
        f"Luminarias a lo ancho: {d['across_width_exact']} ⇒ {res.layout.across_width}",
        f"Luminarias a lo largo: {d['across_length_exact']} ⇒ {res.layout.across_length}",
    ]
    return {
        "title": "Alumbrado: Método de Cavidad Zonal",
        "sections": [("Datos de entrada", inputs), ("Resultados", results)],
        "formulas": list(res.formulas),
        "note": CAVITY_NOTE,
    }


def total_flux_report(inp: TotalFluxInput, res: TotalFluxResult) -> dict:
    d = res.display
    inputs = [
        f"Largo (b): {inp.length:g} m, Ancho (a): {inp.width:g} m, Altura total: {inp.total_height:g} m",
        f"Plano de trabajo: {inp.work_plane_height:g} m, Suspensión: {inp.suspension_height:g} m",
        f"Sistema de alumbrado: {inp.lighting_system.replace('_', ' ').title()}",
        f"Iluminancia (E): {inp.illuminance_lux:g} lx",
        f"Lámpara: {inp.lamp_type}, flujo por luminaria: {inp.flux_per_fixture:g} lm",
        f"Reflectancias techo/paredes/piso: {inp.ceiling_reflectance:g} / {inp.wall_reflectance:g} / "
        f"{inp.floor_reflectance:g}",
        f"Factor de mantenimiento (FPT): {inp.maintenance_factor:g}",
        f"Tabla CU: ({inp.cu_x1:g}, {inp.cu_y1:g}) - ({inp.cu_x2:g}, {inp.cu_y2:g})",
    ]
    results = [
        f"Área (S): {d['area']} m²",
        f"Altura de cálculo (h): {d['calculation_height']} m",
        f"Índice del local (K): {d['room_index']}",
        f"Coeficiente de utilización (CU): {d['utilization_coefficient']}",
        f"Flujo total (Φtot): {d['total_flux_lm']} lm",
        f"Número de luminarias: {d['fixture_count_exact']} ⇒ {res.fixture_count}",
        f"Distribución: {res.layout.across_width} × {res.layout.across_length}",
    ]
    return {
        "title": "Alumbrado: Método del Flujo Total",
        "sections": [("Datos de entrada", inputs), ("Resultados", results)],
        "formulas": list(res.formulas),
        "note": TOTAL_FLUX_NOTE,
    }


REPORT_BUILDERS = {
    "CAVITY": cavity_report,
    "TOTAL_FLUX": total_flux_report,
    "CONDUCTOR": conductor_report,
}


def build_report_pdf(
    calculator: str,
    inp,
    res,
    *,
    logo_path: str | None = None,
    font_path: str | None = None,
) -> bytes:
    try:
        builder = REPORT_BUILDERS[calculator]
    except KeyError as exc:
        raise ValueError(f"Unknown calculator: {calculator}") from exc
    report = builder(inp, res)
    return render_report_pdf(
        report["title"],
        report["sections"],
        report["formulas"],
        report["note"],
        logo_path=logo_path,
        font_path=font_path,
    )
