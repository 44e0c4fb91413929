"""
Tablas de referencia para el dimensionamiento de conductores.

Todas las búsquedas recorren la tabla en su orden y devuelven la PRIMERA fila
que cumple "capacidad >= requerido". Nunca se elige la fila "más cercana".
Una búsqueda sin resultado devuelve None (no encontrado); no lanza excepción.

Las celdas sin dato (None) en la tabla de tuberías se saltan, no valen cero.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

# Códigos de selección
SYSTEM_1PH2W = "1PH2W"  # monofásico a 2 hilos
SYSTEM_2PH3W = "2PH3W"  # monofásico a 3 hilos / bifásico
SYSTEM_3PH3W = "3PH3W"  # trifásico a 3 hilos
SYSTEM_TYPES = (SYSTEM_1PH2W, SYSTEM_2PH3W, SYSTEM_3PH3W)

INSULATION_TW = "TW"
INSULATION_THW = "THW"
INSULATION_VINANEL_900 = "VINANEL_900"
INSULATION_VINANEL_NYLON = "VINANEL_NYLON"
INSULATION_TYPES = (
    INSULATION_TW,
    INSULATION_THW,
    INSULATION_VINANEL_900,
    INSULATION_VINANEL_NYLON,
)

ENV_INDOOR = "INDOOR"
ENV_OUTDOOR = "OUTDOOR"
ENVIRONMENTS = (ENV_INDOOR, ENV_OUTDOOR)

KIND_WIRE = "WIRE"  # alambres
KIND_CABLE = "CABLE"  # cables
CONDUCTOR_KINDS = (KIND_WIRE, KIND_CABLE)

CONDUIT_THIN_40 = "THIN_WALL_40"
CONDUIT_THIN_100 = "THIN_WALL_100"
CONDUIT_THICK_40 = "THICK_WALL_40"
CONDUIT_THICK_100 = "THICK_WALL_100"
CONDUIT_TYPES = (CONDUIT_THIN_40, CONDUIT_THIN_100, CONDUIT_THICK_40, CONDUIT_THICK_100)

BREAKER_SUFFICIENT = "SUFFICIENT"
BREAKER_LOWER_WITHIN_TOLERANCE = "LOWER_WITHIN_TOLERANCE"
BREAKER_MAX_AVAILABLE = "MAX_AVAILABLE"

# A rating this close below the rounded protection current is preferred.
BREAKER_TOLERANCE_A = 3

NOT_FOUND_LABEL = "No encontrado"


@dataclass(frozen=True)
class AmpacityRow:
    gauge: str
    tw: float
    thw: float
    vinanel: float
    thw_outdoor: float
    vinanel_outdoor: float


@dataclass(frozen=True)
class ConduitRow:
    size_in: str
    size_mm: int
    thin_wall_40: float | None
    thin_wall_100: float | None
    thick_wall_40: float | None
    thick_wall_100: float | None

    @property
    def label(self) -> str:
        return f"{self.size_in} ({self.size_mm} mm)"


@dataclass(frozen=True)
class ConductorAreaRow:
    gauge: str
    copper_area_mm2: float
    total_area_mm2: float
    # conductor count (2..6) -> area of the whole group, mm2
    group_area_mm2: tuple[tuple[int, float], ...]

    def area_for_count(self, count: int) -> float | None:
        for n, area in self.group_area_mm2:
            if n == count:
                return area
        return None


@dataclass(frozen=True)
class BreakerSelection:
    poles: int
    ampere: int
    status: str

    @property
    def label(self) -> str:
        text = f"{self.poles} X {self.ampere}A"
        if self.status == BREAKER_MAX_AVAILABLE:
            text += " (máximo disponible)"
        return text


def _groups(*areas: float) -> tuple[tuple[int, float], ...]:
    return tuple(zip(range(2, 2 + len(areas)), areas))


AMPACITY_TABLE: tuple[AmpacityRow, ...] = (
    AmpacityRow("14", 15, 25, 25, 20, 30),
    AmpacityRow("12", 20, 30, 30, 25, 40),
    AmpacityRow("10", 30, 40, 40, 40, 55),
    AmpacityRow("8", 40, 50, 50, 55, 70),
    AmpacityRow("6", 55, 70, 70, 70, 95),
    AmpacityRow("4", 70, 90, 90, 85, 135),
    AmpacityRow("2", 95, 120, 120, 115, 180),
    AmpacityRow("0", 125, 155, 155, 195, 245),
    AmpacityRow("00", 145, 185, 185, 225, 285),
    AmpacityRow("000", 165, 210, 210, 260, 330),
    AmpacityRow("0000", 195, 235, 235, 300, 385),
    AmpacityRow("250 MCM", 215, 270, 270, 340, 425),
    AmpacityRow("300 MCM", 240, 300, 300, 375, 480),
    AmpacityRow("350 MCM", 260, 325, 325, 420, 530),
    AmpacityRow("400 MCM", 280, 360, 360, 455, 575),
    AmpacityRow("500 MCM", 320, 405, 405, 515, 660),
)

CONDUIT_TABLE: tuple[ConduitRow, ...] = (
    ConduitRow("1/2", 13, 78, 196, 96, 240),
    ConduitRow("3/4", 19, 142, 356, 158, 392),
    ConduitRow("1", 25, 220, 551, 250, 624),
    ConduitRow("1 1/4", 32, 390, 980, 422, 1056),
    ConduitRow("1 1/2", 38, 532, 1330, 570, 1424),
    ConduitRow("2", 51, 874, 2185, 926, 2316),
    ConduitRow("2 1/2", 64, None, None, 1376, 3440),
    ConduitRow("3", 76, None, None, 2116, 5290),
    ConduitRow("4", 102, 3575, 8938, 3575, 8938),
    ConduitRow("2 1/2 x 2 1/2", 65, 1638, 4096, 1638, 4096),
    ConduitRow("4 x 4", 100, 4000, 10000, 4000, 10000),
    ConduitRow("6 x 6", 150, 9000, 22500, 9000, 22500),
)

# Vinanel-Nylon: areas with thinner insulation.
VINANEL_NYLON_AREAS: dict[str, tuple[ConductorAreaRow, ...]] = {
    KIND_WIRE: (
        ConductorAreaRow("14", 2.08, 5.9, _groups(11.8, 17.7, 23.6, 29.5, 35.4)),
        ConductorAreaRow("12", 3.3, 7.89, _groups(15.78, 26.67, 31.56, 39.45, 47.34)),
        ConductorAreaRow("10", 5.27, 12.32, _groups(24.64, 36.96, 49.28, 61.6, 73.92)),
        ConductorAreaRow("8", 8.35, 21.16, _groups(42.32, 63.48, 84.64, 105.8, 126.96)),
    ),
    KIND_CABLE: (
        ConductorAreaRow("14", 2.66, 6.88, _groups(13.76, 20.64, 27.52, 34.4, 41.28)),
        ConductorAreaRow("12", 4.23, 9.29, _groups(18.58, 27.87, 37.16, 46.45, 55.74)),
        ConductorAreaRow("10", 6.69, 13.96, _groups(29.32, 43.98, 58.64, 73.3, 87.96)),
        ConductorAreaRow("8", 10.81, 24.98, _groups(49.96, 74.94, 99.92, 124.9, 149.88)),
        ConductorAreaRow("6", 12, 34.21, _groups(68.42, 102.63, 136.84, 171.05, 205.26)),
        ConductorAreaRow("4", 21.24, 55.15, _groups(110.3, 165.45, 220.6, 275.75, 330.9)),
        ConductorAreaRow("2", 43.24, 77.13, _groups(154.26, 231.39, 308.52, 385.65, 462.78)),
        ConductorAreaRow("0", 70.43, 123.5, _groups(247, 370.5, 494, 617.5, 741)),
        ConductorAreaRow("00", 88.91, 147.62, _groups(295.24, 442.86, 590.48, 738.1, 885.72)),
        ConductorAreaRow("000", 111.97, 176.74, _groups(353.48, 530.13, 706.84, 883.55, 1060.26)),
        ConductorAreaRow("0000", 141.23, 211.24, _groups(422.48, 633.72, 844.96, 1056.2, 1267.44)),
        ConductorAreaRow("250 MCM", 167.65, 261.36, _groups(522.72, 783.9, 1045.2, 1306.5, 1567.8)),
        ConductorAreaRow("300 MCM", 201.06, 302.64, _groups(605.28, 907.92, 1210.56, 1513.2, 1815.84)),
        ConductorAreaRow("400 MCM", 268.51, 384.29, _groups(768.58, 1152.87, 1537.16, 1921.45, 2305.74)),
        ConductorAreaRow("500 MCM", 334.91, 463, _groups(926, 1389, 1852, 2315, 2778)),
    ),
}

# TW, THW, Vinanel 900.
STANDARD_AREAS: dict[str, tuple[ConductorAreaRow, ...]] = {
    KIND_WIRE: (
        ConductorAreaRow("14", 2.08, 8.30, _groups(16.60, 24.90, 33.20, 41.50, 49.80)),
        ConductorAreaRow("12", 3.30, 10.64, _groups(21.28, 31.92, 42.56, 53.20, 63.84)),
        ConductorAreaRow("10", 5.27, 13.99, _groups(27.98, 41.97, 55.96, 69.95, 83.94)),
        ConductorAreaRow("8", 8.35, 25.70, _groups(51.40, 77.10, 102.80, 128.50, 154.20)),
    ),
    KIND_CABLE: (
        ConductorAreaRow("14", 2.66, 9.51, _groups(19.02, 28.53, 38.04, 47.55, 57.06)),
        ConductorAreaRow("12", 4.23, 12.32, _groups(24.64, 36.96, 49.28, 61.60, 73.92)),
        ConductorAreaRow("10", 6.83, 16.40, _groups(32.80, 49.20, 65.60, 82.00, 98.40)),
        ConductorAreaRow("8", 10.81, 29.70, _groups(59.40, 89.10, 118.80, 148.50, 178.20)),
        ConductorAreaRow("6", 12.00, 49.66, _groups(98.52, 147.78, 197.04, 246.30, 295.56)),
        ConductorAreaRow("4", 27.24, 65.61, _groups(131.22, 196.83, 262.44, 328.05, 393.66)),
        ConductorAreaRow("2", 43.24, 89.42, _groups(178.84, 268.26, 357.68, 447.10, 536.52)),
        ConductorAreaRow("0", 70.43, 143.99, _groups(287.98, 431.97, 575.96, 719.95, 863.94)),
        ConductorAreaRow("00", 88.91, 169.72, _groups(339.44, 509.16, 678.88, 848.60, 1018.32)),
        ConductorAreaRow("000", 111.97, 201.06, _groups(402.12, 603.18, 804.24, 1005.30, 1206.36)),
        ConductorAreaRow("0000", 141.23, 239.72, _groups(479.56, 719.28, 959.00, 1198.72, 1438.88)),
        ConductorAreaRow("250 MCM", 167.65, 298.65, _groups(597.30, 895.95, 1194.60, 1493.25, 1791.90)),
        ConductorAreaRow("300 MCM", 201.06, 343.07, _groups(686.14, 1029.21, 1372.28, 1715.35, 2058.42)),
        ConductorAreaRow("400 MCM", 268.51, 430.05, _groups(860.10, 1290.15, 1720.20, 2150.25, 2580.30)),
        ConductorAreaRow("500 MCM", 334.91, 514.72, _groups(1029.44, 1544.16, 2058.88, 2573.60, 3088.32)),
    ),
}

BREAKER_RATINGS: dict[int, tuple[int, ...]] = {
    1: (15, 20, 30, 40, 50),
    2: (15, 20, 30, 40, 50, 70),
    3: (15, 20, 30, 40, 50, 70, 100, 125, 150, 175, 200, 225, 250, 300, 350, 400, 500, 600),
}

_POLES_BY_SYSTEM = {
    SYSTEM_1PH2W: 1,
    SYSTEM_2PH3W: 2,
    SYSTEM_3PH3W: 3,
}


def ampacity_column(insulation: str, environment: str) -> str | None:
    """Columna de la tabla de ampacidad para (aislamiento, instalación)."""
    if environment == ENV_INDOOR:
        if insulation == INSULATION_TW:
            return "tw"
        if insulation == INSULATION_THW:
            return "thw"
        if insulation in (INSULATION_VINANEL_900, INSULATION_VINANEL_NYLON):
            return "vinanel"
        return None
    if environment == ENV_OUTDOOR:
        if insulation == INSULATION_THW:
            return "thw_outdoor"
        if insulation in INSULATION_TYPES:
            return "vinanel_outdoor"
        return None
    return None


def gauge_for_current(current_a: float, insulation: str, environment: str) -> str | None:
    column = ampacity_column(insulation, environment)
    if column is None:
        return None
    for row in AMPACITY_TABLE:
        if getattr(row, column) >= current_a:
            return row.gauge
    return None


def area_table(insulation: str, conductor_kind: str) -> tuple[ConductorAreaRow, ...] | None:
    source = VINANEL_NYLON_AREAS if insulation == INSULATION_VINANEL_NYLON else STANDARD_AREAS
    return source.get(conductor_kind)


def gauge_for_section(section_mm2: float, conductor_kind: str) -> str | None:
    rows = VINANEL_NYLON_AREAS.get(conductor_kind)
    if rows is None:
        return None
    for row in rows:
        if row.copper_area_mm2 >= section_mm2:
            return row.gauge
    return None


def bundle_area(
    gauge: str | None, count: int, insulation: str, conductor_kind: str
) -> float | None:
    """Área total del grupo de conductores (mm2) o None si no hay dato."""
    if gauge is None:
        return None
    rows = area_table(insulation, conductor_kind)
    if rows is None:
        return None
    row = next((r for r in rows if r.gauge == gauge), None)
    if row is None:
        return None
    if count > 1:
        return row.area_for_count(count)
    return row.total_area_mm2


def conduit_for_area(area_mm2: float | None, conduit_type: str) -> ConduitRow | None:
    if area_mm2 is None or conduit_type not in CONDUIT_TYPES:
        return None
    column = conduit_type.lower()
    for row in CONDUIT_TABLE:
        capacity = getattr(row, column)
        if capacity is not None and capacity >= area_mm2:
            return row
    return None


def poles_for_system(system_type: str) -> int | None:
    return _POLES_BY_SYSTEM.get(system_type)


def breaker_for_current(protection_current_a: float, poles: int) -> BreakerSelection | None:
    """
    Interruptor termomagnético para la corriente de protección.

    - rounded = ceil(Ip)
    - menor capacidad listada >= rounded
    - si la capacidad inmediata inferior queda a <= 3 A de rounded, se prefiere
    - sin capacidad suficiente -> la mayor disponible, marcada MAX_AVAILABLE
    """
    ratings = BREAKER_RATINGS.get(poles)
    if not ratings:
        return None
    capacities = sorted(ratings)
    if math.isnan(protection_current_a):
        return BreakerSelection(poles=poles, ampere=capacities[-1], status=BREAKER_MAX_AVAILABLE)
    rounded = math.ceil(protection_current_a) if math.isfinite(protection_current_a) else protection_current_a
    suitable = next((amp for amp in capacities if amp >= rounded), None)
    if suitable is None:
        return BreakerSelection(poles=poles, ampere=capacities[-1], status=BREAKER_MAX_AVAILABLE)
    lower = [amp for amp in capacities if amp < rounded]
    if lower and rounded - max(lower) <= BREAKER_TOLERANCE_A:
        return BreakerSelection(poles=poles, ampere=max(lower), status=BREAKER_LOWER_WITHIN_TOLERANCE)
    return BreakerSelection(poles=poles, ampere=suitable, status=BREAKER_SUFFICIENT)
