"""
Alumbrado de interiores: método de cavidad zonal y método del flujo total.

Cada cálculo es una función pura: mismo input -> mismo resultado, bit a bit.
No se valida la geometría; divisiones entre cero producen inf/NaN que se
propagan hasta el resultado.
"""

from __future__ import annotations

from dataclasses import dataclass

from .interpolation import InterpolationPair
from .numeric import ceil_or_nan, ieee_div, ieee_sqrt, round_half_up, three_sig_figs, to_fixed

LIGHTING_DIRECT = "DIRECT"
LIGHTING_SEMI_DIRECT = "SEMI_DIRECT"
LIGHTING_MIXED = "MIXED"
LIGHTING_INDIRECT = "INDIRECT"
LIGHTING_SEMI_INDIRECT = "SEMI_INDIRECT"
LIGHTING_SYSTEMS = (
    LIGHTING_DIRECT,
    LIGHTING_SEMI_DIRECT,
    LIGHTING_MIXED,
    LIGHTING_INDIRECT,
    LIGHTING_SEMI_INDIRECT,
)
INDIRECT_SYSTEMS = (LIGHTING_INDIRECT, LIGHTING_SEMI_INDIRECT)


@dataclass(frozen=True)
class CavityInput:
    length: float = 12.0
    width: float = 6.0
    total_height: float = 3.0
    ceiling_cavity_height: float = 0.5
    floor_cavity_height: float = 0.8
    work_plane_height: float = 0.8
    cu_x1: float = 2.0
    cu_y1: float = 0.59
    cu_x2: float = 3.0
    cu_y2: float = 0.52
    illuminance_lux: float = 500.0
    ceiling_reflectance: float = 0.7
    wall_reflectance: float = 0.5
    floor_reflectance: float = 0.2
    luminous_flux_per_lamp: float = 2900.0
    lamps_per_fixture: float = 1.0
    maintenance_factor: float = 0.64

    @property
    def cu_points(self) -> InterpolationPair:
        return InterpolationPair(self.cu_x1, self.cu_y1, self.cu_x2, self.cu_y2)


@dataclass(frozen=True)
class FixtureLayout:
    across_width_exact: float
    across_length_exact: float
    across_width: float | int
    across_length: float | int

    @property
    def total(self) -> float | int:
        return self.across_width * self.across_length


@dataclass(frozen=True)
class CavityResult:
    cavity_height: float
    room_cavity_ratio: float
    ceiling_cavity_ratio: float
    floor_cavity_ratio: float
    area: float
    utilization_coefficient: float
    required_flux_lm: float
    fixture_count_exact: float
    fixture_count: float | int
    layout: FixtureLayout
    display: dict[str, str]
    formulas: tuple[str, ...]


@dataclass(frozen=True)
class TotalFluxInput:
    length: float = 10.0
    width: float = 8.0
    total_height: float = 3.2
    work_plane_height: float = 0.8
    suspension_height: float = 0.3
    illuminance_lux: float = 300.0
    lighting_system: str = LIGHTING_SEMI_INDIRECT
    ceiling_reflectance: float = 0.8
    wall_reflectance: float = 0.5
    floor_reflectance: float = 0.2
    lamp_type: str = "LED panel 40W"
    flux_per_fixture: float = 4000.0
    cu_x1: float = 0.75
    cu_y1: float = 0.54
    cu_x2: float = 1.5
    cu_y2: float = 0.68
    maintenance_factor: float = 0.64

    @property
    def cu_points(self) -> InterpolationPair:
        return InterpolationPair(self.cu_x1, self.cu_y1, self.cu_x2, self.cu_y2)


@dataclass(frozen=True)
class TotalFluxResult:
    area: float
    calculation_height: float
    room_index: float
    utilization_coefficient: float
    total_flux_lm: float
    fixture_count_exact: float
    fixture_count: float | int
    layout: FixtureLayout
    display: dict[str, str]
    formulas: tuple[str, ...]


def _layout_count(x: float) -> float | int:
    rounded = round_half_up(x)
    if isinstance(rounded, float):
        return rounded
    return max(1, rounded)


def fixture_layout(width: float, length: float, count_exact: float) -> FixtureLayout:
    """Reparto ancho x largo a partir del número EXACTO de luminarias."""
    across_width = ieee_sqrt(ieee_div(width * count_exact, length))
    across_length = across_width * ieee_div(length, width)
    return FixtureLayout(
        across_width_exact=across_width,
        across_length_exact=across_length,
        across_width=_layout_count(across_width),
        across_length=_layout_count(across_length),
    )


def calculate_cavity_illumination(inp: CavityInput) -> CavityResult:
    length = float(inp.length)
    width = float(inp.width)

    h = inp.total_height - inp.work_plane_height - inp.ceiling_cavity_height
    rcr = ieee_div(5.0 * h * (length + width), length * width)
    ccr = rcr * ieee_div(inp.ceiling_cavity_height, h)
    fcr = rcr * ieee_div(inp.floor_cavity_height, h)
    area = length * width

    cu = inp.cu_points.at(rcr)
    required_flux = ieee_div(inp.illuminance_lux * area, cu * inp.maintenance_factor)
    n_exact = ieee_div(
        inp.illuminance_lux * area,
        inp.luminous_flux_per_lamp * inp.lamps_per_fixture * cu * inp.maintenance_factor,
    )
    layout = fixture_layout(width, length, n_exact)

    formulas = (
        f"H = Htotal - PT - HT = {inp.total_height} - {inp.work_plane_height} - "
        f"{inp.ceiling_cavity_height} = {to_fixed(h, 3)} m",
        f"RCL = 5 × H × (Largo + Ancho) / (Largo × Ancho) = 5 × {to_fixed(h, 3)} × "
        f"({length:g} + {width:g}) / ({length:g} × {width:g}) = {to_fixed(rcr, 3)}",
        f"RCT = RCL × HT / H = {to_fixed(rcr, 3)} × {inp.ceiling_cavity_height} / "
        f"{to_fixed(h, 3)} = {to_fixed(ccr, 3)}",
        f"RCP = RCL × HS / H = {to_fixed(rcr, 3)} × {inp.floor_cavity_height} / "
        f"{to_fixed(h, 3)} = {to_fixed(fcr, 3)}",
        f"S = Largo × Ancho = {length:g} × {width:g} = {to_fixed(area, 2)} m²",
        f"CU = Y1 + (X - X1) × (Y2 - Y1) / (X2 - X1) = {inp.cu_y1} + ({to_fixed(rcr, 3)} - "
        f"{inp.cu_x1}) × ({inp.cu_y2} - {inp.cu_y1}) / ({inp.cu_x2} - {inp.cu_x1}) = {to_fixed(cu, 4)}",
        f"N = E × S / (Φ × L × CU × FPT) = {inp.illuminance_lux} × {to_fixed(area, 2)} / "
        f"({inp.luminous_flux_per_lamp} × {inp.lamps_per_fixture} × {to_fixed(cu, 4)} × "
        f"{to_fixed(inp.maintenance_factor, 4)}) = {three_sig_figs(n_exact)}",
        f"N_ancho = √(Ancho × N / Largo) = √({width:g} × {three_sig_figs(n_exact)} / {length:g}) = "
        f"{three_sig_figs(layout.across_width_exact)}",
        f"N_largo = N_ancho × Largo / Ancho = {three_sig_figs(layout.across_width_exact)} × "
        f"{length:g} / {width:g} = {three_sig_figs(layout.across_length_exact)}",
    )
    display = {
        "cavity_height": to_fixed(h, 3),
        "room_cavity_ratio": to_fixed(rcr, 4),
        "ceiling_cavity_ratio": to_fixed(ccr, 4),
        "floor_cavity_ratio": to_fixed(fcr, 4),
        "area": to_fixed(area, 2),
        "utilization_coefficient": to_fixed(cu, 4),
        "required_flux_lm": to_fixed(required_flux, 2),
        "fixture_count_exact": three_sig_figs(n_exact),
        "across_width_exact": three_sig_figs(layout.across_width_exact),
        "across_length_exact": three_sig_figs(layout.across_length_exact),
    }
    return CavityResult(
        cavity_height=h,
        room_cavity_ratio=rcr,
        ceiling_cavity_ratio=ccr,
        floor_cavity_ratio=fcr,
        area=area,
        utilization_coefficient=cu,
        required_flux_lm=required_flux,
        fixture_count_exact=n_exact,
        fixture_count=ceil_or_nan(n_exact),
        layout=layout,
        display=display,
        formulas=formulas,
    )


def is_indirect(lighting_system: str) -> bool:
    if lighting_system not in LIGHTING_SYSTEMS:
        raise ValueError(f"Unknown lighting_system: {lighting_system}")
    return lighting_system in INDIRECT_SYSTEMS


def calculate_total_flux_illumination(inp: TotalFluxInput) -> TotalFluxResult:
    a = float(inp.width)
    b = float(inp.length)
    area = a * b
    indirect = is_indirect(inp.lighting_system)

    if indirect:
        h = inp.total_height - inp.work_plane_height
        k = ieee_div(3.0 * a * b, 2.0 * h * (a + b))
    else:
        h = inp.total_height - inp.work_plane_height - inp.suspension_height
        k = ieee_div(a * b, h * (a + b))

    cu = inp.cu_points.at(k)
    total_flux = ieee_div(inp.illuminance_lux * area, cu * inp.maintenance_factor)
    n_raw = ieee_div(total_flux, inp.flux_per_fixture)
    layout = fixture_layout(a, b, n_raw)
    n = ceil_or_nan(n_raw)

    if indirect:
        height_formula = (
            f"h = Htotal - PT = {inp.total_height} - {inp.work_plane_height} = {to_fixed(h, 3)} m"
        )
        k_formula = (
            f"K = 3ab / (2h(a + b)) = 3 × {a:g} × {b:g} / (2 × {to_fixed(h, 3)} × "
            f"({a:g} + {b:g})) = {to_fixed(k, 4)}"
        )
    else:
        height_formula = (
            f"h = Htotal - PT - Hs = {inp.total_height} - {inp.work_plane_height} - "
            f"{inp.suspension_height} = {to_fixed(h, 3)} m"
        )
        k_formula = (
            f"K = ab / (h(a + b)) = {a:g} × {b:g} / ({to_fixed(h, 3)} × ({a:g} + {b:g})) = "
            f"{to_fixed(k, 4)}"
        )
    formulas = (
        f"S = a × b = {a:g} × {b:g} = {to_fixed(area, 2)} m²",
        height_formula,
        k_formula,
        f"CU = CU1 + (K - K1) × (CU2 - CU1) / (K2 - K1) = {inp.cu_y1} + ({to_fixed(k, 4)} - "
        f"{inp.cu_x1}) × ({inp.cu_y2} - {inp.cu_y1}) / ({inp.cu_x2} - {inp.cu_x1}) = {to_fixed(cu, 4)}",
        f"Φtot = E × S / (CU × FPT) = {inp.illuminance_lux} × {to_fixed(area, 2)} / "
        f"({to_fixed(cu, 4)} × {inp.maintenance_factor}) = {to_fixed(total_flux, 4)} lm",
        f"Ntot = Φtot / Φl = {to_fixed(total_flux, 4)} / {inp.flux_per_fixture} = "
        f"{to_fixed(n_raw, 2)} ⇒ {n}",
        f"N_ancho = √(a × Ntot / b) = √({a:g} × {to_fixed(n_raw, 2)} / {b:g}) = "
        f"{to_fixed(layout.across_width_exact, 2)} ⇒ {layout.across_width}",
        f"N_largo = N_ancho × b / a = {to_fixed(layout.across_width_exact, 2)} × {b:g} / {a:g} = "
        f"{to_fixed(layout.across_length_exact, 2)} ⇒ {layout.across_length}",
    )
    display = {
        "area": to_fixed(area, 2),
        "calculation_height": to_fixed(h, 3),
        "room_index": to_fixed(k, 4),
        "utilization_coefficient": to_fixed(cu, 4),
        "total_flux_lm": to_fixed(total_flux, 2),
        "fixture_count_exact": three_sig_figs(n_raw),
        "across_width_exact": three_sig_figs(layout.across_width_exact),
        "across_length_exact": three_sig_figs(layout.across_length_exact),
    }
    return TotalFluxResult(
        area=area,
        calculation_height=h,
        room_index=k,
        utilization_coefficient=cu,
        total_flux_lm=total_flux,
        fixture_count_exact=n_raw,
        fixture_count=n,
        layout=layout,
        display=display,
        formulas=formulas,
    )
