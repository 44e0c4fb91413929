from __future__ import annotations

import math
from dataclasses import dataclass

from . import tables
from .numeric import ieee_div, to_fixed

METHOD_CURRENT = "CURRENT"
METHOD_VOLTAGE_DROP = "VOLTAGE_DROP"
METHODS = (METHOD_CURRENT, METHOD_VOLTAGE_DROP)

LOAD_GENERAL = "GENERAL"
LOAD_RESISTIVE = "RESISTIVE"
LOAD_INDUCTIVE = "INDUCTIVE"
LOAD_TYPES = (LOAD_GENERAL, LOAD_RESISTIVE, LOAD_INDUCTIVE)

PROTECTION_FACTOR = 1.25

# S = k * L * Ic / (En * e%)
_DROP_CONSTANT = {
    tables.SYSTEM_1PH2W: 4.0,
    tables.SYSTEM_2PH3W: 2.0,
    tables.SYSTEM_3PH3W: 2.0,
}

NOTE_CURRENT = (
    "Nota: Este cálculo determina la corriente y protección necesaria. Para dimensionamiento "
    "completo del conductor, considera también la caída de tensión."
)
NOTE_VOLTAGE_DROP = (
    "Nota: Este cálculo considera la caída de tensión máxima permitida. Verifica también la "
    "capacidad de corriente del conductor seleccionado."
)


@dataclass(frozen=True)
class ConductorInput:
    power_w: float
    voltage_v: float
    power_factor: float = 0.9
    demand_factor: float = 0.85
    system_type: str = tables.SYSTEM_1PH2W
    method: str = METHOD_CURRENT
    load_type: str = LOAD_GENERAL
    efficiency: float = 1.0
    length_m: float = 0.0
    voltage_drop_pct: float = 3.0
    insulation: str = tables.INSULATION_THW
    environment: str = tables.ENV_INDOOR
    conductor_kind: str = tables.KIND_CABLE
    conductor_count: int = 1
    conduit_type: str = tables.CONDUIT_THIN_40


@dataclass(frozen=True)
class ConductorResult:
    method: str
    current_a: float
    corrected_current_a: float
    protection_current_a: float
    section_mm2: float | None
    gauge: str | None
    bundle_area_mm2: float | None
    conduit: tables.ConduitRow | None
    breaker: tables.BreakerSelection | None
    note: str
    formulas: tuple[str, ...]

    @property
    def gauge_label(self) -> str:
        return self.gauge if self.gauge is not None else tables.NOT_FOUND_LABEL

    @property
    def conduit_label(self) -> str:
        return self.conduit.label if self.conduit is not None else tables.NOT_FOUND_LABEL

    @property
    def breaker_label(self) -> str:
        return self.breaker.label if self.breaker is not None else tables.NOT_FOUND_LABEL


def _fmt(value: float) -> str:
    # input values echo the way they were typed (3500, 0.9, 127)
    return f"{value:g}"


def circuit_current(inp: ConductorInput) -> tuple[float, str]:
    """Corriente nominal por tipo de sistema (y tipo de carga en trifásico)."""
    p = float(inp.power_w)
    v = float(inp.voltage_v)
    cos = float(inp.power_factor)
    if inp.system_type == tables.SYSTEM_1PH2W:
        i = ieee_div(p, v * cos)
        return i, f"I = W / (En × cosθ) = {_fmt(p)} / ({_fmt(v)} × {_fmt(cos)}) = {to_fixed(i, 2)} A"
    if inp.system_type == tables.SYSTEM_2PH3W:
        i = ieee_div(p, 2.0 * v * cos)
        return i, f"I = W / (2 × En × cosθ) = {_fmt(p)} / (2 × {_fmt(v)} × {_fmt(cos)}) = {to_fixed(i, 2)} A"
    if inp.system_type == tables.SYSTEM_3PH3W:
        if inp.load_type == LOAD_RESISTIVE:
            i = ieee_div(p, math.sqrt(3.0) * v)
            return i, f"I = W / (√3 × En) = {_fmt(p)} / (√3 × {_fmt(v)}) = {to_fixed(i, 2)} A"
        if inp.load_type == LOAD_INDUCTIVE:
            eta = float(inp.efficiency)
            i = ieee_div(p, math.sqrt(3.0) * cos * v * eta)
            return i, (
                f"I = W / (√3 × cosθ × En × η) = {_fmt(p)} / (√3 × {_fmt(cos)} × {_fmt(v)} × "
                f"{_fmt(eta)}) = {to_fixed(i, 2)} A"
            )
        if inp.load_type == LOAD_GENERAL:
            i = ieee_div(p, math.sqrt(3.0) * v * cos)
            return i, f"I = W / (√3 × En × cosθ) = {_fmt(p)} / (√3 × {_fmt(v)} × {_fmt(cos)}) = {to_fixed(i, 2)} A"
        raise ValueError(f"Unknown load_type: {inp.load_type}")
    raise ValueError(f"Unknown system_type: {inp.system_type}")


def conductor_section(inp: ConductorInput, corrected_current_a: float) -> tuple[float, str]:
    k = _DROP_CONSTANT[inp.system_type]
    length = float(inp.length_m)
    v = float(inp.voltage_v)
    pct = float(inp.voltage_drop_pct)
    s = ieee_div(k * length * corrected_current_a, v * (pct / 100.0))
    formula = (
        f"S = {k:g} × L × Ic / (En × e%) = {k:g} × {_fmt(length)} × {to_fixed(corrected_current_a, 2)} / "
        f"({_fmt(v)} × {_fmt(pct)}%) = {to_fixed(s, 2)} mm²"
    )
    return s, formula


def calculate_conductor(inp: ConductorInput) -> ConductorResult:
    """
    Dimensionamiento de conductor, tubería e interruptor.

    Orden fijo:
    I -> Ic = I * FD -> Ip = Ic * 1.25 -> (S si es por caída de tensión)
    -> calibre -> área del grupo -> tubería -> interruptor.
    Las búsquedas sin resultado quedan como None en el resultado.
    """
    if inp.method not in METHODS:
        raise ValueError(f"Unknown method: {inp.method}")

    i, current_formula = circuit_current(inp)
    fd = float(inp.demand_factor)
    ic = i * fd
    ip = ic * PROTECTION_FACTOR
    formulas = [
        current_formula,
        f"Ic = I × FD = {to_fixed(i, 2)} × {_fmt(fd)} = {to_fixed(ic, 2)} A",
    ]

    section = None
    if inp.method == METHOD_CURRENT:
        formulas.append(f"Ip = Ic × 1.25 = {to_fixed(ic, 2)} × 1.25 = {to_fixed(ip, 2)} A")
        gauge = tables.gauge_for_current(ic, inp.insulation, inp.environment)
        note = NOTE_CURRENT
    else:
        section, section_formula = conductor_section(inp, ic)
        formulas.append(section_formula)
        gauge = tables.gauge_for_section(section, inp.conductor_kind)
        note = NOTE_VOLTAGE_DROP

    area = tables.bundle_area(gauge, int(inp.conductor_count), inp.insulation, inp.conductor_kind)
    conduit = tables.conduit_for_area(area, inp.conduit_type)
    poles = tables.poles_for_system(inp.system_type)
    breaker = tables.breaker_for_current(ip, poles) if poles is not None else None

    return ConductorResult(
        method=inp.method,
        current_a=i,
        corrected_current_a=ic,
        protection_current_a=ip,
        section_mm2=section,
        gauge=gauge,
        bundle_area_mm2=area,
        conduit=conduit,
        breaker=breaker,
        note=note,
        formulas=tuple(formulas),
    )


def result_lines(inp: ConductorInput, res: ConductorResult) -> list[str]:
    """Plain-text summary (clipboard / history export)."""
    lines = [
        f"Corriente (I): {to_fixed(res.current_a, 2)} A",
        f"Corriente corregida (Ic): {to_fixed(res.corrected_current_a, 2)} A",
    ]
    if res.method == METHOD_CURRENT:
        lines.append(f"Corriente de protección (Ip): {to_fixed(res.protection_current_a, 2)} A")
    else:
        lines.append(f"Longitud (L): {_fmt(inp.length_m)} m")
        lines.append(f"Caída de tensión permitida (e%): {_fmt(inp.voltage_drop_pct)}%")
        lines.append(f"Sección del conductor (S): {to_fixed(res.section_mm2, 2)} mm²")
    area = (
        f"{to_fixed(res.bundle_area_mm2, 2)} mm²"
        if res.bundle_area_mm2 is not None
        else tables.NOT_FOUND_LABEL
    )
    lines.extend(
        [
            f"Calibre AWG recomendado: {res.gauge_label}",
            f"Área total conductores: {area}",
            f"Tubería recomendada: {res.conduit_label}",
            f"Interruptor termomagnético: {res.breaker_label}",
        ]
    )
    return lines
