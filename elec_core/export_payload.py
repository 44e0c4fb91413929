from __future__ import annotations

import math
from dataclasses import asdict, fields, is_dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Mapping

from .conductors import ConductorInput, ConductorResult, calculate_conductor
from .illumination import (
    CavityInput,
    TotalFluxInput,
    calculate_cavity_illumination,
    calculate_total_flux_illumination,
)

SCHEMA_VERSION = "1.0"

CALC_CAVITY = "CAVITY"
CALC_TOTAL_FLUX = "TOTAL_FLUX"
CALC_CONDUCTOR = "CONDUCTOR"

CALCULATORS: dict[str, tuple[type, Callable[[Any], Any]]] = {
    CALC_CAVITY: (CavityInput, calculate_cavity_illumination),
    CALC_TOTAL_FLUX: (TotalFluxInput, calculate_total_flux_illumination),
    CALC_CONDUCTOR: (ConductorInput, calculate_conductor),
}


def _iso_utc_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def _json_safe(value: object) -> object:
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, dict):
        return {str(k): _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    return value


def _result_dict(result: object) -> dict:
    data = asdict(result)
    data.pop("formulas", None)
    if isinstance(result, ConductorResult):
        data["labels"] = {
            "gauge": result.gauge_label,
            "conduit": result.conduit_label,
            "breaker": result.breaker_label,
        }
    return data


def build_input(calculator: str, data: Mapping[str, object]):
    """Input dataclass from a plain mapping; unknown keys are rejected."""
    try:
        input_cls, _ = CALCULATORS[calculator]
    except KeyError as exc:
        raise ValueError(f"Unknown calculator: {calculator}") from exc
    known = {f.name for f in fields(input_cls)}
    extra = sorted(set(data) - known)
    if extra:
        raise ValueError(f"Unknown input fields for {calculator}: {', '.join(extra)}")
    return input_cls(**dict(data))


def run_calculator(calculator: str, data: Mapping[str, object]):
    inp = build_input(calculator, data)
    _, func = CALCULATORS[calculator]
    return inp, func(inp)


def build_payload(calculator: str, inp: object, result: object) -> dict:
    if calculator not in CALCULATORS:
        raise ValueError(f"Unknown calculator: {calculator}")
    if not is_dataclass(inp) or not is_dataclass(result):
        raise ValueError("inp and result must be calculator dataclasses")

    payload = {
        "schema_version": SCHEMA_VERSION,
        "generated_at": _iso_utc_now(),
        "calculator": calculator,
        "input": asdict(inp),
        "result": _result_dict(result),
        "formulas": list(getattr(result, "formulas", ())),
    }
    return _json_safe(payload)
