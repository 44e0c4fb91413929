from __future__ import annotations

import json

import pytest

from elec_core.export_payload import (
    CALCULATORS,
    SCHEMA_VERSION,
    build_input,
    build_payload,
    run_calculator,
)


def test_calculator_codes() -> None:
    assert set(CALCULATORS) == {"CAVITY", "TOTAL_FLUX", "CONDUCTOR"}


def test_cavity_payload_shape() -> None:
    inp, res = run_calculator("CAVITY", {})
    payload = build_payload("CAVITY", inp, res)

    assert payload["schema_version"] == SCHEMA_VERSION
    assert payload["calculator"] == "CAVITY"
    assert payload["generated_at"].endswith("+00:00")
    assert payload["input"]["length"] == 12.0
    assert payload["result"]["area"] == pytest.approx(72.0)
    assert payload["result"]["fixture_count"] == 34
    assert payload["result"]["layout"]["across_width"] == 4
    assert payload["result"]["display"]["area"] == "72.00"
    # formulas are carried once, at the top level
    assert "formulas" not in payload["result"]
    assert len(payload["formulas"]) == len(res.formulas)


def test_conductor_payload_includes_labels() -> None:
    inp, res = run_calculator("CONDUCTOR", {"power_w": 3500, "voltage_v": 127})
    payload = build_payload("CONDUCTOR", inp, res)

    assert payload["result"]["gauge"] == "12"
    assert payload["result"]["conduit"]["size_in"] == "1/2"
    assert payload["result"]["breaker"] == {"poles": 1, "ampere": 30, "status": "LOWER_WITHIN_TOLERANCE"}
    assert payload["result"]["labels"] == {
        "gauge": "12",
        "conduit": "1/2 (13 mm)",
        "breaker": "1 X 30A",
    }


def test_non_finite_values_become_null() -> None:
    inp, res = run_calculator("CONDUCTOR", {"power_w": 3500, "voltage_v": 0})
    payload = build_payload("CONDUCTOR", inp, res)

    assert payload["result"]["current_a"] is None
    assert payload["result"]["gauge"] is None
    assert payload["result"]["labels"]["gauge"] == "No encontrado"
    # strict JSON: no NaN / Infinity tokens
    json.dumps(payload, allow_nan=False)


def test_total_flux_payload_is_strict_json() -> None:
    inp, res = run_calculator("TOTAL_FLUX", {"lighting_system": "DIRECT", "illuminance_lux": 500})
    payload = build_payload("TOTAL_FLUX", inp, res)
    text = json.dumps(payload, allow_nan=False)
    assert json.loads(text)["input"]["lighting_system"] == "DIRECT"


def test_build_input_rejects_unknown_fields() -> None:
    with pytest.raises(ValueError, match="Unknown input fields for CAVITY: colour"):
        build_input("CAVITY", {"colour": "red"})


def test_unknown_calculator_rejected() -> None:
    with pytest.raises(ValueError, match="Unknown calculator"):
        run_calculator("RTM", {})
    inp, res = run_calculator("CAVITY", {})
    with pytest.raises(ValueError, match="Unknown calculator"):
        build_payload("RTM", inp, res)


def test_conductor_requires_power_and_voltage() -> None:
    with pytest.raises(TypeError):
        build_input("CONDUCTOR", {})
