from __future__ import annotations

import streamlit as st

from app.i18n import t
from app.ui_components import metrics_row, note_box, status_chip
from app.validation import validate_numbers
from app.views.common import last_result, render_common_outputs, store_result
from elec_core import tables
from elec_core.conductors import (
    LOAD_GENERAL,
    LOAD_INDUCTIVE,
    LOAD_TYPES,
    METHOD_CURRENT,
    METHOD_VOLTAGE_DROP,
    METHODS,
    ConductorInput,
    calculate_conductor,
    result_lines,
)
from elec_core.numeric import to_fixed

CALCULATOR = "CONDUCTOR"


def _inputs() -> dict:
    d = ConductorInput(power_w=3500.0, voltage_v=127.0)
    method = st.radio(
        t("conductors.method"),
        list(METHODS),
        format_func=lambda code: t(f"method.{code.lower()}"),
        horizontal=True,
    )
    c = st.columns(2)
    system_type = c[0].selectbox(
        t("conductors.system_type"),
        list(tables.SYSTEM_TYPES),
        format_func=lambda code: t(f"system.{code.lower()}"),
    )
    load_type = LOAD_GENERAL
    if system_type == tables.SYSTEM_3PH3W:
        load_type = c[1].selectbox(
            t("conductors.load_type"),
            list(LOAD_TYPES),
            format_func=lambda code: t(f"load.{code.lower()}"),
        )

    c = st.columns(4)
    data = {
        "method": method,
        "system_type": system_type,
        "load_type": load_type,
        "power_w": c[0].number_input(t("conductors.power"), value=d.power_w, step=100.0),
        "voltage_v": c[1].number_input(t("conductors.voltage"), value=d.voltage_v, step=1.0),
        "power_factor": c[2].number_input(
            t("conductors.power_factor"), value=d.power_factor, step=0.01, format="%.2f"
        ),
        "demand_factor": c[3].number_input(
            t("conductors.demand_factor"), value=d.demand_factor, step=0.01, format="%.2f"
        ),
    }
    if load_type == LOAD_INDUCTIVE:
        data["efficiency"] = st.number_input(
            t("conductors.efficiency"), value=d.efficiency, step=0.01, format="%.2f"
        )
    if method == METHOD_VOLTAGE_DROP:
        c = st.columns(2)
        data["length_m"] = c[0].number_input(t("conductors.length"), value=30.0, step=1.0)
        data["voltage_drop_pct"] = c[1].number_input(
            t("conductors.voltage_drop_pct"), value=d.voltage_drop_pct, step=0.5
        )

    c = st.columns(3)
    data["insulation"] = c[0].selectbox(
        t("conductors.insulation"),
        list(tables.INSULATION_TYPES),
        index=list(tables.INSULATION_TYPES).index(d.insulation),
        format_func=lambda code: code.replace("_", " "),
    )
    data["environment"] = c[1].selectbox(
        t("conductors.environment"),
        list(tables.ENVIRONMENTS),
        format_func=lambda code: t(f"environment.{code.lower()}"),
    )
    data["conductor_kind"] = c[2].selectbox(
        t("conductors.kind"),
        list(tables.CONDUCTOR_KINDS),
        index=list(tables.CONDUCTOR_KINDS).index(d.conductor_kind),
        format_func=lambda code: t(f"kind.{code.lower()}"),
    )
    c = st.columns(2)
    data["conductor_count"] = int(
        c[0].number_input(t("conductors.count"), value=d.conductor_count, min_value=1, step=1)
    )
    data["conduit_type"] = c[1].selectbox(
        t("conductors.conduit_type"),
        list(tables.CONDUIT_TYPES),
        format_func=lambda code: t(f"conduit.{code.lower()}"),
    )
    return data


def render(conn, state: dict) -> None:
    st.header(t("conductors.header"))

    data = _inputs()
    if st.button(t("calc.calculate"), type="primary"):
        numeric = [
            k
            for k in ("power_w", "voltage_v", "power_factor", "demand_factor", "efficiency", "length_m", "voltage_drop_pct")
            if k in data
        ]
        errors = validate_numbers(data, numeric, translator=t)
        if errors:
            for err in errors:
                st.error(err)
        else:
            inp = ConductorInput(**data)
            store_result(conn, state, CALCULATOR, inp, calculate_conductor(inp))

    stored = last_result(state, CALCULATOR)
    if stored is None:
        return
    inp, res = stored

    st.subheader(t("calc.results"))
    items = [
        ("I", f"{to_fixed(res.current_a, 2)} A"),
        ("Ic", f"{to_fixed(res.corrected_current_a, 2)} A"),
    ]
    if res.method == METHOD_CURRENT:
        items.append(("Ip", f"{to_fixed(res.protection_current_a, 2)} A"))
    else:
        items.append(("S", f"{to_fixed(res.section_mm2, 2)} mm²"))
    items.append(("AWG", res.gauge_label))
    metrics_row(items)

    area = (
        f"{to_fixed(res.bundle_area_mm2, 2)} mm²"
        if res.bundle_area_mm2 is not None
        else tables.NOT_FOUND_LABEL
    )
    metrics_row(
        [
            (t("conductors.bundle_area"), area),
            (t("conductors.conduit"), res.conduit_label),
            (t("conductors.breaker"), res.breaker_label),
        ],
        per_row=3,
    )
    status_chip(
        t("conductors.breaker"),
        res.breaker.status if res.breaker is not None else "NOT_FOUND",
        t=t,
    )
    note_box(res.note)

    with st.expander(t("conductors.copy_text")):
        st.code("\n".join(result_lines(inp, res)), language=None)

    render_common_outputs(CALCULATOR, inp, res, stem="conductores")
