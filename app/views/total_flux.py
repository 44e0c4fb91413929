from __future__ import annotations

from dataclasses import asdict

import streamlit as st

from app.i18n import t
from app.ui_components import metrics_row
from app.validation import validate_numbers
from app.views.common import last_result, render_common_outputs, store_result
from elec_core.illumination import (
    LIGHTING_SYSTEMS,
    TotalFluxInput,
    calculate_total_flux_illumination,
    is_indirect,
)

CALCULATOR = "TOTAL_FLUX"


def _form() -> dict | None:
    d = TotalFluxInput()
    with st.form("total_flux_form"):
        st.subheader(t("cavity.room"))
        c = st.columns(3)
        length = c[0].number_input(t("total_flux.length_b"), value=d.length, step=0.5, format="%.2f")
        width = c[1].number_input(t("total_flux.width_a"), value=d.width, step=0.5, format="%.2f")
        total_height = c[2].number_input(t("field.total_height"), value=d.total_height, step=0.1, format="%.2f")
        c = st.columns(3)
        work_plane_height = c[0].number_input(
            t("field.work_plane_height"), value=d.work_plane_height, step=0.1, format="%.2f"
        )
        suspension_height = c[1].number_input(
            t("total_flux.suspension_height"), value=d.suspension_height, step=0.1, format="%.2f"
        )
        lighting_system = c[2].selectbox(
            t("total_flux.lighting_system"),
            list(LIGHTING_SYSTEMS),
            index=list(LIGHTING_SYSTEMS).index(d.lighting_system),
            format_func=lambda code: t(f"lighting.{code.lower()}"),
        )

        c = st.columns(3)
        ceiling_reflectance = c[0].number_input(t("field.ceiling_reflectance"), value=d.ceiling_reflectance, step=0.05)
        wall_reflectance = c[1].number_input(t("field.wall_reflectance"), value=d.wall_reflectance, step=0.05)
        floor_reflectance = c[2].number_input(t("field.floor_reflectance"), value=d.floor_reflectance, step=0.05)

        c = st.columns(4)
        illuminance_lux = c[0].number_input(t("field.illuminance"), value=d.illuminance_lux, step=50.0)
        lamp_type = c[1].text_input(t("total_flux.lamp_type"), value=d.lamp_type)
        flux_per_fixture = c[2].number_input(t("total_flux.flux_per_fixture"), value=d.flux_per_fixture, step=100.0)
        maintenance_factor = c[3].number_input(
            t("field.maintenance_factor"), value=d.maintenance_factor, step=0.01, format="%.2f"
        )

        st.subheader(t("field.cu_table"))
        c = st.columns(4)
        cu_x1 = c[0].number_input("K1", value=d.cu_x1, step=0.25)
        cu_y1 = c[1].number_input("CU1", value=d.cu_y1, step=0.01, format="%.2f")
        cu_x2 = c[2].number_input("K2", value=d.cu_x2, step=0.25)
        cu_y2 = c[3].number_input("CU2", value=d.cu_y2, step=0.01, format="%.2f")

        submitted = st.form_submit_button(t("calc.calculate"))

    if not submitted:
        return None
    return {
        "length": length,
        "width": width,
        "total_height": total_height,
        "work_plane_height": work_plane_height,
        "suspension_height": suspension_height,
        "illuminance_lux": illuminance_lux,
        "lighting_system": lighting_system,
        "ceiling_reflectance": ceiling_reflectance,
        "wall_reflectance": wall_reflectance,
        "floor_reflectance": floor_reflectance,
        "lamp_type": lamp_type,
        "flux_per_fixture": flux_per_fixture,
        "cu_x1": cu_x1,
        "cu_y1": cu_y1,
        "cu_x2": cu_x2,
        "cu_y2": cu_y2,
        "maintenance_factor": maintenance_factor,
    }


def render(conn, state: dict) -> None:
    st.header(t("total_flux.header"))
    st.caption(t("total_flux.caption"))

    data = _form()
    if data is not None:
        numeric = [k for k in asdict(TotalFluxInput()) if k not in ("lighting_system", "lamp_type")]
        errors = validate_numbers(data, numeric, translator=t)
        if errors:
            for err in errors:
                st.error(err)
        else:
            inp = TotalFluxInput(**data)
            store_result(conn, state, CALCULATOR, inp, calculate_total_flux_illumination(inp))

    stored = last_result(state, CALCULATOR)
    if stored is None:
        return
    inp, res = stored
    d = res.display

    st.subheader(t("calc.results"))
    if is_indirect(inp.lighting_system):
        st.caption(t("total_flux.indirect_note"))
    metrics_row(
        [
            (t("field.area"), f"{d['area']} m²"),
            ("h", f"{d['calculation_height']} m"),
            ("K", d["room_index"]),
            ("CU", d["utilization_coefficient"]),
            ("Φtot", f"{d['total_flux_lm']} lm"),
            (t("calc.fixtures"), res.fixture_count),
        ]
    )
    st.info(
        t(
            "calc.layout",
            width=res.layout.across_width,
            length=res.layout.across_length,
            width_exact=d["across_width_exact"],
            length_exact=d["across_length_exact"],
            exact=d["fixture_count_exact"],
        )
    )
    render_common_outputs(CALCULATOR, inp, res, stem="flujo_total")
