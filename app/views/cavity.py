from __future__ import annotations

from dataclasses import asdict

import streamlit as st

from app.i18n import t
from app.ui_components import metrics_row
from app.validation import validate_numbers
from app.views.common import last_result, render_common_outputs, store_result
from elec_core.illumination import CavityInput, calculate_cavity_illumination

CALCULATOR = "CAVITY"


def _form() -> dict | None:
    d = CavityInput()
    with st.form("cavity_form"):
        st.subheader(t("cavity.room"))
        c = st.columns(3)
        length = c[0].number_input(t("field.length"), value=d.length, step=0.5, format="%.2f")
        width = c[1].number_input(t("field.width"), value=d.width, step=0.5, format="%.2f")
        total_height = c[2].number_input(t("field.total_height"), value=d.total_height, step=0.1, format="%.2f")
        c = st.columns(3)
        ceiling_cavity_height = c[0].number_input(
            t("cavity.ceiling_cavity_height"), value=d.ceiling_cavity_height, step=0.1, format="%.2f"
        )
        floor_cavity_height = c[1].number_input(
            t("cavity.floor_cavity_height"), value=d.floor_cavity_height, step=0.1, format="%.2f"
        )
        work_plane_height = c[2].number_input(
            t("field.work_plane_height"), value=d.work_plane_height, step=0.1, format="%.2f"
        )

        st.subheader(t("cavity.reflectances"))
        c = st.columns(3)
        ceiling_reflectance = c[0].number_input(t("field.ceiling_reflectance"), value=d.ceiling_reflectance, step=0.05)
        wall_reflectance = c[1].number_input(t("field.wall_reflectance"), value=d.wall_reflectance, step=0.05)
        floor_reflectance = c[2].number_input(t("field.floor_reflectance"), value=d.floor_reflectance, step=0.05)

        st.subheader(t("cavity.luminaire"))
        c = st.columns(4)
        illuminance_lux = c[0].number_input(t("field.illuminance"), value=d.illuminance_lux, step=50.0)
        luminous_flux_per_lamp = c[1].number_input(
            t("cavity.flux_per_lamp"), value=d.luminous_flux_per_lamp, step=100.0
        )
        lamps_per_fixture = c[2].number_input(t("cavity.lamps_per_fixture"), value=d.lamps_per_fixture, step=1.0)
        maintenance_factor = c[3].number_input(
            t("field.maintenance_factor"), value=d.maintenance_factor, step=0.01, format="%.2f"
        )

        st.subheader(t("field.cu_table"))
        c = st.columns(4)
        cu_x1 = c[0].number_input("X1 (RCL)", value=d.cu_x1, step=0.5)
        cu_y1 = c[1].number_input("Y1 (CU)", value=d.cu_y1, step=0.01, format="%.2f")
        cu_x2 = c[2].number_input("X2 (RCL)", value=d.cu_x2, step=0.5)
        cu_y2 = c[3].number_input("Y2 (CU)", value=d.cu_y2, step=0.01, format="%.2f")

        submitted = st.form_submit_button(t("calc.calculate"))

    if not submitted:
        return None
    return {
        "length": length,
        "width": width,
        "total_height": total_height,
        "ceiling_cavity_height": ceiling_cavity_height,
        "floor_cavity_height": floor_cavity_height,
        "work_plane_height": work_plane_height,
        "cu_x1": cu_x1,
        "cu_y1": cu_y1,
        "cu_x2": cu_x2,
        "cu_y2": cu_y2,
        "illuminance_lux": illuminance_lux,
        "ceiling_reflectance": ceiling_reflectance,
        "wall_reflectance": wall_reflectance,
        "floor_reflectance": floor_reflectance,
        "luminous_flux_per_lamp": luminous_flux_per_lamp,
        "lamps_per_fixture": lamps_per_fixture,
        "maintenance_factor": maintenance_factor,
    }


def render(conn, state: dict) -> None:
    st.header(t("cavity.header"))
    st.caption(t("cavity.caption"))

    data = _form()
    if data is not None:
        errors = validate_numbers(data, list(asdict(CavityInput())), translator=t)
        if errors:
            for err in errors:
                st.error(err)
        else:
            inp = CavityInput(**data)
            store_result(conn, state, CALCULATOR, inp, calculate_cavity_illumination(inp))

    stored = last_result(state, CALCULATOR)
    if stored is None:
        return
    inp, res = stored
    d = res.display

    st.subheader(t("calc.results"))
    metrics_row(
        [
            ("H", f"{d['cavity_height']} m"),
            ("RCL", d["room_cavity_ratio"]),
            ("RCT", d["ceiling_cavity_ratio"]),
            ("RCP", d["floor_cavity_ratio"]),
            (t("field.area"), f"{d['area']} m²"),
            ("CU", d["utilization_coefficient"]),
            (t("cavity.required_flux"), f"{d['required_flux_lm']} lm"),
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
    render_common_outputs(CALCULATOR, inp, res, stem="cavidad_zonal")
