from __future__ import annotations

import streamlit as st

from app.history import export_history_json, history_to_dataframe, import_history_json
from app.i18n import t
from app.views.common import history_repo
from elec_core.export_payload import CALCULATORS


def _record_label(rec) -> str:
    return f"{rec.created_at} · {t(f'calculator.{rec.calculator.lower()}')} · {rec.id[:8]}"


def render(conn, state: dict) -> None:
    st.header(t("history.header"))
    repo = history_repo(conn, state)

    calc_filter = st.selectbox(
        t("history.filter"),
        ["ALL", *CALCULATORS],
        format_func=lambda code: t("history.all") if code == "ALL" else t(f"calculator.{code.lower()}"),
    )
    records = repo.list(None if calc_filter == "ALL" else calc_filter)

    if not records:
        st.info(t("history.empty"))
    else:
        df = history_to_dataframe(records)
        st.dataframe(df, use_container_width=True, hide_index=True)

        cols = st.columns(2)
        cols[0].download_button(
            t("history.export_csv"),
            data=df.to_csv(index=False).encode("utf-8"),
            file_name="historial.csv",
            mime="text/csv",
        )
        cols[1].download_button(
            t("history.export_json"),
            data=export_history_json(records).encode("utf-8"),
            file_name="historial.json",
            mime="application/json",
        )

        st.subheader(t("history.detail"))
        by_id = {rec.id: rec for rec in records}
        selected = st.selectbox(
            t("history.select"),
            list(by_id),
            format_func=lambda rid: _record_label(by_id[rid]),
        )
        rec = by_id[selected]
        st.json(rec.input, expanded=False)
        for step in rec.result.get("formulas", []):
            st.code(step, language=None)
        if st.button(t("history.delete")):
            repo.delete(rec.id)
            st.rerun()

        if st.checkbox(t("history.clear_confirm")):
            if st.button(t("history.clear")):
                n = repo.clear(None if calc_filter == "ALL" else calc_filter)
                st.success(t("history.cleared", n=n))
                st.rerun()

    st.subheader(t("history.import"))
    uploaded = st.file_uploader(t("history.import_file"), type=["json"])
    if uploaded is not None and st.button(t("history.import_btn")):
        try:
            imported = import_history_json(uploaded.getvalue().decode("utf-8"))
        except ValueError as exc:
            st.error(t("history.import_invalid", exc=exc))
        else:
            for rec in imported:
                repo.save(rec)
            st.success(t("history.imported", n=len(imported)))
