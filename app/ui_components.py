from __future__ import annotations

import json
from typing import Any, Callable, Sequence

import streamlit as st

from elec_core import tables

_STATUS_KEYS = {
    tables.BREAKER_SUFFICIENT: "status.sufficient",
    tables.BREAKER_LOWER_WITHIN_TOLERANCE: "status.lower_within_tolerance",
    tables.BREAKER_MAX_AVAILABLE: "status.max_available",
    "NOT_FOUND": "status.not_found",
}


def _status_style(status: str) -> tuple[str, str]:
    """
    Returns (bg_color, fg_color) for a status pill.
    Colors are chosen to be readable in both Streamlit light/dark themes.
    """
    s = (status or "").upper().strip()
    if s == tables.BREAKER_SUFFICIENT:
        return "#1f7a3a", "white"
    if s == tables.BREAKER_LOWER_WITHIN_TOLERANCE:
        return "#b45309", "white"
    if s == tables.BREAKER_MAX_AVAILABLE:
        return "#b7791f", "white"
    if s == "NOT_FOUND":
        return "#b91c1c", "white"
    return "#374151", "white"


def status_chip(label: str, status: str, *, t: Callable[..., str] | None = None) -> None:
    """Compact pill: '<label>: <status>'. When t is provided, status is localized."""
    bg, fg = _status_style(status)
    status_label = t(_STATUS_KEYS.get(status, "status.not_found")) if t else status
    st.markdown(
        f"""
        <span style="
          display:inline-block;
          padding:0.15rem 0.55rem;
          border-radius:999px;
          background:{bg};
          color:{fg};
          font-weight:600;
          font-size:0.85rem;
          line-height:1.4;
          white-space:nowrap;
        ">{label}: {status_label}</span>
        """,
        unsafe_allow_html=True,
    )


def metrics_row(items: Sequence[tuple[str, Any]], *, per_row: int = 4) -> None:
    for start in range(0, len(items), per_row):
        chunk = items[start : start + per_row]
        cols = st.columns(per_row)
        for col, (label, value) in zip(cols, chunk):
            col.metric(label, value)


def formula_trace(title: str, formulas: Sequence[str]) -> None:
    with st.expander(title, expanded=False):
        for step in formulas:
            st.code(step, language=None)


def note_box(text: str) -> None:
    st.warning(text)


def payload_download(label: str, payload: dict, file_name: str) -> None:
    st.download_button(
        label,
        data=(json.dumps(payload, ensure_ascii=False, indent=2) + "\n").encode("utf-8"),
        file_name=file_name,
        mime="application/json",
    )


def result_actions(
    payload: dict,
    pdf_bytes: bytes | None,
    *,
    t: Callable[..., str],
    stem: str,
) -> None:
    cols = st.columns(2)
    with cols[0]:
        payload_download(t("calc.download_json"), payload, f"{stem}.json")
    with cols[1]:
        if pdf_bytes is not None:
            st.download_button(
                t("calc.download_pdf"),
                data=pdf_bytes,
                file_name=f"{stem}.pdf",
                mime="application/pdf",
            )
