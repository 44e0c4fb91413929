from __future__ import annotations

import streamlit as st

from app import db
from app.i18n import t


def render(conn, state: dict) -> None:
    st.header(t("overview.header"))
    st.write(t("overview.intro"))
    counts = db.project_counts(conn, state.get("user_id"))
    cols = st.columns(3)
    cols[0].metric(t("nav.cavity"), counts["CAVITY"])
    cols[1].metric(t("nav.total_flux"), counts["TOTAL_FLUX"])
    cols[2].metric(t("nav.conductors"), counts["CONDUCTOR"])
    st.caption(t("overview.history_hint"))
