from __future__ import annotations

import streamlit as st

from app import auth
from app.i18n import t
from app.validation import validate_password


def _leave(state: dict) -> None:
    state.pop("reset_token", None)
    state["auth_page"] = "LOGIN"
    st.query_params.clear()


def render(conn, state: dict) -> None:
    st.header(t("reset.header"))

    token = state.get("reset_token")
    if not token:
        st.error(t("reset.invalid_token"))
        if st.button(t("auth.back_to_login")):
            _leave(state)
            st.rerun()
        return

    with st.form("reset_form"):
        password = st.text_input(t("reset.new_password"), type="password")
        confirm = st.text_input(t("register.confirm"), type="password")
        submitted = st.form_submit_button(t("reset.submit"))

    if submitted:
        errors = validate_password(password, confirm=confirm, translator=t)
        if errors:
            for err in errors:
                st.error(err)
        else:
            try:
                auth.reset_password(conn, token, password)
            except auth.InvalidResetToken:
                st.error(t("reset.invalid_token"))
            except Exception as exc:  # pragma: no cover - UI error path
                st.error(t("errors.unexpected", exc=exc))
            else:
                st.success(t("reset.done"))
                _leave(state)

    if st.button(t("auth.back_to_login")):
        _leave(state)
        st.rerun()
