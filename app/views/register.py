from __future__ import annotations

import streamlit as st

from app import auth
from app.i18n import t
from app.validation import validate_credentials


def render(conn, state: dict) -> None:
    st.header(t("register.header"))

    with st.form("register_form"):
        email = st.text_input(t("auth.email"))
        password = st.text_input(t("auth.password"), type="password")
        confirm = st.text_input(t("register.confirm"), type="password")
        submitted = st.form_submit_button(t("register.submit"))

    if submitted:
        check = validate_credentials(email, password, confirm=confirm, translator=t)
        if check.has_errors:
            for err in check.errors:
                st.error(err)
        else:
            try:
                auth.register_user(conn, email, password)
            except auth.UserExists:
                st.error(t("register.user_exists"))
            except Exception as exc:  # pragma: no cover - UI error path
                st.error(t("errors.unexpected", exc=exc))
            else:
                st.success(t("register.created"))
                state["auth_page"] = "LOGIN"

    if st.button(t("auth.back_to_login")):
        state["auth_page"] = "LOGIN"
        st.rerun()
