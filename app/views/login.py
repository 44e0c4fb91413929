from __future__ import annotations

import streamlit as st

from app import auth
from app.i18n import t
from app.settings import get_settings
from app.validation import validate_credentials


def render(conn, state: dict) -> None:
    st.header(t("login.header"))

    with st.form("login_form"):
        email = st.text_input(t("auth.email"))
        password = st.text_input(t("auth.password"), type="password")
        submitted = st.form_submit_button(t("login.submit"))

    if submitted:
        check = validate_credentials(email, password, translator=t)
        if check.has_errors:
            for err in check.errors:
                st.error(err)
        else:
            try:
                session = auth.login(conn, email, password, get_settings())
            except auth.UserNotFound:
                st.error(t("login.user_not_found"))
            except auth.InvalidCredentials:
                st.error(t("login.bad_password"))
            except Exception as exc:  # pragma: no cover - UI error path
                st.error(t("errors.unexpected", exc=exc))
            else:
                state["auth_token"] = session.token
                st.rerun()

    cols = st.columns(2)
    if cols[0].button(t("login.go_register")):
        state["auth_page"] = "REGISTER"
        st.rerun()
    if cols[1].button(t("login.go_forgot")):
        state["auth_page"] = "FORGOT"
        st.rerun()
