from __future__ import annotations

import streamlit as st

from app import auth
from app.i18n import t
from app.mailer import MailError
from app.settings import get_settings
from app.validation import validate_email


def render(conn, state: dict) -> None:
    st.header(t("forgot.header"))
    st.caption(t("forgot.hint"))

    with st.form("forgot_form"):
        email = st.text_input(t("auth.email"))
        submitted = st.form_submit_button(t("forgot.submit"))

    if submitted:
        errors = validate_email(email, translator=t)
        if errors:
            for err in errors:
                st.error(err)
        else:
            try:
                auth.request_password_reset(conn, email, get_settings())
            except auth.UserNotFound:
                st.error(t("login.user_not_found"))
            except MailError:
                st.error(t("forgot.mail_failed"))
            except Exception as exc:  # pragma: no cover - UI error path
                st.error(t("errors.unexpected", exc=exc))
            else:
                st.success(t("forgot.sent"))

    if st.button(t("auth.back_to_login")):
        state["auth_page"] = "LOGIN"
        st.rerun()
