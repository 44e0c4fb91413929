from __future__ import annotations

import logging
import sys
from pathlib import Path
import streamlit as st

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app import auth, db  # noqa: E402
from app.i18n import DEFAULT_LANG, LANGUAGES, t  # noqa: E402
from app.settings import get_settings  # noqa: E402
from app.views import (  # noqa: E402
    cavity,
    conductors,
    forgot_password,
    history,
    login,
    overview,
    register,
    reset_password,
    total_flux,
)

logger = logging.getLogger("app")

AUTH_PAGES = {
    "LOGIN": login,
    "REGISTER": register,
    "FORGOT": forgot_password,
    "RESET": reset_password,
}

PAGES = {
    "OVERVIEW": overview,
    "CAVITY": cavity,
    "TOTAL_FLUX": total_flux,
    "CONDUCTORS": conductors,
    "HISTORY": history,
}


def _configure_logging(level: str) -> None:
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


def _init_state() -> None:
    state = st.session_state
    state.setdefault("lang", DEFAULT_LANG)
    state.setdefault("auth_token", None)
    state.setdefault("auth_page", "LOGIN")
    state.setdefault("page", "OVERVIEW")
    state.setdefault("last_result", {})


def clear_session(state) -> None:
    """Drops everything tied to the signed-in user."""
    state["auth_token"] = None
    state["last_result"] = {}
    state.pop("user_id", None)
    state.pop("user_email", None)


def _reset_token_from_url() -> str | None:
    token = st.query_params.get("reset_token")
    return str(token) if token else None


def _current_session(state, settings) -> auth.Session | None:
    token = state.get("auth_token")
    if not token:
        return None
    try:
        return auth.session_from_token(token, settings)
    except auth.TokenRejected:
        clear_session(state)
        st.warning(t("auth.session_expired"))
        return None


def main() -> None:
    settings = get_settings()
    _configure_logging(settings.log_level)
    st.set_page_config(page_title=t("app.title"), layout="wide")
    _init_state()
    state = st.session_state

    with st.sidebar:
        st.title(t("app.title"))
        st.selectbox(t("sidebar.language"), list(LANGUAGES), key="lang")

    conn = None
    try:
        conn = db.connect(settings.db_path)
        db.apply_migrations(conn)
    except Exception as exc:  # pragma: no cover - UI error path
        st.error(t("errors.db_connect_failed", exc=exc))
        if conn is not None:
            conn.close()
        return

    try:
        reset_token = _reset_token_from_url()
        if reset_token:
            state["reset_token"] = reset_token
            state["auth_page"] = "RESET"

        session = _current_session(state, settings)
        if session is None:
            AUTH_PAGES.get(state["auth_page"], login).render(conn, state)
            return

        state["user_id"] = session.user_id
        state["user_email"] = session.email
        with st.sidebar:
            st.caption(t("sidebar.signed_in_as", email=session.email))
            if st.button(t("sidebar.logout")):
                logger.info("Logout: %s", session.email)
                clear_session(state)
                state["auth_page"] = "LOGIN"
                st.rerun()
            page = st.radio(
                t("sidebar.navigation"),
                list(PAGES),
                format_func=lambda key: t(f"nav.{key.lower()}"),
                key="page",
            )

        PAGES[page].render(conn, state)
    finally:
        if conn is not None:
            conn.close()


if __name__ == "__main__":
    main()
