from __future__ import annotations

import logging

import streamlit as st

from app.history import SqliteHistoryRepository, record_from_calculation
from app.i18n import t
from app.report_pdf import build_report_pdf
from app.settings import get_settings
from app.ui_components import formula_trace, result_actions
from elec_core.export_payload import build_payload

logger = logging.getLogger(__name__)


def history_repo(conn, state: dict) -> SqliteHistoryRepository:
    return SqliteHistoryRepository(conn, state["user_id"], limit=get_settings().history_limit)


def store_result(conn, state: dict, calculator: str, inp, res) -> None:
    """Keeps the last result in session (downloads survive reruns) and appends it to history."""
    state["last_result"][calculator] = (inp, res)
    try:
        history_repo(conn, state).save(record_from_calculation(calculator, inp, res))
    except Exception as exc:  # pragma: no cover - UI error path
        logger.exception("History save failed")
        st.warning(t("errors.history_save_failed", exc=exc))


def last_result(state: dict, calculator: str):
    return state["last_result"].get(calculator)


def render_common_outputs(calculator: str, inp, res, *, stem: str) -> None:
    formula_trace(t("calc.formulas"), res.formulas)
    payload = build_payload(calculator, inp, res)
    pdf_bytes = None
    try:
        settings = get_settings()
        pdf_bytes = build_report_pdf(
            calculator,
            inp,
            res,
            logo_path=settings.report_logo_path,
            font_path=settings.report_font_path,
        )
    except Exception as exc:  # pragma: no cover - UI error path
        logger.exception("Report generation failed")
        st.warning(t("errors.pdf_failed", exc=exc))
    result_actions(payload, pdf_bytes, t=t, stem=stem)
