import asyncio
import logging
from typing import Optional

import pandas as pd
import streamlit as st

from destajo.export import EMPTY_EXPORT_MESSAGE, EXPORT_HEADER, EmptyExportError
from destajo.filters import FilterState
from destajo.session import ViewSession
from destajo.sources import SourceConfigError, SourceUnavailableError, source_download_url

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

FILTER_KEYS = ("filter_conductor", "filter_recibidor", "filter_fecha")


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #111827;}
        .row-count {color: #6b7280;font-size: 0.9rem;margin-top: 6px;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


def get_session() -> Optional[ViewSession]:
    session = st.session_state.get("view_session")
    if session is not None:
        return session
    session = ViewSession()
    try:
        asyncio.run(session.reload())
    except SourceUnavailableError as exc:
        st.error(f"No se pudieron cargar los datos: {exc}")
        return None
    st.session_state["view_session"] = session
    return session


def clear_filters():
    for key in FILTER_KEYS:
        st.session_state[key] = None


# ---------- UI setup ----------
st.set_page_config(page_title="Destajo · Entradas por conductor", layout="wide")
inject_base_styles()
st.markdown("<div class='app-top-bar'><div class='page-title'>Destajo · Entradas</div></div>", unsafe_allow_html=True)

session = get_session()
if session is None:
    st.stop()

with st.sidebar:
    st.markdown("### Filtros")
    driver = st.selectbox("Conductor", options=session.driver_options(), index=None, placeholder="Todos", key=FILTER_KEYS[0])
    receiver = st.selectbox("Recibidor", options=session.receiver_options(), index=None, placeholder="Todos", key=FILTER_KEYS[1])
    fecha = st.date_input("Fecha", value=None, format="DD/MM/YYYY", key=FILTER_KEYS[2])
    st.button("Limpiar filtros", on_click=clear_filters)

    st.markdown("---")
    st.markdown("### Descargas")
    try:
        st.link_button("Origen (Google Sheets)", source_download_url())
    except SourceConfigError as exc:
        st.caption(str(exc))

state = FilterState(
    driver=str(driver) if driver is not None else None,
    receiver=str(receiver) if receiver is not None else None,
    date=fecha.isoformat() if fecha else None,
)
asyncio.run(session.set_filters_now(state))

records = session.surface.to_records()
table = pd.DataFrame(records) if records else pd.DataFrame(columns=EXPORT_HEADER)
st.dataframe(table, use_container_width=True, hide_index=True)
st.markdown(f"<div class='row-count'>{session.surface.summary}</div>", unsafe_allow_html=True)

try:
    result = session.export()
except EmptyExportError:
    st.warning(EMPTY_EXPORT_MESSAGE)
else:
    st.download_button(
        "Vista actual (.xlsx)",
        data=result.content,
        file_name=result.filename,
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )
