import sqlite3
from contextlib import closing
from datetime import datetime
from zoneinfo import ZoneInfo

import streamlit as st
from streamlit_autorefresh import st_autorefresh

from src.activity_log import log
from src.aggregator import Aggregator
from src.config_store import (
    AUTO_REFRESH_SECONDS,
    DB_PATH,
    FIREBASE_AUTH_TOKEN,
    FIREBASE_DB_URL,
    HISTORY_BUDGET_SECONDS,
    SHEET_URL,
    STORE_BACKEND,
    STORE_TIMEOUT_SECONDS,
    StationOverrides,
    load_overrides,
    load_station_config,
    save_overrides,
)
from src.config_store import connect as config_connect
from src.pages import agora as page_agora
from src.pages import debug as page_debug
from src.pages import historico as page_historico
from src.store import StoreError, build_store
from src.ui.apply_styles import apply_styles
from src.ui.shell import PAGES, render_header_strip, render_left_rail, render_station_settings


@st.cache_resource
def get_store():
    return build_store(
        STORE_BACKEND,
        DB_PATH,
        firebase_url=FIREBASE_DB_URL,
        auth_token=FIREBASE_AUTH_TOKEN,
        timeout=STORE_TIMEOUT_SECONDS,
    )


@st.cache_data(ttl=300)
def get_station_config():
    try:
        with closing(config_connect(DB_PATH)) as conn:
            return load_station_config(conn)
    except (sqlite3.Error, OSError) as exc:
        log(f"Station overrides unavailable, using defaults: {exc}")
        return load_station_config()


@st.cache_data(ttl=300)
def get_station_overrides():
    try:
        with closing(config_connect(DB_PATH)) as conn:
            return load_overrides(conn)
    except (sqlite3.Error, OSError) as exc:
        log(f"Station overrides unavailable: {exc}")
        return StationOverrides()


def save_station_settings(overrides: StationOverrides) -> None:
    with closing(config_connect(DB_PATH)) as conn:
        save_overrides(conn, overrides)
    log(f"Station settings saved: {overrides}")
    get_station_config.clear()
    get_station_overrides.clear()


st.set_page_config(
    page_title="Estação Meteorológica",
    layout="wide",
)

apply_styles()

# Navigation/page state
if "page" not in st.session_state:
    st.session_state.page = "agora"
query_page = st.query_params.get("page")
if query_page in PAGES:
    st.session_state.page = query_page

config = get_station_config()
page = render_left_rail(st.session_state.page, config.name)
render_station_settings(config, get_station_overrides(), save_station_settings)

render_header_strip(
    f"<span>{config.name} Meteorologia</span>"
    f"<span>{datetime.now(ZoneInfo(config.tz_name)).strftime('%d/%m/%Y %H:%M')}</span>"
)

try:
    store = get_store()
except (StoreError, ValueError) as exc:
    log(f"Store unavailable ({STORE_BACKEND}): {exc}")
    st.error(f"Não foi possível abrir a base de dados: {exc}")
    st.stop()

page_ctx = {
    "config": config,
    "store": store,
    "aggregator": Aggregator(store, budget_seconds=HISTORY_BUDGET_SECONDS),
    "sheet_url": SHEET_URL,
    "timeout": STORE_TIMEOUT_SECONDS,
}

if page == "agora":
    if AUTO_REFRESH_SECONDS > 0:
        st_autorefresh(interval=AUTO_REFRESH_SECONDS * 1000, key="agora_autorefresh")
    page_agora.render(page_ctx)
elif page == "historico":
    page_historico.render(page_ctx)
else:
    page_debug.render(page_ctx)
