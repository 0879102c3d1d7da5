import sqlite3

import streamlit as st

from src.activity_log import log
from src.config_store import StationOverrides

PAGES = ["agora", "historico", "debug"]
PAGE_LABELS = {
    "agora": "Agora",
    "historico": "Histórico",
    "debug": "Debug",
}


def render_left_rail(page: str, station_name: str):
    with st.sidebar:
        st.markdown(f"<div class='rail-title'>{station_name} Meteorologia</div>", unsafe_allow_html=True)
        selection = st.radio(
            "Navegação",
            PAGES,
            index=PAGES.index(page) if page in PAGES else 0,
            format_func=lambda opt: PAGE_LABELS[opt],
            label_visibility="collapsed",
        )
        st.session_state.page = selection
    return selection


def render_station_settings(config, overrides: StationOverrides, save) -> None:
    """
    Sidebar form for the stored location and lux peak overrides.

    ``save`` receives the new StationOverrides and persists them.
    """
    with st.sidebar.expander("Ajustes da estação"):
        if st.session_state.pop("station_settings_saved", False):
            st.success("Ajustes salvos.")

        override_location = st.checkbox(
            "Usar localização personalizada",
            value=overrides.location_enabled,
            help="Usada para nascer e pôr do sol.",
        )
        lat_value = overrides.latitude if overrides.latitude is not None else config.latitude
        lon_value = overrides.longitude if overrides.longitude is not None else config.longitude
        station_lat = st.number_input(
            "Latitude",
            min_value=-90.0,
            max_value=90.0,
            value=float(lat_value),
            format="%.4f",
            disabled=not override_location,
        )
        station_lon = st.number_input(
            "Longitude",
            min_value=-180.0,
            max_value=180.0,
            value=float(lon_value),
            format="%.4f",
            disabled=not override_location,
        )
        lux_peak = st.number_input(
            "Pico de luminosidade (lux)",
            min_value=0.0,
            value=float(overrides.lux_peak or 0.0),
            step=500.0,
            help="0 mantém o valor padrão da estação.",
        )

        if st.button("Salvar ajustes"):
            try:
                save(
                    StationOverrides(
                        location_enabled=override_location,
                        latitude=station_lat,
                        longitude=station_lon,
                        lux_peak=lux_peak or None,
                    )
                )
            except (sqlite3.Error, OSError, ValueError) as exc:
                log(f"Saving station settings failed: {exc}")
                st.error("Não foi possível salvar os ajustes.")
                return
            st.session_state.station_settings_saved = True
            st.rerun()


def render_header_strip(content_html: str):
    st.markdown(f"<div class='header-strip'>{content_html}</div>", unsafe_allow_html=True)
