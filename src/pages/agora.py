from datetime import datetime

import streamlit as st

from src.activity_log import log
from src.classifier import classify
from src.readings import to_local
from src.store import StoreError, fetch_sheet_reading
from src.sun import fetch_sun_times
from src.ui.components.cards import condition_card, metric_card
from src.ui.formatting import fmt_datetime, fmt_time, fmt_value


@st.cache_data(ttl=3600)
def load_sun_times(lat, lon, date_str, tz_name):
    return fetch_sun_times(lat, lon, datetime.fromisoformat(date_str).date(), tz_name)


def load_latest(ctx):
    """Latest reading from the spreadsheet endpoint when configured, else the store."""
    sheet_url = ctx.get("sheet_url")
    if sheet_url:
        return fetch_sheet_reading(sheet_url, timeout=ctx.get("timeout", 10))
    return ctx["store"].latest_reading()


def render(ctx):
    config = ctx["config"]
    st.markdown(
        f"<div class='section-title'>Como está o tempo agora em {config.name}?</div>",
        unsafe_allow_html=True,
    )

    try:
        reading = load_latest(ctx)
    except StoreError as exc:
        log(f"Latest reading failed ({exc.operation}): {exc}")
        st.error("Ocorreu um erro ao buscar os dados. Tente novamente.")
        return
    if reading is None or reading.timestamp is None:
        st.info("Nenhuma leitura encontrada.")
        return

    local_ts = to_local(reading.timestamp, config.tz_name)
    sun = load_sun_times(config.latitude, config.longitude, local_ts.date().isoformat(), config.tz_name)
    metrics = classify(reading, config, sun)

    condition = metrics.sky_condition.value if metrics.sky_condition else "Indisponível"
    condition_card(
        "Tempo agora",
        condition,
        f"Medição em {fmt_datetime(local_ts)}",
    )

    cols = st.columns(3)
    with cols[0]:
        metric_card("🌡️", "Temperatura", fmt_value(reading.temperature, suffix=" °C"))
        metric_card(
            "🤒",
            "Sensação térmica",
            fmt_value(metrics.felt_temperature, suffix=" °C"),
            subvalue=f"{metrics.comfort or '--'} · fator: {metrics.felt_factor.value}",
        )
    with cols[1]:
        metric_card("💧", "Umidade", fmt_value(reading.humidity, "{:.0f}", " %"))
        metric_card("💦", "Ponto de orvalho", fmt_value(metrics.dew_point, suffix=" °C"))
    with cols[2]:
        metric_card(
            "💨",
            "Vento",
            fmt_value(reading.wind_speed, suffix=" m/s"),
            subvalue=reading.wind_direction,
        )
        metric_card("🌙", "Luminosidade", fmt_value(reading.luminosity, "{:.0f}", " lux"))

    cols = st.columns(3)
    with cols[0]:
        metric_card("☀️", "Índice UV estimado", fmt_value(metrics.uv_index))
    with cols[1]:
        metric_card(
            "🌅",
            "Nascer / pôr do sol",
            f"{fmt_time(metrics.sunrise)} / {fmt_time(metrics.sunset)}",
        )
    with cols[2]:
        if reading.pressure is not None:
            metric_card("📈", "Pressão", fmt_value(reading.pressure, suffix=" hPa"))
