from datetime import datetime, timezone

import streamlit as st

from src.activity_log import log
from src.classifier import classify
from src.readings import to_local
from src.store import StoreError
from src.ui.components.cards import status_card
from src.ui.formatting import fmt_datetime, fmt_value


def render(ctx):
    config = ctx["config"]
    render_time = datetime.now(timezone.utc)
    st.markdown(
        f"<div class='section-title'>Página de Debug - Estação {config.name}</div>",
        unsafe_allow_html=True,
    )

    try:
        reading = ctx["store"].latest_reading()
    except StoreError as exc:
        log(f"Debug read failed ({exc.operation}): {exc}")
        st.error(f"Erro ao ler a leitura atual: {exc}")
        return
    if reading is None:
        st.error('Erro: Nenhum dado encontrado no nó "leitura_atual".')
        return

    metrics = classify(reading, config)
    raw = reading.raw or {}

    if reading.timestamp is not None:
        skew = (render_time - reading.timestamp).total_seconds()
        record_time = fmt_datetime(to_local(reading.timestamp, config.tz_name))
    else:
        skew = None
        record_time = "--"

    status_card(
        "Sincronia e Timestamps",
        [
            ("Hora do Render (Servidor)", fmt_datetime(to_local(render_time, config.tz_name))),
            ("Hora do Registro (Database)", record_time),
            ("Diferença (Servidor vs DB)", fmt_value(skew, "{:.2f}", " segundos")),
        ],
    )
    status_card(
        "Dados Brutos",
        [(key, str(raw.get(key, "--"))) for key in (
            "timestamp",
            "Temperatura",
            "Umidade",
            "Velocidade",
            "Luminosidade",
            "Chuva",
            "RSSI",
            "PacotesPerdidos",
        )],
    )
    status_card(
        "Dados Processados",
        [
            ("Temperatura", fmt_value(reading.temperature, suffix=" °C")),
            ("Umidade", fmt_value(reading.humidity, suffix=" %")),
            ("Velocidade", fmt_value(reading.wind_speed, suffix=" m/s")),
            ("Luminosidade", fmt_value(reading.luminosity, "{:.0f}", " lux")),
            ("Chuva (valor p/ lógica)", fmt_value(reading.rain_raw, "{:.0f}")),
        ],
    )
    status_card(
        "Lógica Calculada",
        [
            ("Condição do Tempo", metrics.sky_condition.value if metrics.sky_condition else "--"),
            ("Hora local usada no cálculo", fmt_value(metrics.local_hour, "{:.2f}", " h")),
            ("Lux esperado (p/ hora local)", fmt_value(metrics.expected_lux, "{:.2f}", " lux")),
            ("Sensação térmica", f"{fmt_value(metrics.felt_temperature, suffix=' °C')} ({metrics.felt_factor.value})"),
        ],
    )
