from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import altair as alt
import pandas as pd
import streamlit as st

from src.activity_log import log
from src.aggregator import Aggregator, DailyAggregate, HistoryFetchError
from src.readings import NO_DATA
from src.ui.components.cards import chart_card

EMPTY_MESSAGE = "Nenhum dado encontrado ou todos os dias no período estão incompletos."
ERROR_MESSAGE = "Ocorreu um erro ao buscar os dados. Tente novamente."
PROMPT_MESSAGE = "Selecione um período e clique em 'Buscar' para ver os gráficos."

CHARTS = [
    ("🌡️ Temperatura (°C)", "temp", [("Máxima", "Max"), ("Média", "Media"), ("Mínima", "Min")]),
    ("💧 Umidade (%)", "umid", [("Máxima", "Max"), ("Média", "Media"), ("Mínima", "Min")]),
    ("💨 Vento (m/s)", "vel", [("Máxima", "Max"), ("Média", "Media")]),
]
SERIES_COLORS = {
    "Máxima": "#f87171",
    "Média": "#facc15",
    "Mínima": "#60a5fa",
}


def station_today(tz_name: str, now: datetime | None = None) -> date:
    """Calendar date at the station, whatever the server timezone."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(ZoneInfo(tz_name)).date()


def load_history(aggregator: Aggregator, start: date, end: date) -> tuple[list[DailyAggregate], str]:
    """Aggregates for the range plus the message to show next to them."""
    if start > end:
        return [], "A data inicial deve ser anterior à data final."
    try:
        aggregates = aggregator.get_range(start, end)
    except HistoryFetchError as exc:
        log(f"History {exc.start}..{exc.end} failed at {exc.day} ({exc.operation}): {exc}")
        return [], ERROR_MESSAGE
    if not aggregates:
        return [], EMPTY_MESSAGE
    return aggregates, ""


def history_frame(aggregates: list[DailyAggregate], prefix: str, series: list[tuple[str, str]]) -> pd.DataFrame:
    """Long-format rows (day, metric, value) for one chart; no-data days are left out."""
    rows = []
    for aggregate in aggregates:
        day = pd.Timestamp(aggregate.dia)
        for label, suffix in series:
            value = getattr(aggregate, f"{prefix}{suffix}")
            if value == NO_DATA:
                continue
            rows.append({"day": day, "metric": label, "value": value})
    return pd.DataFrame(rows, columns=["day", "metric", "value"])


def history_chart(df: pd.DataFrame, height: int = 320):
    labels = list(dict.fromkeys(df["metric"]))
    return (
        alt.Chart(df)
        .mark_line(interpolate="monotone", point=True)
        .encode(
            x=alt.X("day:T", title=None, axis=alt.Axis(format="%d/%m")),
            y=alt.Y("value:Q", title=None, scale=alt.Scale(zero=False)),
            color=alt.Color(
                "metric:N",
                scale=alt.Scale(domain=labels, range=[SERIES_COLORS.get(label, "#4ade80") for label in labels]),
                legend=alt.Legend(title=None, orient="top"),
            ),
            tooltip=[
                alt.Tooltip("day:T", title="Dia", format="%d/%m/%Y"),
                alt.Tooltip("metric:N", title="Série"),
                alt.Tooltip("value:Q", title="Valor", format=".1f"),
            ],
        )
        .properties(height=height)
    )


def render(ctx):
    st.markdown("<div class='section-title'>Histórico de Dados Diários</div>", unsafe_allow_html=True)

    today = station_today(ctx["config"].tz_name)
    cols = st.columns([2, 2, 1])
    with cols[0]:
        start = st.date_input("Data Inicial", value=today - timedelta(days=7), format="DD/MM/YYYY")
    with cols[1]:
        end = st.date_input("Data Final", value=today, format="DD/MM/YYYY")
    with cols[2]:
        st.write("")
        clicked = st.button("Buscar", use_container_width=True)

    if clicked:
        with st.spinner("Processando dados, isso pode levar um momento..."):
            aggregates, message = load_history(ctx["aggregator"], start, end)
        st.session_state.historico_result = (aggregates, message)

    aggregates, message = st.session_state.get("historico_result", ([], PROMPT_MESSAGE))
    if not aggregates:
        st.info(message)
        return

    for title, prefix, series in CHARTS:
        df = history_frame(aggregates, prefix, series)
        if df.empty:
            continue

        def body_renderer(df=df):
            st.altair_chart(history_chart(df), use_container_width=True)

        chart_card(title, body_renderer)

    table = pd.DataFrame([aggregate.to_record() for aggregate in aggregates])
    table = table.where(table != NO_DATA)
    with st.expander("Tabela", expanded=False):
        st.dataframe(table, use_container_width=True, hide_index=True)
