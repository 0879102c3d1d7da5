import html

import streamlit as st


def metric_card(icon: str, label: str, value: str, subvalue: str | None = None):
    sub_html = f"<div class=\"metric-sub\">{html.escape(subvalue)}</div>" if subvalue else ""
    st.markdown(
        f"""
        <div class="card metric-card">
          <div class="metric-icon">{icon}</div>
          <div class="metric-body">
            <div class="metric-label">{html.escape(label)}</div>
            <div class="metric-value">{html.escape(value)}</div>
            {sub_html}
          </div>
        </div>
        """,
        unsafe_allow_html=True,
    )


def condition_card(title: str, condition: str, detail: str | None = None):
    detail_html = f"<div class=\"condition-detail\">{html.escape(detail)}</div>" if detail else ""
    st.markdown(
        f"""
        <div class="card condition-card">
          <div class="section-title">{html.escape(title)}</div>
          <div class="condition-value">{html.escape(condition)}</div>
          {detail_html}
        </div>
        """,
        unsafe_allow_html=True,
    )


def chart_card(title: str | None, body_renderer):
    if title and title.strip():
        st.markdown(f"<div class=\"chart-label\">{html.escape(title)}</div>", unsafe_allow_html=True)
    st.markdown(
        """
        <div class="card chart-card">
          <div class="body">
        """,
        unsafe_allow_html=True,
    )
    body_renderer()
    st.markdown("</div></div>", unsafe_allow_html=True)


def status_card(title: str, items: list[tuple[str, str]]):
    lines = "".join(
        f"<div class=\"status-line\"><span>{html.escape(label)}</span><span>{html.escape(value)}</span></div>"
        for label, value in items
    )
    st.markdown(
        f"""
        <div class="card status-card">
          <div class="section-title">{html.escape(title)}</div>
          {lines}
        </div>
        """,
        unsafe_allow_html=True,
    )
