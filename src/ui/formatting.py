from datetime import datetime


def fmt_value(value, fmt_str="{:.1f}", suffix="", fallback="--"):
    if value is None:
        return fallback
    try:
        return f"{fmt_str.format(value)}{suffix}"
    except (TypeError, ValueError):
        return fallback


def fmt_time(dt_value: datetime | None) -> str:
    if dt_value is None:
        return "--"
    return dt_value.strftime("%H:%M")


def fmt_datetime(dt_value: datetime | None) -> str:
    if dt_value is None:
        return "--"
    return dt_value.strftime("%d/%m/%Y, %H:%M:%S")
