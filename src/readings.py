import math
from dataclasses import dataclass
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pandas as pd

# Written by the station when a sensor could not be read.
NO_DATA = -404

# Stored record field -> RawReading attribute.
RECORD_FIELDS = {
    "Temperatura": "temperature",
    "Umidade": "humidity",
    "Velocidade": "wind_speed",
    "Luminosidade": "luminosity",
    "Chuva": "rain_raw",
}

SHEET_FIELDS = {
    "temperatura": "temperature",
    "umidade": "humidity",
    "velocidade": "wind_speed",
    "luminosidade": "luminosity",
    "chuva": "rain_raw",
    "pressao": "pressure",
}


@dataclass(frozen=True)
class RawReading:
    timestamp: datetime | None
    temperature: float | None = None
    humidity: float | None = None
    wind_speed: float | None = None
    luminosity: float | None = None
    rain_raw: float | None = None
    pressure: float | None = None
    wind_direction: str | None = None
    rssi: str | None = None
    lost_packets: str | None = None
    raw: dict | None = None


def clean_value(value) -> float | None:
    """Numeric value of a sensor field, or None for junk and the sentinel."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number == NO_DATA:
        return None
    return number


def valid_values(values) -> pd.Series:
    series = pd.Series([clean_value(value) for value in values], dtype="float64")
    return series.dropna().reset_index(drop=True)


def parse_timestamp(value) -> datetime | None:
    """
    Parse ISO strings or epoch seconds/milliseconds into an aware datetime.

    Naive values are taken as UTC. Out-of-range or non-finite epochs give None.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            seconds = float(value)
            if seconds > 1e11:
                seconds /= 1000.0
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (ValueError, OverflowError, OSError):
            return None
    else:
        text = str(value).strip()
        if text.isdigit():
            return parse_timestamp(int(text))
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def to_local(ts: datetime, tz_name: str) -> datetime:
    return ts.astimezone(ZoneInfo(tz_name))


def local_hour(ts: datetime, tz_name: str) -> float:
    local = to_local(ts, tz_name)
    return local.hour + local.minute / 60.0 + local.second / 3600.0


def _optional_text(value) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def reading_from_record(record: dict) -> RawReading:
    """Map a record as the station writes it (``Temperatura``, ``Chuva``...)."""
    fields = {attr: clean_value(record.get(key)) for key, attr in RECORD_FIELDS.items()}
    return RawReading(
        timestamp=parse_timestamp(record.get("timestamp")),
        rssi=_optional_text(record.get("RSSI")),
        lost_packets=_optional_text(record.get("PacotesPerdidos")),
        raw=dict(record),
        **fields,
    )


def reading_from_sheet(payload: dict) -> RawReading:
    """Map the spreadsheet endpoint payload (lower-case field names)."""
    fields = {attr: clean_value(payload.get(key)) for key, attr in SHEET_FIELDS.items()}
    return RawReading(
        timestamp=parse_timestamp(payload.get("data")),
        wind_direction=_optional_text(payload.get("direcao")),
        raw=dict(payload),
        **fields,
    )
