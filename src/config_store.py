import os
import sqlite3
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from pathlib import Path

SETTINGS_TABLE = "station_settings"

DB_PATH = os.getenv("ESTACAO_DB_PATH", "data/estacao.db")
STORE_BACKEND = os.getenv("ESTACAO_STORE", "sqlite").lower()
FIREBASE_DB_URL = os.getenv("FIREBASE_DB_URL", "")
FIREBASE_AUTH_TOKEN = os.getenv("FIREBASE_AUTH_TOKEN")
SHEET_URL = os.getenv("ESTACAO_SHEET_URL", "")
LOCAL_TZ = os.getenv("LOCAL_TZ", "America/Sao_Paulo")
STORE_TIMEOUT_SECONDS = float(os.getenv("STORE_TIMEOUT_SECONDS", "10"))
HISTORY_BUDGET_SECONDS = float(os.getenv("HISTORY_BUDGET_SECONDS", "120"))
AUTO_REFRESH_SECONDS = int(os.getenv("AUTO_REFRESH_SECONDS", "60"))

OVERRIDE_ENABLED_KEY = "override_location_enabled"
LAT_OVERRIDE_KEY = "station_lat_override"
LON_OVERRIDE_KEY = "station_lon_override"
LUX_PEAK_OVERRIDE_KEY = "lux_peak_override"


def _parse_thresholds(raw: str) -> tuple[float, ...]:
    values = tuple(float(part) for part in raw.split(",") if part.strip())
    if len(values) != 4:
        raise ValueError(f"RAIN_THRESHOLDS needs four values, got {raw!r}")
    return tuple(sorted(values, reverse=True))


@dataclass(frozen=True)
class StationConfig:
    """Fixed station constants used by the classifier and the pages."""

    name: str = "Marilândia"
    latitude: float = -19.4117
    longitude: float = -40.5436
    tz_name: str = "America/Sao_Paulo"
    lux_peak: float = 6000.0
    day_start_hour: float = 6.0
    day_end_hour: float = 18.0
    # lower bounds for: no rain, drizzle, light, moderate; below the last is heavy
    rain_thresholds: tuple[float, ...] = (4000.0, 3000.0, 2000.0, 1000.0)


def station_config_from_env() -> StationConfig:
    defaults = StationConfig()
    return StationConfig(
        name=os.getenv("STATION_NAME", defaults.name),
        latitude=float(os.getenv("STATION_LAT", str(defaults.latitude))),
        longitude=float(os.getenv("STATION_LON", str(defaults.longitude))),
        tz_name=LOCAL_TZ,
        lux_peak=float(os.getenv("LUX_PEAK", str(defaults.lux_peak))),
        day_start_hour=float(os.getenv("DAY_START_HOUR", str(defaults.day_start_hour))),
        day_end_hour=float(os.getenv("DAY_END_HOUR", str(defaults.day_end_hour))),
        rain_thresholds=_parse_thresholds(
            os.getenv("RAIN_THRESHOLDS", ",".join(str(v) for v in defaults.rain_thresholds))
        ),
    )


@dataclass(frozen=True)
class StationOverrides:
    """Operator-edited values stored next to the station data."""

    location_enabled: bool = False
    latitude: float | None = None
    longitude: float | None = None
    lux_peak: float | None = None


def connect(db_path: str | Path) -> sqlite3.Connection:
    """
    Open the station database with WAL and a busy timeout, creating its folder.

    The dashboard reads while the ingestion side may be writing.
    """
    db_file = Path(db_path)
    if not db_file.is_absolute():
        db_file = Path.cwd() / db_file
    db_file.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_file)
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    conn.execute("PRAGMA busy_timeout=5000;")
    return conn


def _ensure_settings(conn: sqlite3.Connection) -> None:
    conn.execute(
        f"""
        CREATE TABLE IF NOT EXISTS {SETTINGS_TABLE} (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """
    )


def read_setting(conn: sqlite3.Connection, key: str) -> str | None:
    _ensure_settings(conn)
    row = conn.execute(
        f"SELECT value FROM {SETTINGS_TABLE} WHERE key = ?",
        (key,),
    ).fetchone()
    return row[0] if row else None


def write_setting(conn: sqlite3.Connection, key: str, value, commit: bool = True) -> None:
    _ensure_settings(conn)
    if isinstance(value, bool):
        value = "1" if value else "0"
    conn.execute(
        f"""
        INSERT INTO {SETTINGS_TABLE} (key, value, updated_at)
        VALUES (?, ?, ?)
        ON CONFLICT(key) DO UPDATE SET
          value=excluded.value,
          updated_at=excluded.updated_at
        """,
        (key, str(value), datetime.now(timezone.utc).isoformat(timespec="seconds")),
    )
    if commit:
        conn.commit()


def read_flag(conn: sqlite3.Connection, key: str) -> bool:
    return read_setting(conn, key) == "1"


def read_number(conn: sqlite3.Connection, key: str) -> float | None:
    value = read_setting(conn, key)
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def load_overrides(conn: sqlite3.Connection) -> StationOverrides:
    return StationOverrides(
        location_enabled=read_flag(conn, OVERRIDE_ENABLED_KEY),
        latitude=read_number(conn, LAT_OVERRIDE_KEY),
        longitude=read_number(conn, LON_OVERRIDE_KEY),
        lux_peak=read_number(conn, LUX_PEAK_OVERRIDE_KEY),
    )


def save_overrides(conn: sqlite3.Connection, overrides: StationOverrides) -> None:
    """
    Store all override keys in one transaction.

    A lux peak of None or <= 0 removes that override. Latitude and longitude are
    kept even while the location override is off, so re-enabling restores them.
    """
    if overrides.latitude is not None and not -90 <= overrides.latitude <= 90:
        raise ValueError(f"latitude out of range: {overrides.latitude}")
    if overrides.longitude is not None and not -180 <= overrides.longitude <= 180:
        raise ValueError(f"longitude out of range: {overrides.longitude}")
    _ensure_settings(conn)
    with conn:
        write_setting(conn, OVERRIDE_ENABLED_KEY, overrides.location_enabled, commit=False)
        if overrides.latitude is not None:
            write_setting(conn, LAT_OVERRIDE_KEY, overrides.latitude, commit=False)
        if overrides.longitude is not None:
            write_setting(conn, LON_OVERRIDE_KEY, overrides.longitude, commit=False)
        if overrides.lux_peak is not None and overrides.lux_peak > 0:
            write_setting(conn, LUX_PEAK_OVERRIDE_KEY, overrides.lux_peak, commit=False)
        else:
            conn.execute(f"DELETE FROM {SETTINGS_TABLE} WHERE key = ?", (LUX_PEAK_OVERRIDE_KEY,))


def apply_overrides(config: StationConfig, overrides: StationOverrides) -> StationConfig:
    changes: dict[str, float] = {}
    if overrides.location_enabled and overrides.latitude is not None and overrides.longitude is not None:
        changes["latitude"] = overrides.latitude
        changes["longitude"] = overrides.longitude
    if overrides.lux_peak is not None and overrides.lux_peak > 0:
        changes["lux_peak"] = overrides.lux_peak
    return replace(config, **changes) if changes else config


def load_station_config(conn: sqlite3.Connection | None = None, base: StationConfig | None = None) -> StationConfig:
    """
    Environment defaults with the stored per-station overrides applied.

    Location overrides only apply while ``override_location_enabled`` is set;
    the lux peak override applies whenever present.
    """
    config = base or station_config_from_env()
    if conn is None:
        return config
    return apply_overrides(config, load_overrides(conn))
