import json
import sqlite3
from contextlib import closing
from pathlib import Path

import requests

from src.config_store import connect
from src.readings import RawReading, reading_from_record, reading_from_sheet

CURRENT_PATH = "leitura_atual"
LOGS_PATH = "logs"
SUMMARY_PATH = "historicoDiario"


class StoreError(RuntimeError):
    """A read or write against the reading store failed. Safe to retry."""

    retryable = True

    def __init__(self, message: str, operation: str, key: str | None = None):
        super().__init__(message)
        self.operation = operation
        self.key = key


class ReadingStore:
    """
    What the dashboard needs from wherever the station's logs live.

    Day keys are station-local ``YYYY-MM-DD`` strings. Summaries travel as
    plain dicts in the cached-row format (``dia``, ``tempMax``...).
    """

    def latest_reading(self) -> RawReading | None:
        raise NotImplementedError

    def available_days(self) -> set[str]:
        raise NotImplementedError

    def readings_for_day(self, day: str) -> list[dict]:
        raise NotImplementedError

    def load_daily_summary(self, day: str) -> dict | None:
        raise NotImplementedError

    def save_daily_summary(self, day: str, record: dict) -> None:
        raise NotImplementedError


class FirebaseStore(ReadingStore):
    """Firebase Realtime Database over its REST API."""

    def __init__(self, base_url: str, auth_token: str | None = None, timeout: float = 10, session=None):
        if not base_url:
            raise ValueError("FIREBASE_DB_URL is not set")
        self.base_url = base_url.rstrip("/")
        self.auth_token = auth_token
        self.timeout = timeout
        self.session = session or requests.Session()

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path}.json"

    def _params(self, **extra) -> dict:
        params = dict(extra)
        if self.auth_token:
            params["auth"] = self.auth_token
        return params

    def _get(self, path: str, operation: str, key: str | None = None, **params):
        try:
            resp = self.session.get(self._url(path), params=self._params(**params), timeout=self.timeout)
            resp.raise_for_status()
            return resp.json()
        except (requests.RequestException, ValueError) as exc:
            raise StoreError(f"GET {path} failed: {exc}", operation, key) from exc

    def latest_reading(self) -> RawReading | None:
        payload = self._get(CURRENT_PATH, "latest_reading")
        if not isinstance(payload, dict):
            return None
        return reading_from_record(payload)

    def available_days(self) -> set[str]:
        payload = self._get(LOGS_PATH, "available_days", shallow="true")
        if not isinstance(payload, dict):
            return set()
        return set(payload.keys())

    def readings_for_day(self, day: str) -> list[dict]:
        payload = self._get(f"{LOGS_PATH}/{day}", "readings_for_day", day)
        if isinstance(payload, dict):
            return [value for value in payload.values() if isinstance(value, dict)]
        if isinstance(payload, list):
            # sequential integer keys come back as a JSON array
            return [value for value in payload if isinstance(value, dict)]
        return []

    def load_daily_summary(self, day: str) -> dict | None:
        payload = self._get(f"{SUMMARY_PATH}/{day}", "load_daily_summary", day)
        return payload if isinstance(payload, dict) else None

    def save_daily_summary(self, day: str, record: dict) -> None:
        path = f"{SUMMARY_PATH}/{day}"
        try:
            resp = self.session.put(
                self._url(path),
                params=self._params(),
                data=json.dumps(record),
                timeout=self.timeout,
            )
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise StoreError(f"PUT {path} failed: {exc}", "save_daily_summary", day) from exc


SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS readings (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  day TEXT NOT NULL,
  payload_json TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_readings_day
  ON readings(day);

CREATE TABLE IF NOT EXISTS daily_summary (
  day TEXT PRIMARY KEY,
  payload_json TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS current_reading (
  id INTEGER PRIMARY KEY CHECK (id = 1),
  payload_json TEXT NOT NULL
);
"""


class SqliteStore(ReadingStore):
    """Local mirror of the station logs, same layout as the remote database."""

    def __init__(self, db_path: str | Path):
        self.db_path = db_path
        try:
            with closing(connect(self.db_path)) as conn:
                conn.executescript(SCHEMA_SQL)
                conn.commit()
        except sqlite3.Error as exc:
            raise StoreError(f"cannot open {db_path}: {exc}", "open", str(db_path)) from exc

    def _query(self, operation: str, key: str | None, sql: str, params=()):
        try:
            with closing(connect(self.db_path)) as conn:
                return conn.execute(sql, params).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"{operation} failed: {exc}", operation, key) from exc

    def _write(self, operation: str, key: str | None, sql: str, params=()) -> None:
        try:
            with closing(connect(self.db_path)) as conn:
                conn.execute(sql, params)
                conn.commit()
        except sqlite3.Error as exc:
            raise StoreError(f"{operation} failed: {exc}", operation, key) from exc

    def latest_reading(self) -> RawReading | None:
        rows = self._query("latest_reading", None, "SELECT payload_json FROM current_reading WHERE id = 1")
        if not rows:
            return None
        return reading_from_record(json.loads(rows[0][0]))

    def available_days(self) -> set[str]:
        rows = self._query("available_days", None, "SELECT DISTINCT day FROM readings")
        return {row[0] for row in rows}

    def readings_for_day(self, day: str) -> list[dict]:
        rows = self._query(
            "readings_for_day",
            day,
            "SELECT payload_json FROM readings WHERE day = ? ORDER BY id",
            (day,),
        )
        return [json.loads(row[0]) for row in rows]

    def load_daily_summary(self, day: str) -> dict | None:
        rows = self._query(
            "load_daily_summary",
            day,
            "SELECT payload_json FROM daily_summary WHERE day = ?",
            (day,),
        )
        return json.loads(rows[0][0]) if rows else None

    def save_daily_summary(self, day: str, record: dict) -> None:
        self._write(
            "save_daily_summary",
            day,
            """
            INSERT INTO daily_summary (day, payload_json)
            VALUES (?, ?)
            ON CONFLICT(day) DO UPDATE SET
              payload_json=excluded.payload_json
            """,
            (day, json.dumps(record, separators=(",", ":"))),
        )

    def add_reading(self, day: str, record: dict) -> None:
        self._write(
            "add_reading",
            day,
            "INSERT INTO readings (day, payload_json) VALUES (?, ?)",
            (day, json.dumps(record, separators=(",", ":"))),
        )

    def set_latest(self, record: dict) -> None:
        self._write(
            "set_latest",
            None,
            """
            INSERT INTO current_reading (id, payload_json)
            VALUES (1, ?)
            ON CONFLICT(id) DO UPDATE SET
              payload_json=excluded.payload_json
            """,
            (json.dumps(record, separators=(",", ":")),),
        )


def fetch_sheet_reading(url: str, timeout: float = 10, session=None) -> RawReading | None:
    """Latest reading from the spreadsheet endpoint (``?leitura=ultima``)."""
    http = session or requests
    try:
        resp = http.get(url, params={"leitura": "ultima"}, timeout=timeout)
        resp.raise_for_status()
        payload = resp.json()
    except (requests.RequestException, ValueError) as exc:
        raise StoreError(f"sheet request failed: {exc}", "latest_reading", url) from exc
    if not isinstance(payload, dict) or not payload:
        return None
    return reading_from_sheet(payload)


def build_store(backend: str, db_path: str | Path, firebase_url: str = "", auth_token: str | None = None, timeout: float = 10) -> ReadingStore:
    if backend == "firebase":
        return FirebaseStore(firebase_url, auth_token=auth_token, timeout=timeout)
    if backend == "sqlite":
        return SqliteStore(db_path)
    raise ValueError(f"Unknown store backend: {backend}")
