from dataclasses import dataclass
from datetime import date, datetime

import requests

from src.readings import parse_timestamp, to_local

SUN_API_URL = "https://api.sunrise-sunset.org/json"


@dataclass(frozen=True)
class SunTimes:
    sunrise: datetime
    sunset: datetime


def fetch_sun_times(lat: float, lon: float, day: date, tz_name: str, timeout: float = 6, session=None) -> SunTimes | None:
    """
    Sunrise and sunset for ``day`` at the station, in station time.

    Returns None when the service is unreachable or answers with junk.
    """
    http = session or requests
    try:
        resp = http.get(
            SUN_API_URL,
            params={"lat": lat, "lng": lon, "date": day.isoformat(), "formatted": 0},
            timeout=timeout,
        )
        resp.raise_for_status()
        payload = resp.json()
    except (requests.RequestException, ValueError):
        return None
    if not isinstance(payload, dict) or payload.get("status") not in (None, "OK"):
        return None
    results = payload.get("results") or {}
    sunrise = parse_timestamp(results.get("sunrise"))
    sunset = parse_timestamp(results.get("sunset"))
    if sunrise is None or sunset is None:
        return None
    return SunTimes(sunrise=to_local(sunrise, tz_name), sunset=to_local(sunset, tz_name))
