import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from src.config_store import StationConfig
from src.readings import RawReading, local_hour, to_local
from src.sun import SunTimes


class SkyCondition(str, Enum):
    SEM_CHUVA = "Sem Chuva"
    CHUVISCO = "Chuvisco"
    CHUVA_LEVE = "Chuva Leve"
    CHUVA_MODERADA = "Chuva Moderada"
    CHUVA_FORTE = "Chuva Forte"
    NOITE = "De noite"
    NUBLADO = "Nublado"
    PARCIALMENTE_NUBLADO = "Parcialmente Nublado"
    ENSOLARADO = "Ensolarado"


RAIN_TIERS = (
    SkyCondition.SEM_CHUVA,
    SkyCondition.CHUVISCO,
    SkyCondition.CHUVA_LEVE,
    SkyCondition.CHUVA_MODERADA,
)
RAINY = {
    SkyCondition.CHUVISCO,
    SkyCondition.CHUVA_LEVE,
    SkyCondition.CHUVA_MODERADA,
    SkyCondition.CHUVA_FORTE,
}


class FeltFactor(str, Enum):
    VENTO = "Vento"
    UMIDADE = "Umidade"
    REAL = "Real"


COMFORT_BANDS = (
    (14, "Muito Frio"),
    (19, "Frio"),
    (27, "Agradável"),
    (32, "Quente"),
)
COMFORT_HOTTEST = "Muito Quente"

# NOAA heat index (Rothfusz) with temperature in °C
HEAT_INDEX_COEFFS = (
    -8.78469475556,
    1.61139411,
    2.33854883889,
    -0.14611605,
    -0.012308094,
    -0.0164248277778,
    0.002211732,
    0.00072546,
    -0.000003582,
)


@dataclass(frozen=True)
class DerivedMetrics:
    sky_condition: SkyCondition | None
    felt_temperature: float | None
    felt_factor: FeltFactor
    dew_point: float | None
    uv_index: float | None
    comfort: str | None
    local_hour: float | None
    expected_lux: float | None
    sunrise: datetime | None = None
    sunset: datetime | None = None


def rain_tier(rain_raw: float | None, thresholds) -> SkyCondition:
    """Tier for the inverted-scale rain gauge; lower raw values mean more rain."""
    if rain_raw is None:
        return SkyCondition.SEM_CHUVA
    for cutoff, tier in zip(thresholds, RAIN_TIERS):
        if rain_raw >= cutoff:
            return tier
    return SkyCondition.CHUVA_FORTE


def expected_lux(hour: float, config: StationConfig) -> float:
    start = config.day_start_hour
    end = config.day_end_hour
    if hour < start or hour > end:
        return 0.0
    return config.lux_peak * math.sin(math.pi * (hour - start) / (end - start))


def sky_condition(luminosity: float | None, rain_raw: float | None, hour: float | None, config: StationConfig) -> SkyCondition | None:
    """First match wins: rain, then night, then luminosity against the expected curve."""
    tier = rain_tier(rain_raw, config.rain_thresholds)
    if tier != SkyCondition.SEM_CHUVA:
        return tier
    if hour is None:
        return None
    if hour < config.day_start_hour or hour > config.day_end_hour:
        return SkyCondition.NOITE
    if luminosity is None:
        return None
    reference = expected_lux(hour, config)
    if luminosity < reference / 2:
        return SkyCondition.NUBLADO
    if luminosity < reference * 0.8:
        return SkyCondition.PARCIALMENTE_NUBLADO
    return SkyCondition.ENSOLARADO


def wind_chill(temp_c: float, wind_speed: float) -> float:
    w_pow = wind_speed ** 0.16
    chill = 13.12 + 0.6215 * temp_c - 11.37 * w_pow + 0.3965 * temp_c * w_pow
    return min(chill, temp_c)


def heat_index(temp_c: float, humidity: float) -> float:
    c = HEAT_INDEX_COEFFS
    t = temp_c
    r = humidity
    hi = (
        c[0]
        + c[1] * t
        + c[2] * r
        + c[3] * t * r
        + c[4] * t * t
        + c[5] * r * r
        + c[6] * t * t * r
        + c[7] * t * r * r
        + c[8] * t * t * r * r
    )
    return max(hi, temp_c)


def felt_temperature(temp_c: float | None, humidity: float | None, wind_speed: float | None) -> tuple[float | None, FeltFactor]:
    if temp_c is None:
        return None, FeltFactor.REAL
    if wind_speed is not None and temp_c <= 10 and wind_speed > 4.8:
        return wind_chill(temp_c, wind_speed), FeltFactor.VENTO
    if humidity is not None and temp_c >= 26.7 and humidity >= 40:
        return heat_index(temp_c, humidity), FeltFactor.UMIDADE
    return temp_c, FeltFactor.REAL


def dew_point(temp_c: float | None, humidity: float | None) -> float | None:
    """Magnus approximation. None when humidity is not positive."""
    if temp_c is None or humidity is None or humidity <= 0:
        return None
    gamma = (17.62 * temp_c) / (243.12 + temp_c) + math.log(humidity / 100.0)
    return 243.12 * gamma / (17.62 - gamma)


def estimate_uv(luminosity: float | None, condition: SkyCondition | None) -> float | None:
    if condition == SkyCondition.NOITE or condition == SkyCondition.NUBLADO or condition in RAINY:
        return 0.0
    if luminosity is None or condition is None:
        return None
    uv = luminosity / 10000.0
    if condition == SkyCondition.PARCIALMENTE_NUBLADO:
        uv *= 0.7
    return max(uv, 0.0)


def comfort_label(felt: float | None) -> str | None:
    if felt is None:
        return None
    for limit, label in COMFORT_BANDS:
        if felt < limit:
            return label
    return COMFORT_HOTTEST


def classify(reading: RawReading, config: StationConfig, sun_times: SunTimes | None = None) -> DerivedMetrics:
    hour = local_hour(reading.timestamp, config.tz_name) if reading.timestamp else None
    condition = sky_condition(reading.luminosity, reading.rain_raw, hour, config)
    felt, factor = felt_temperature(reading.temperature, reading.humidity, reading.wind_speed)
    return DerivedMetrics(
        sky_condition=condition,
        felt_temperature=felt,
        felt_factor=factor,
        dew_point=dew_point(reading.temperature, reading.humidity),
        uv_index=estimate_uv(reading.luminosity, condition),
        comfort=comfort_label(felt),
        local_hour=hour,
        expected_lux=expected_lux(hour, config) if hour is not None else None,
        sunrise=to_local(sun_times.sunrise, config.tz_name) if sun_times else None,
        sunset=to_local(sun_times.sunset, config.tz_name) if sun_times else None,
    )
