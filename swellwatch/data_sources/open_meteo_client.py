"""Helpers for fetching weather and marine data from the Open-Meteo APIs.

Readings are returned exactly as the provider reports them (metric units,
bearings in degrees). Conversion to the imperial/compass representation
happens in the conditions client.
"""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional

import requests
from retry_requests import retry

from swellwatch.errors import UpstreamUnavailable
from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="open_meteo_client")

OPEN_METEO_WEATHER_URL = "https://api.open-meteo.com/v1/forecast"
OPEN_METEO_MARINE_URL = "https://marine-api.open-meteo.com/v1/marine"
DEFAULT_TIMEOUT_SECONDS = 10.0

WEATHER_PROVIDER = "weather"
MARINE_PROVIDER = "marine"

# Units we ask for explicitly; conversions downstream rely on them.
UNIT_PARAMS = {
    "temperature_unit": "celsius",
    "wind_speed_unit": "ms",
    "precipitation_unit": "mm",
}

EXPECTED_WEATHER_UNITS = {
    "temperature_2m": "°C",
    "apparent_temperature": "°C",
    "relative_humidity_2m": "%",
    "pressure_msl": "hPa",
    "wind_speed_10m": "m/s",
    "wind_gusts_10m": "m/s",
    "wind_direction_10m": "°",
    "visibility": "m",
    "cloud_cover": "%",
    "precipitation": "mm",
    "temperature_2m_max": "°C",
    "temperature_2m_min": "°C",
    "wind_speed_10m_max": "m/s",
    "wind_gusts_10m_max": "m/s",
    "wind_direction_10m_dominant": "°",
    "precipitation_sum": "mm",
    "cloud_cover_mean": "%",
}

EXPECTED_MARINE_UNITS = {
    "wave_height": "m",
    "wave_direction": "°",
    "wave_period": "s",
    "wind_wave_height": "m",
    "wind_wave_direction": "°",
    "wind_wave_period": "s",
    "swell_wave_height": "m",
    "swell_wave_direction": "°",
    "swell_wave_period": "s",
    "sea_surface_temperature": "°C",
    "wave_height_max": "m",
    "wave_direction_dominant": "°",
    "wave_period_max": "s",
    "wind_wave_height_max": "m",
    "wind_wave_direction_dominant": "°",
    "wind_wave_period_max": "s",
    "swell_wave_height_max": "m",
    "swell_wave_direction_dominant": "°",
    "swell_wave_period_max": "s",
}

# Acceptable alternative spellings that should not trigger warnings.
ALLOWED_UNIT_SYNONYMS = {
    "°": {"deg", "degrees"},
    "°C": {"degC"},
    "m/s": {"ms"},
    "%": {"percent"},
    "hPa": {"hpa", "mbar"},
}

# WMO weather interpretation codes used by Open-Meteo.
WEATHER_CODES = {
    0: "Clear sky",
    1: "Mainly clear",
    2: "Partly cloudy",
    3: "Overcast",
    45: "Fog",
    48: "Depositing rime fog",
    51: "Light drizzle",
    53: "Moderate drizzle",
    55: "Dense drizzle",
    61: "Slight rain",
    63: "Moderate rain",
    65: "Heavy rain",
    71: "Slight snow",
    73: "Moderate snow",
    75: "Heavy snow",
    80: "Light rain showers",
    81: "Moderate rain showers",
    82: "Violent rain showers",
    95: "Thunderstorm",
    96: "Thunderstorm with hail",
    99: "Thunderstorm with heavy hail",
}


def describe_weather_code(code: Optional[int]) -> str:
    """Human-readable label for a WMO weather code."""
    if code is None:
        return "Unknown"
    return WEATHER_CODES.get(int(code), "Unknown")


def build_session(retries: int = 3, backoff_factor: float = 0.2) -> requests.Session:
    """Return a requests session that retries transient failures."""
    return retry(requests.Session(), retries=retries, backoff_factor=backoff_factor)


session = build_session()


@dataclass
class WeatherCurrent:
    """Current weather observation as reported by Open-Meteo (metric)."""
    time: str
    temperature: float
    apparent_temperature: Optional[float]
    humidity: Optional[float]
    pressure: Optional[float]
    wind_speed: Optional[float]
    wind_direction: Optional[float]
    wind_gusts: Optional[float]
    visibility: Optional[float]
    uv_index: Optional[float]
    cloud_cover: Optional[float]
    precipitation: Optional[float]
    weather_code: Optional[int]


@dataclass
class MarineCurrent:
    """Current sea state as reported by the marine endpoint (metric)."""
    time: str
    wave_height: Optional[float]
    wave_direction: Optional[float]
    wave_period: Optional[float]
    wind_wave_height: Optional[float]
    wind_wave_direction: Optional[float]
    wind_wave_period: Optional[float]
    swell_wave_height: Optional[float]
    swell_wave_direction: Optional[float]
    swell_wave_period: Optional[float]
    sea_surface_temperature: Optional[float]


@dataclass
class WeatherDay:
    """Daily weather aggregates for one forecast day (metric)."""
    date: dt.date
    temperature_max: Optional[float]
    temperature_min: Optional[float]
    wind_speed_max: Optional[float]
    wind_gusts_max: Optional[float]
    wind_direction_dominant: Optional[float]
    precipitation_sum: Optional[float]
    cloud_cover_mean: Optional[float]
    weather_code: Optional[int]


@dataclass
class MarineDay:
    """Daily marine aggregates for one forecast day (metric)."""
    date: dt.date
    wave_height_max: Optional[float]
    wave_direction_dominant: Optional[float]
    wave_period_max: Optional[float]
    wind_wave_height_max: Optional[float]
    wind_wave_direction_dominant: Optional[float]
    wind_wave_period_max: Optional[float]
    swell_wave_height_max: Optional[float]
    swell_wave_direction_dominant: Optional[float]
    swell_wave_period_max: Optional[float]


def _unit_ok(actual: str, expected: str) -> bool:
    return actual == expected or actual in ALLOWED_UNIT_SYNONYMS.get(expected, set())


def _warn_on_unexpected_units(units: Mapping[str, str] | None, expected: Mapping[str, str], *, context: str):
    """Log a warning if Open-Meteo returns units we did not request."""
    if not units:
        return
    for field, want in expected.items():
        actual = units.get(field)
        if actual and not _unit_ok(actual, want):
            logger.warning(
                "Unexpected Open-Meteo unit for %s: %s (expected %s)",
                field,
                actual,
                want,
                extra={"context": context, "field": field, "unit": actual, "expected": want},
            )


def _get_json(url: str, params: dict, *, provider: str, http: requests.Session | None,
              timeout: float) -> dict:
    """GET `url` and return the decoded body, mapping failures to UpstreamUnavailable."""
    http = http if http is not None else session
    try:
        resp = http.get(url, params=params, timeout=timeout)
        resp.raise_for_status()
        data = resp.json()
    except requests.RequestException as exc:
        raise UpstreamUnavailable(provider, str(exc)) from exc
    except ValueError as exc:
        raise UpstreamUnavailable(provider, f"invalid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise UpstreamUnavailable(provider, "response body is not an object")
    return data


def _block(data: dict, key: str, provider: str) -> dict:
    block = data.get(key)
    if not isinstance(block, dict):
        raise UpstreamUnavailable(provider, f"response is missing '{key}'")
    return block


def _series(block: dict, key: str, n: int) -> List[Any]:
    """Return a daily column padded with None so every index is valid."""
    values = block.get(key) or []
    return list(values) + [None] * (n - len(values))


def fetch_weather_current(
    latitude: float,
    longitude: float,
    *,
    url: str = OPEN_METEO_WEATHER_URL,
    http: requests.Session | None = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> WeatherCurrent:
    """Fetch the latest weather observation for the given coordinates."""
    current_vars = [
        "temperature_2m",
        "apparent_temperature",
        "relative_humidity_2m",
        "pressure_msl",
        "wind_speed_10m",
        "wind_direction_10m",
        "wind_gusts_10m",
        "visibility",
        "uv_index",
        "cloud_cover",
        "precipitation",
        "weather_code",
    ]
    params = {
        "latitude": latitude,
        "longitude": longitude,
        "current": ",".join(current_vars),
        "timezone": "auto",
        "forecast_days": 1,
        **UNIT_PARAMS,
    }

    data = _get_json(url, params, provider=WEATHER_PROVIDER, http=http, timeout=timeout)
    current = _block(data, "current", WEATHER_PROVIDER)
    _warn_on_unexpected_units(data.get("current_units"), EXPECTED_WEATHER_UNITS, context="weather_current")

    temperature = current.get("temperature_2m")
    if temperature is None:
        raise UpstreamUnavailable(WEATHER_PROVIDER, "current temperature missing")

    return WeatherCurrent(
        time=current.get("time", ""),
        temperature=temperature,
        apparent_temperature=current.get("apparent_temperature"),
        humidity=current.get("relative_humidity_2m"),
        pressure=current.get("pressure_msl"),
        wind_speed=current.get("wind_speed_10m"),
        wind_direction=current.get("wind_direction_10m"),
        wind_gusts=current.get("wind_gusts_10m"),
        visibility=current.get("visibility"),
        uv_index=current.get("uv_index"),
        cloud_cover=current.get("cloud_cover"),
        precipitation=current.get("precipitation"),
        weather_code=current.get("weather_code"),
    )


def fetch_marine_current(
    latitude: float,
    longitude: float,
    *,
    url: str = OPEN_METEO_MARINE_URL,
    http: requests.Session | None = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> MarineCurrent:
    """Fetch the current sea state for the given coordinates."""
    current_vars = [
        "wave_height",
        "wave_direction",
        "wave_period",
        "wind_wave_height",
        "wind_wave_direction",
        "wind_wave_period",
        "swell_wave_height",
        "swell_wave_direction",
        "swell_wave_period",
        "sea_surface_temperature",
    ]
    params = {
        "latitude": latitude,
        "longitude": longitude,
        "current": ",".join(current_vars),
        "timezone": "auto",
    }

    data = _get_json(url, params, provider=MARINE_PROVIDER, http=http, timeout=timeout)
    current = _block(data, "current", MARINE_PROVIDER)
    _warn_on_unexpected_units(data.get("current_units"), EXPECTED_MARINE_UNITS, context="marine_current")

    return MarineCurrent(
        time=current.get("time", ""),
        wave_height=current.get("wave_height"),
        wave_direction=current.get("wave_direction"),
        wave_period=current.get("wave_period"),
        wind_wave_height=current.get("wind_wave_height"),
        wind_wave_direction=current.get("wind_wave_direction"),
        wind_wave_period=current.get("wind_wave_period"),
        swell_wave_height=current.get("swell_wave_height"),
        swell_wave_direction=current.get("swell_wave_direction"),
        swell_wave_period=current.get("swell_wave_period"),
        sea_surface_temperature=current.get("sea_surface_temperature"),
    )


def fetch_weather_daily(
    latitude: float,
    longitude: float,
    *,
    forecast_days: int = 7,
    url: str = OPEN_METEO_WEATHER_URL,
    http: requests.Session | None = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> List[WeatherDay]:
    """Fetch `forecast_days` of daily weather aggregates."""
    daily_vars = [
        "temperature_2m_max",
        "temperature_2m_min",
        "wind_speed_10m_max",
        "wind_gusts_10m_max",
        "wind_direction_10m_dominant",
        "precipitation_sum",
        "cloud_cover_mean",
        "weather_code",
    ]
    params = {
        "latitude": latitude,
        "longitude": longitude,
        "daily": ",".join(daily_vars),
        "forecast_days": forecast_days,
        "timezone": "auto",
        **UNIT_PARAMS,
    }

    data = _get_json(url, params, provider=WEATHER_PROVIDER, http=http, timeout=timeout)
    daily = _block(data, "daily", WEATHER_PROVIDER)
    _warn_on_unexpected_units(data.get("daily_units"), EXPECTED_WEATHER_UNITS, context="weather_daily")

    times = daily.get("time") or []
    n = len(times)
    temp_max = _series(daily, "temperature_2m_max", n)
    temp_min = _series(daily, "temperature_2m_min", n)
    wind_max = _series(daily, "wind_speed_10m_max", n)
    gusts_max = _series(daily, "wind_gusts_10m_max", n)
    wind_dir = _series(daily, "wind_direction_10m_dominant", n)
    precip = _series(daily, "precipitation_sum", n)
    cloud = _series(daily, "cloud_cover_mean", n)
    codes = _series(daily, "weather_code", n)

    out: List[WeatherDay] = []
    try:
        for i, day in enumerate(times):
            out.append(
                WeatherDay(
                    date=dt.date.fromisoformat(day),
                    temperature_max=temp_max[i],
                    temperature_min=temp_min[i],
                    wind_speed_max=wind_max[i],
                    wind_gusts_max=gusts_max[i],
                    wind_direction_dominant=wind_dir[i],
                    precipitation_sum=precip[i],
                    cloud_cover_mean=cloud[i],
                    weather_code=codes[i],
                )
            )
    except (TypeError, ValueError) as exc:
        raise UpstreamUnavailable(WEATHER_PROVIDER, f"bad daily time value: {exc}") from exc
    return out


def fetch_marine_daily(
    latitude: float,
    longitude: float,
    *,
    forecast_days: int = 7,
    url: str = OPEN_METEO_MARINE_URL,
    http: requests.Session | None = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> List[MarineDay]:
    """Fetch `forecast_days` of daily marine aggregates."""
    daily_vars = [
        "wave_height_max",
        "wave_direction_dominant",
        "wave_period_max",
        "wind_wave_height_max",
        "wind_wave_direction_dominant",
        "wind_wave_period_max",
        "swell_wave_height_max",
        "swell_wave_direction_dominant",
        "swell_wave_period_max",
    ]
    params = {
        "latitude": latitude,
        "longitude": longitude,
        "daily": ",".join(daily_vars),
        "forecast_days": forecast_days,
        "timezone": "auto",
    }

    data = _get_json(url, params, provider=MARINE_PROVIDER, http=http, timeout=timeout)
    daily = _block(data, "daily", MARINE_PROVIDER)
    _warn_on_unexpected_units(data.get("daily_units"), EXPECTED_MARINE_UNITS, context="marine_daily")

    times = daily.get("time") or []
    n = len(times)
    columns = {name: _series(daily, name, n) for name in daily_vars}

    out: List[MarineDay] = []
    try:
        for i, day in enumerate(times):
            out.append(
                MarineDay(
                    date=dt.date.fromisoformat(day),
                    **{name: values[i] for name, values in columns.items()},
                )
            )
    except (TypeError, ValueError) as exc:
        raise UpstreamUnavailable(MARINE_PROVIDER, f"bad daily time value: {exc}") from exc
    return out
