"""Helpers for fetching tide predictions from NOAA CO-OPS (Tides & Currents).

Each lookup uses the reference station nearest to the requested coordinate.
Heights are returned in metres above MLLW, exactly as NOAA reports them;
conversion to feet and the Low/Mid/High classification happen in the
conditions client.
"""
from __future__ import annotations

import datetime as dt
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence

import requests

from swellwatch.data_sources.open_meteo_client import build_session
from swellwatch.errors import UpstreamUnavailable
from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="noaa_tides_client")

NOAA_TIDES_URL = "https://api.tidesandcurrents.noaa.gov/api/prod/datagetter"
DEFAULT_TIMEOUT_SECONDS = 10.0
TIDE_PROVIDER = "tide"

PREDICTION_HOURS = 24
PREDICTION_LEAD = dt.timedelta(hours=1)
NOAA_TIME_FORMAT = "%Y-%m-%d %H:%M"

# Six-minute predictions: one sample every 6 points is a half-hour step.
EXTREME_STEP = 6
EXTREME_LOOKAHEAD = 144
MAX_UPCOMING_EXTREMES = 4
HIGH_WATER_MIN_METERS = 1.0
LOW_WATER_MAX_METERS = 0.5

session = build_session()


@dataclass(frozen=True)
class TideStation:
    station_id: str
    name: str
    latitude: float
    longitude: float


# NOAA CO-OPS harmonic stations along the California coast.
TIDE_STATIONS = (
    TideStation("9419750", "Crescent City", 41.7456, -124.1844),
    TideStation("9418767", "North Spit, Humboldt Bay", 40.7669, -124.2169),
    TideStation("9416841", "Arena Cove", 38.9146, -123.7110),
    TideStation("9415020", "Point Reyes", 37.9961, -122.9767),
    TideStation("9414290", "San Francisco", 37.8063, -122.4659),
    TideStation("9413450", "Monterey", 36.6089, -121.8914),
    TideStation("9412110", "Port San Luis", 35.1689, -120.7542),
    TideStation("9411340", "Santa Barbara", 34.4046, -119.6925),
    TideStation("9410840", "Santa Monica", 34.0083, -118.5000),
    TideStation("9410660", "Los Angeles", 33.7200, -118.2720),
    TideStation("9410230", "La Jolla", 32.8669, -117.2571),
    TideStation("9410170", "San Diego", 32.7142, -117.1736),
)


@dataclass
class TidePrediction:
    """One predicted water level (metres above MLLW)."""
    time: dt.datetime
    height: float


@dataclass
class TideExtreme:
    """A predicted high or low water (metres above MLLW)."""
    time: dt.datetime
    kind: str  # "high" or "low"
    height: float


def closest_tide_station(latitude: float, longitude: float,
                         stations: Sequence[TideStation] = TIDE_STATIONS) -> TideStation:
    """Return the station with the smallest plain lat/lng distance."""
    return min(stations, key=lambda s: math.hypot(s.latitude - latitude, s.longitude - longitude))


def find_tide_extremes(predictions: Sequence[TidePrediction], start: int = 0,
                       limit: int = MAX_UPCOMING_EXTREMES) -> List[TideExtreme]:
    """Scan half-hour steps from `start` for local highs and lows.

    A point counts as high water when it tops both neighbours and exceeds
    1.0 m, and as low water when it undercuts both and is below 0.5 m.
    """
    extremes: List[TideExtreme] = []
    stop = min(len(predictions) - EXTREME_STEP, start + EXTREME_LOOKAHEAD)
    for i in range(start, stop, EXTREME_STEP):
        if len(extremes) >= limit:
            break
        curr = predictions[i].height
        prev = predictions[i - EXTREME_STEP].height if i >= EXTREME_STEP else curr
        nxt = predictions[i + EXTREME_STEP].height
        if curr > prev and curr > nxt and curr > HIGH_WATER_MIN_METERS:
            extremes.append(TideExtreme(time=predictions[i].time, kind="high", height=curr))
        elif curr < prev and curr < nxt and curr < LOW_WATER_MAX_METERS:
            extremes.append(TideExtreme(time=predictions[i].time, kind="low", height=curr))
    return extremes


def _get_json(url: str, params: dict, *, http: requests.Session | None, timeout: float) -> dict:
    """GET a datagetter product; NOAA reports bad requests as {"error": ...} with HTTP 200."""
    http = http if http is not None else session
    try:
        resp = http.get(url, params=params, timeout=timeout)
        resp.raise_for_status()
        data = resp.json()
    except requests.RequestException as exc:
        raise UpstreamUnavailable(TIDE_PROVIDER, str(exc)) from exc
    except ValueError as exc:
        raise UpstreamUnavailable(TIDE_PROVIDER, f"invalid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise UpstreamUnavailable(TIDE_PROVIDER, "response body is not an object")
    if "error" in data:
        error = data["error"]
        message = error.get("message") if isinstance(error, dict) else error
        raise UpstreamUnavailable(TIDE_PROVIDER, str(message))
    return data


def _predictions(data: dict) -> list:
    predictions = data.get("predictions")
    if not isinstance(predictions, list):
        raise UpstreamUnavailable(TIDE_PROVIDER, "response is missing 'predictions'")
    return predictions


def fetch_tide_predictions(
    latitude: float,
    longitude: float,
    *,
    url: str = NOAA_TIDES_URL,
    http: requests.Session | None = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    now: Optional[dt.datetime] = None,
) -> List[TidePrediction]:
    """Fetch a day of six-minute predictions (UTC) from the nearest station."""
    station = closest_tide_station(latitude, longitude)
    now = now or dt.datetime.now(dt.timezone.utc)
    begin = now.astimezone(dt.timezone.utc) - PREDICTION_LEAD
    params = {
        "station": station.station_id,
        "product": "predictions",
        "datum": "MLLW",
        "time_zone": "gmt",
        "units": "metric",
        "format": "json",
        "begin_date": begin.strftime("%Y%m%d %H:%M"),
        "range": PREDICTION_HOURS,
    }
    logger.debug("Fetching tide predictions from %s (%s)", station.name, station.station_id)

    data = _get_json(url, params, http=http, timeout=timeout)
    out: List[TidePrediction] = []
    try:
        for p in _predictions(data):
            stamp = dt.datetime.strptime(p["t"], NOAA_TIME_FORMAT).replace(tzinfo=dt.timezone.utc)
            out.append(TidePrediction(time=stamp, height=float(p["v"])))
    except (KeyError, TypeError, ValueError) as exc:
        raise UpstreamUnavailable(TIDE_PROVIDER, f"malformed prediction: {exc}") from exc
    if not out:
        raise UpstreamUnavailable(TIDE_PROVIDER, f"no predictions for station {station.station_id}")
    return out


def fetch_tide_daily(
    latitude: float,
    longitude: float,
    *,
    forecast_days: int = 7,
    url: str = NOAA_TIDES_URL,
    http: requests.Session | None = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    today: Optional[dt.date] = None,
) -> List[TideExtreme]:
    """Fetch high/low water times covering `forecast_days` days, in station-local time.

    The window starts a day early and ends a day late so that the caller's
    calendar days are covered whatever the server's own time zone is.
    """
    station = closest_tide_station(latitude, longitude)
    today = today or dt.date.today()
    begin = today - dt.timedelta(days=1)
    end = today + dt.timedelta(days=forecast_days)
    params = {
        "station": station.station_id,
        "product": "predictions",
        "interval": "hilo",
        "datum": "MLLW",
        "time_zone": "lst_ldt",
        "units": "metric",
        "format": "json",
        "begin_date": begin.strftime("%Y%m%d"),
        "end_date": end.strftime("%Y%m%d"),
    }
    logger.debug("Fetching %d days of tide extremes from %s (%s)", forecast_days, station.name, station.station_id)

    data = _get_json(url, params, http=http, timeout=timeout)
    out: List[TideExtreme] = []
    try:
        for p in _predictions(data):
            out.append(
                TideExtreme(
                    time=dt.datetime.strptime(p["t"], NOAA_TIME_FORMAT),
                    kind="high" if str(p.get("type", "")).upper().startswith("H") else "low",
                    height=float(p["v"]),
                )
            )
    except (KeyError, TypeError, ValueError) as exc:
        raise UpstreamUnavailable(TIDE_PROVIDER, f"malformed prediction: {exc}") from exc
    return out
