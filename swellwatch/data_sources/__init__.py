"""Data source factories for plugging different conditions backends."""

from .base import CallableConditionsDataSource, ConditionsDataSource
from .factory import build_data_source
from .noaa_tides_client import (
    TideExtreme,
    TidePrediction,
    closest_tide_station,
    fetch_tide_daily,
    fetch_tide_predictions,
    find_tide_extremes,
)
from .open_meteo_client import (
    MarineCurrent,
    MarineDay,
    WeatherCurrent,
    WeatherDay,
    describe_weather_code,
    fetch_marine_current,
    fetch_marine_daily,
    fetch_weather_current,
    fetch_weather_daily,
)

__all__ = [
    "build_data_source",
    "ConditionsDataSource",
    "CallableConditionsDataSource",
    "MarineCurrent",
    "MarineDay",
    "WeatherCurrent",
    "WeatherDay",
    "describe_weather_code",
    "fetch_marine_current",
    "fetch_marine_daily",
    "fetch_weather_current",
    "fetch_weather_daily",
    "TideExtreme",
    "TidePrediction",
    "closest_tide_station",
    "fetch_tide_daily",
    "fetch_tide_predictions",
    "find_tide_extremes",
]
