"""Interfaces and helpers for conditions data sources."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Protocol

from swellwatch.data_sources.noaa_tides_client import TideExtreme, TidePrediction
from swellwatch.data_sources.open_meteo_client import MarineCurrent, MarineDay, WeatherCurrent, WeatherDay


class ConditionsDataSource(Protocol):
    """Interface for anything that can provide raw weather, marine and tide readings.

    Implementations raise `UpstreamUnavailable` when a provider cannot answer;
    the conditions client substitutes synthetic data for that branch.
    """

    def fetch_weather_current(self, latitude: float, longitude: float) -> WeatherCurrent:
        """Return the current weather observation."""
        ...

    def fetch_marine_current(self, latitude: float, longitude: float) -> MarineCurrent:
        """Return the current sea state."""
        ...

    def fetch_weather_daily(self, latitude: float, longitude: float, *, forecast_days: int) -> List[WeatherDay]:
        """Return daily weather aggregates."""
        ...

    def fetch_marine_daily(self, latitude: float, longitude: float, *, forecast_days: int) -> List[MarineDay]:
        """Return daily marine aggregates."""
        ...

    def fetch_tide_predictions(self, latitude: float, longitude: float) -> List[TidePrediction]:
        """Return about a day of water-level predictions starting just before now."""
        ...

    def fetch_tide_daily(self, latitude: float, longitude: float, *, forecast_days: int) -> List[TideExtreme]:
        """Return predicted high and low waters for each forecast day."""
        ...


@dataclass
class CallableConditionsDataSource(ConditionsDataSource):
    """Wrap one callable per reading so they can be swapped for different backends."""

    weather_current: Callable[..., WeatherCurrent]
    marine_current: Callable[..., MarineCurrent]
    weather_daily: Callable[..., List[WeatherDay]]
    marine_daily: Callable[..., List[MarineDay]]
    tide_predictions: Callable[..., List[TidePrediction]]
    tide_daily: Callable[..., List[TideExtreme]]

    def fetch_weather_current(self, *args, **kwargs) -> WeatherCurrent:
        """Delegate to the configured current-weather callable."""
        return self.weather_current(*args, **kwargs)

    def fetch_marine_current(self, *args, **kwargs) -> MarineCurrent:
        """Delegate to the configured current-marine callable."""
        return self.marine_current(*args, **kwargs)

    def fetch_weather_daily(self, *args, **kwargs) -> List[WeatherDay]:
        """Delegate to the configured daily-weather callable."""
        return self.weather_daily(*args, **kwargs)

    def fetch_marine_daily(self, *args, **kwargs) -> List[MarineDay]:
        """Delegate to the configured daily-marine callable."""
        return self.marine_daily(*args, **kwargs)

    def fetch_tide_predictions(self, *args, **kwargs) -> List[TidePrediction]:
        return self.tide_predictions(*args, **kwargs)

    def fetch_tide_daily(self, *args, **kwargs) -> List[TideExtreme]:
        return self.tide_daily(*args, **kwargs)
