"""Factory helpers for choosing a conditions data source at startup."""

from __future__ import annotations

from functools import partial

from swellwatch import config
from swellwatch.data_sources.base import CallableConditionsDataSource, ConditionsDataSource
from swellwatch.data_sources.noaa_tides_client import TIDE_PROVIDER, fetch_tide_daily, fetch_tide_predictions
from swellwatch.data_sources.open_meteo_client import (
    MARINE_PROVIDER,
    WEATHER_PROVIDER,
    build_session,
    fetch_marine_current,
    fetch_marine_daily,
    fetch_weather_current,
    fetch_weather_daily,
)
from swellwatch.errors import UpstreamUnavailable
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="data_sources/factory")


DEFAULT_SOURCE_NAME = "open_meteo"


def _offline(provider: str):
    def fetch(*_args, **_kwargs):
        raise UpstreamUnavailable(provider, "offline data source configured")
    return fetch


def build_data_source(settings: config.Settings | None = None) -> ConditionsDataSource:
    """Instantiate the configured conditions data source.

    "open_meteo" talks to the public Open-Meteo and NOAA tide APIs; "offline" answers every request
    with UpstreamUnavailable so all readings come from the fallback generator
    (useful for demos and development without network access).
    """
    settings = settings or config.settings
    source = (settings.data_source or DEFAULT_SOURCE_NAME).lower()

    if source == "open_meteo":
        http = build_session(retries=settings.request_retries, backoff_factor=settings.request_backoff_factor)
        weather = {"url": settings.weather_api_url, "http": http, "timeout": settings.request_timeout_seconds}
        marine = {"url": settings.marine_api_url, "http": http, "timeout": settings.request_timeout_seconds}
        tide = {"url": settings.tide_api_url, "http": http, "timeout": settings.request_timeout_seconds}
        logger.info("Using Open-Meteo data source (weather=%s, marine=%s, tide=%s)",
                    settings.weather_api_url, settings.marine_api_url, settings.tide_api_url)
        return CallableConditionsDataSource(
            weather_current=partial(fetch_weather_current, **weather),
            marine_current=partial(fetch_marine_current, **marine),
            weather_daily=partial(fetch_weather_daily, **weather),
            marine_daily=partial(fetch_marine_daily, **marine),
            tide_predictions=partial(fetch_tide_predictions, **tide),
            tide_daily=partial(fetch_tide_daily, **tide),
        )

    if source == "offline":
        logger.info("Using offline data source; all readings will be synthetic")
        return CallableConditionsDataSource(
            weather_current=_offline(WEATHER_PROVIDER),
            marine_current=_offline(MARINE_PROVIDER),
            weather_daily=_offline(WEATHER_PROVIDER),
            marine_daily=_offline(MARINE_PROVIDER),
            tide_predictions=_offline(TIDE_PROVIDER),
            tide_daily=_offline(TIDE_PROVIDER),
        )

    raise ValueError(f"Unknown data source '{source}'")
