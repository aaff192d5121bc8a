"""Fetch, normalize, cache and score surf conditions for a coordinate.

The client fans out one weather, one marine and one tide request per lookup,
waits for all of them, and substitutes synthetic data for whichever branch
fails. Callers always get a plausible reading back;
`NormalizedConditions.failures` tells them which parts are synthetic.
"""
from __future__ import annotations

import datetime as dt
import time
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, List, Optional, Sequence

from swellwatch import config
from swellwatch.data_sources import ConditionsDataSource, build_data_source
from swellwatch.data_sources.noaa_tides_client import TideExtreme, TidePrediction, find_tide_extremes
from swellwatch.data_sources.open_meteo_client import (
    MarineCurrent,
    MarineDay,
    WeatherCurrent,
    WeatherDay,
    describe_weather_code,
)
from swellwatch.domain import (
    DailyConditions,
    FetchFailure,
    NormalizedConditions,
    SpotConditions,
    SpotForecastDay,
    SurfSpot,
    TideEvent,
    TideState,
    TideTrend,
)
from swellwatch.errors import InvalidCoordinate, UpstreamUnavailable
from swellwatch.fallback import FallbackGenerator
from swellwatch.quality import QualityScorer
from swellwatch.result_cache import ResultCache, cache_key
from swellwatch.units import (
    celsius_to_fahrenheit,
    degrees_to_compass,
    estimate_water_temp,
    meters_to_feet,
    mm_to_inches,
    mps_to_mph,
    round_half_up,
)
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="conditions_client")

MAX_FORECAST_DAYS = 16
SPOT_FORECAST_DAYS = 2


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def _first(*values):
    """Return the first value that is not None (0 is a real reading)."""
    for value in values:
        if value is not None:
            return value
    return None


def _tide_event(extreme: TideExtreme) -> TideEvent:
    return TideEvent(time=extreme.time, kind=extreme.kind, height=meters_to_feet(extreme.height))


def validate_coordinate(latitude: float, longitude: float) -> None:
    """Raise InvalidCoordinate unless lat is in [-90, 90] and lng in [-180, 180]."""
    if not (-90.0 <= latitude <= 90.0 and -180.0 <= longitude <= 180.0):
        raise InvalidCoordinate(latitude, longitude)


class ConditionsClient:
    """Conditions lookups with per-branch fallback and a freshness cache."""

    def __init__(
        self,
        data_source: ConditionsDataSource,
        cache: ResultCache | None = None,
        fallback: FallbackGenerator | None = None,
        scorer: QualityScorer | None = None,
        *,
        forecast_days: int = 7,
        batch_size: int = 3,
        batch_delay_seconds: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
        now: Callable[[], dt.datetime] = _utcnow,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.data_source = data_source
        self.cache = cache if cache is not None else ResultCache()
        self.fallback = fallback if fallback is not None else FallbackGenerator()
        self.scorer = scorer if scorer is not None else QualityScorer()
        self.forecast_days = forecast_days
        self.batch_size = batch_size
        self.batch_delay_seconds = batch_delay_seconds
        self._sleep = sleep
        self._now = now

    @classmethod
    def from_settings(cls, settings: config.Settings | None = None) -> "ConditionsClient":
        """Compose a client from environment configuration."""
        settings = settings or config.settings
        return cls(
            build_data_source(settings),
            ResultCache(freshness_seconds=settings.cache_ttl_seconds),
            FallbackGenerator(seed=settings.fallback_seed),
            forecast_days=settings.forecast_days,
            batch_size=settings.batch_size,
            batch_delay_seconds=settings.batch_delay_seconds,
        )

    # ------------------------------------------------------------------
    # Fan-out helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _settle(future, failure: FetchFailure, failures: List[FetchFailure]):
        """Return a branch result, or None after recording a recoverable failure."""
        try:
            return future.result()
        except UpstreamUnavailable as exc:
            logger.warning("Upstream %s unavailable; using synthetic data: %s", exc.provider, exc.detail)
            failures.append(failure)
            return None

    def _fetch_concurrently(self, *branches: tuple) -> tuple:
        """Run each (call, failure) branch on its own thread and wait for all of them.

        Returns one result per branch (None where the provider was unavailable)
        followed by the list of recorded failures.
        """
        failures: List[FetchFailure] = []
        with ThreadPoolExecutor(max_workers=len(branches), thread_name_prefix="swellwatch-fetch") as pool:
            futures = [(pool.submit(call), failure) for call, failure in branches]
            results = [self._settle(future, failure, failures) for future, failure in futures]
        return (*results, failures)

    # ------------------------------------------------------------------
    # Current conditions
    # ------------------------------------------------------------------

    def fetch_conditions(self, latitude: float, longitude: float) -> NormalizedConditions:
        """Return normalized conditions for a coordinate, live when possible."""
        validate_coordinate(latitude, longitude)
        key = cache_key(latitude, longitude)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Cache hit for %s", key)
            return cached

        logger.info("Fetching live conditions for %s", key)
        try:
            weather, marine, tide, failures = self._fetch_concurrently(
                (lambda: self.data_source.fetch_weather_current(latitude, longitude),
                 FetchFailure.WEATHER_UNAVAILABLE),
                (lambda: self.data_source.fetch_marine_current(latitude, longitude),
                 FetchFailure.MARINE_UNAVAILABLE),
                (lambda: self.data_source.fetch_tide_predictions(latitude, longitude),
                 FetchFailure.TIDE_UNAVAILABLE),
            )
            conditions = self._normalize_current(latitude, longitude, weather, marine, tide, failures)
        except Exception:
            logger.exception("Unexpected error building conditions for %s; using synthetic reading", key)
            conditions = self._synthetic_current(latitude, longitude)

        if conditions.degraded:
            logger.info("Conditions for %s are degraded: %s", key, [f.value for f in conditions.failures])
        else:
            self.cache.put(key, conditions)
        return conditions

    @staticmethod
    def _weather_fields(weather: WeatherCurrent) -> dict:
        gusts = weather.wind_gusts
        return {
            "wind_speed": mps_to_mph(_first(weather.wind_speed, 0.0)),
            "wind_direction": degrees_to_compass(_first(weather.wind_direction, 0.0)),
            "wind_gusts": mps_to_mph(gusts) if gusts is not None else None,
            "air_temp": celsius_to_fahrenheit(weather.temperature),
            "feels_like": (celsius_to_fahrenheit(weather.apparent_temperature)
                           if weather.apparent_temperature is not None else None),
            "humidity": weather.humidity,
            "pressure": weather.pressure,
            "visibility": meters_to_feet(weather.visibility) if weather.visibility is not None else None,
            "uv_index": weather.uv_index,
            "cloud_cover": weather.cloud_cover,
            "precipitation": mm_to_inches(weather.precipitation) if weather.precipitation is not None else None,
            "weather_code": weather.weather_code,
            "weather_description": (describe_weather_code(weather.weather_code)
                                    if weather.weather_code is not None else None),
        }

    @staticmethod
    def _marine_fields(marine: MarineCurrent) -> Optional[dict]:
        """Swell fields from the marine payload, or None if it carries no sea state."""
        height = _first(marine.swell_wave_height, marine.wave_height, marine.wind_wave_height)
        period = _first(marine.swell_wave_period, marine.wave_period, marine.wind_wave_period)
        direction = _first(marine.swell_wave_direction, marine.wave_direction, marine.wind_wave_direction)
        if height is None or period is None or direction is None:
            return None
        return {
            "swell_height": meters_to_feet(height),
            "swell_period": round_half_up(period, 1),
            "swell_direction": degrees_to_compass(direction),
            "wind_wave_height": (meters_to_feet(marine.wind_wave_height)
                                 if marine.wind_wave_height is not None else None),
            "wind_wave_period": marine.wind_wave_period,
            "wind_wave_direction": (degrees_to_compass(marine.wind_wave_direction)
                                    if marine.wind_wave_direction is not None else None),
        }

    def _tide_fields(self, predictions: Sequence[TidePrediction]) -> dict:
        """Current level, Low/Mid/High state, trend and upcoming extremes."""
        now = self._now()
        current = min(range(len(predictions)),
                      key=lambda i: abs((predictions[i].time - now).total_seconds()))
        height = predictions[current].height
        following = predictions[current + 1].height if current + 1 < len(predictions) else height
        heights = [p.height for p in predictions]
        return {
            "tide": TideState.from_height(height, min(heights), max(heights)),
            "tide_height": meters_to_feet(height),
            "tide_trend": TideTrend.RISING if following > height else TideTrend.FALLING,
            "tide_events": tuple(_tide_event(e) for e in find_tide_extremes(predictions, current)),
        }

    def _normalize_current(
        self,
        latitude: float,
        longitude: float,
        weather: Optional[WeatherCurrent],
        marine: Optional[MarineCurrent],
        tide: Optional[Sequence[TidePrediction]],
        failures: List[FetchFailure],
    ) -> NormalizedConditions:
        if weather is not None:
            fields = self._weather_fields(weather)
        else:
            fields = self.fallback.weather(latitude, longitude)

        marine_fields = self._marine_fields(marine) if marine is not None else None
        if marine_fields is None:
            if marine is not None:
                logger.warning("Marine payload for (%s, %s) has no sea state; using synthetic swell",
                               latitude, longitude)
                failures.append(FetchFailure.MARINE_UNAVAILABLE)
            marine_fields = self.fallback.marine(latitude, longitude)
        fields.update(marine_fields)

        if tide:
            fields.update(self._tide_fields(tide))
        else:
            if tide is not None:
                logger.warning("No tide predictions for (%s, %s); using synthetic tide", latitude, longitude)
                failures.append(FetchFailure.TIDE_UNAVAILABLE)
            fields.update(self.fallback.tide(latitude, longitude))

        sea_surface = marine.sea_surface_temperature if marine is not None else None
        if sea_surface is not None:
            water_temp = celsius_to_fahrenheit(sea_surface)
        elif weather is not None:
            water_temp = estimate_water_temp(latitude, fields["air_temp"])
        else:
            water_temp = self.fallback.water_temp(latitude, longitude)

        return NormalizedConditions(
            **fields,
            water_temp=water_temp,
            timestamp=self._now(),
            failures=tuple(failures),
        )

    def _synthetic_current(self, latitude: float, longitude: float) -> NormalizedConditions:
        return NormalizedConditions(
            **self.fallback.weather(latitude, longitude),
            **self.fallback.marine(latitude, longitude),
            **self.fallback.tide(latitude, longitude),
            water_temp=self.fallback.water_temp(latitude, longitude),
            timestamp=self._now(),
            failures=(
                FetchFailure.WEATHER_UNAVAILABLE,
                FetchFailure.MARINE_UNAVAILABLE,
                FetchFailure.TIDE_UNAVAILABLE,
                FetchFailure.NORMALIZATION_FAILED,
            ),
        )

    # ------------------------------------------------------------------
    # Daily forecast
    # ------------------------------------------------------------------

    def fetch_forecast(self, latitude: float, longitude: float, days: int | None = None) -> List[DailyConditions]:
        """Return one normalized record per day, starting today."""
        validate_coordinate(latitude, longitude)
        days = self.forecast_days if days is None else days
        if not 1 <= days <= MAX_FORECAST_DAYS:
            raise ValueError(f"days must be between 1 and {MAX_FORECAST_DAYS}, got {days}")

        key = cache_key(latitude, longitude, prefix=f"forecast:{days}")
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Cache hit for %s", key)
            return list(cached)

        logger.info("Fetching %d-day forecast for %s", days, key)
        try:
            weather_days, marine_days, tide_days, failures = self._fetch_concurrently(
                (lambda: self.data_source.fetch_weather_daily(latitude, longitude, forecast_days=days),
                 FetchFailure.WEATHER_UNAVAILABLE),
                (lambda: self.data_source.fetch_marine_daily(latitude, longitude, forecast_days=days),
                 FetchFailure.MARINE_UNAVAILABLE),
                (lambda: self.data_source.fetch_tide_daily(latitude, longitude, forecast_days=days),
                 FetchFailure.TIDE_UNAVAILABLE),
            )
            forecast = self._normalize_forecast(latitude, longitude, days, weather_days or [],
                                                marine_days or [], tide_days or [], failures)
        except Exception:
            logger.exception("Unexpected error building forecast for %s; using synthetic days", key)
            forecast = self._synthetic_forecast(latitude, longitude, days)

        if any(day.degraded for day in forecast):
            logger.info("Forecast for %s includes synthetic days", key)
        else:
            self.cache.put(key, tuple(forecast))
        return forecast

    def _normalize_forecast(
        self,
        latitude: float,
        longitude: float,
        days: int,
        weather_days: Sequence[WeatherDay],
        marine_days: Sequence[MarineDay],
        tide_days: Sequence[TideExtreme],
        branch_failures: Sequence[FetchFailure],
    ) -> List[DailyConditions]:
        today = self._now().date()
        # Tide extremes carry station-local times; group them by calendar day.
        tides_by_date: Dict[dt.date, List[TideEvent]] = defaultdict(list)
        for extreme in tide_days:
            tides_by_date[extreme.time.date()].append(_tide_event(extreme))
        out: List[DailyConditions] = []
        for i in range(days):
            weather = weather_days[i] if i < len(weather_days) else None
            marine = marine_days[i] if i < len(marine_days) else None
            failures = list(branch_failures)
            date = _first(weather.date if weather else None, marine.date if marine else None,
                          today + dt.timedelta(days=i))

            if weather is not None and weather.temperature_max is not None:
                fields = {
                    "wind_speed": mps_to_mph(_first(weather.wind_speed_max, 0.0)),
                    "wind_direction": degrees_to_compass(_first(weather.wind_direction_dominant, 0.0)),
                    "wind_gusts": (mps_to_mph(weather.wind_gusts_max)
                                   if weather.wind_gusts_max is not None else None),
                    "air_temp": celsius_to_fahrenheit(weather.temperature_max),
                    "air_temp_min": (celsius_to_fahrenheit(weather.temperature_min)
                                     if weather.temperature_min is not None else None),
                    "precipitation": mm_to_inches(_first(weather.precipitation_sum, 0.0)),
                    "cloud_cover": _first(weather.cloud_cover_mean, 50.0),
                    "weather_code": weather.weather_code,
                    "weather_description": (describe_weather_code(weather.weather_code)
                                            if weather.weather_code is not None else None),
                }
                water_temp = estimate_water_temp(latitude, fields["air_temp"])
            else:
                if FetchFailure.WEATHER_UNAVAILABLE not in failures:
                    failures.append(FetchFailure.WEATHER_UNAVAILABLE)
                fields = self.fallback.weather(latitude, longitude, i, forecast=True)
                water_temp = self.fallback.water_temp(latitude, longitude, i)

            height = period = direction = None
            if marine is not None:
                height = _first(marine.swell_wave_height_max, marine.wave_height_max, marine.wind_wave_height_max)
                period = _first(marine.swell_wave_period_max, marine.wave_period_max, marine.wind_wave_period_max)
                direction = _first(marine.swell_wave_direction_dominant, marine.wave_direction_dominant,
                                   marine.wind_wave_direction_dominant)
            if height is not None and period is not None and direction is not None:
                fields.update(
                    swell_height=meters_to_feet(height),
                    swell_period=round_half_up(period, 1),
                    swell_direction=degrees_to_compass(direction),
                )
            else:
                if FetchFailure.MARINE_UNAVAILABLE not in failures:
                    failures.append(FetchFailure.MARINE_UNAVAILABLE)
                fields.update(self.fallback.marine(latitude, longitude, i, forecast=True))

            events = tides_by_date.get(date)
            if events:
                fields["tide_events"] = tuple(events)
            else:
                if FetchFailure.TIDE_UNAVAILABLE not in failures:
                    failures.append(FetchFailure.TIDE_UNAVAILABLE)
                fields["tide_events"] = tuple(self.fallback.tide_events(latitude, longitude, date, i))

            out.append(DailyConditions(date=date, water_temp=water_temp, failures=tuple(failures), **fields))
        return out

    def _synthetic_forecast(self, latitude: float, longitude: float, days: int) -> List[DailyConditions]:
        today = self._now().date()
        return [
            DailyConditions(
                date=today + dt.timedelta(days=i),
                water_temp=self.fallback.water_temp(latitude, longitude, i),
                failures=(
                    FetchFailure.WEATHER_UNAVAILABLE,
                    FetchFailure.MARINE_UNAVAILABLE,
                    FetchFailure.TIDE_UNAVAILABLE,
                    FetchFailure.NORMALIZATION_FAILED,
                ),
                tide_events=tuple(self.fallback.tide_events(latitude, longitude, today + dt.timedelta(days=i), i)),
                **self.fallback.weather(latitude, longitude, i, forecast=True),
                **self.fallback.marine(latitude, longitude, i, forecast=True),
            )
            for i in range(days)
        ]

    # ------------------------------------------------------------------
    # Spot helpers
    # ------------------------------------------------------------------

    def update_spot_with_live_data(self, spot: SurfSpot) -> SurfSpot:
        """Return a copy of `spot` with live conditions, a short forecast and a rating.

        The rating uses the live (or synthetic) tide state, falling back to the
        tide already on the spot card only when the reading carries none.
        The input record is never modified. Any unexpected failure is logged
        and the original spot is returned unchanged.
        """
        lat, lng = spot.location.lat, spot.location.lng
        try:
            conditions = self.fetch_conditions(lat, lng)
            forecast = self.fetch_forecast(lat, lng)
            spot_tide = spot.current_conditions.tide if spot.current_conditions else None
            tide = conditions.tide.value if conditions.tide is not None else spot_tide
            quality = self.scorer.score(conditions, spot.best_conditions, tide)
        except Exception:
            logger.exception("Error updating spot %s", spot.name)
            return spot

        return spot.model_copy(
            update={
                "current_conditions": SpotConditions(
                    swell_height=conditions.swell_height,
                    swell_period=conditions.swell_period,
                    swell_direction=conditions.swell_direction,
                    wind_speed=conditions.wind_speed,
                    wind_direction=conditions.wind_direction,
                    tide=tide,
                    water_temp=conditions.water_temp,
                    air_temp=conditions.air_temp,
                ),
                "forecast": [
                    SpotForecastDay(
                        date=day.date,
                        swell_height=day.swell_height,
                        swell_period=day.swell_period,
                        swell_direction=day.swell_direction,
                        wind_speed=day.wind_speed,
                        wind_direction=day.wind_direction,
                        tides=list(day.tide_events),
                    )
                    for day in forecast[:SPOT_FORECAST_DAYS]
                ],
                "conditions_rating": quality.rating,
                "quality_score": quality.display_score,
                "last_updated": conditions.timestamp,
            }
        )

    def update_spots(self, spots: Sequence[SurfSpot]) -> List[SurfSpot]:
        """Update many spots in small concurrent batches, preserving order.

        At most `batch_size` spots are in flight at once, with a fixed pause
        between batches to stay polite toward the upstream APIs.
        """
        results: List[SurfSpot] = []
        for start in range(0, len(spots), self.batch_size):
            batch = spots[start:start + self.batch_size]
            with ThreadPoolExecutor(max_workers=self.batch_size, thread_name_prefix="swellwatch-spots") as pool:
                futures = [pool.submit(self.update_spot_with_live_data, spot) for spot in batch]
                for spot, future in zip(batch, futures):
                    try:
                        results.append(future.result())
                    except Exception:
                        logger.exception("Failed to update spot %s; keeping original", spot.name)
                        results.append(spot)
            if start + self.batch_size < len(spots):
                self._sleep(self.batch_delay_seconds)
        logger.info("Updated %d spots", len(results))
        return results

    def clear_cache(self) -> int:
        """Drop every cached reading (manual refresh)."""
        return self.cache.clear()
