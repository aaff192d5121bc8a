"""Deterministic synthetic conditions used when a provider is unavailable.

Values depend on coarse geography (west coast of the Americas vs elsewhere,
tropical vs temperate latitudes) plus jitter drawn from a generator seeded by
(seed, rounded lat, rounded lng, day, stream). The same inputs always produce
the same reading, so degraded output is reproducible in tests and logs.
"""

from __future__ import annotations

import datetime as dt
import random
from typing import Any, Dict, List

from swellwatch.domain import TideState, TideTrend
from swellwatch.units import degrees_to_compass, meters_to_feet, mm_to_inches, round_half_up

WEST_COAST_MAX_LONGITUDE = -100.0
TROPICAL_MAX_ABS_LATITUDE = 30.0

WEST_SWELL_DEGREES = 270.0
EAST_SWELL_DEGREES = 90.0
FALLBACK_WIND_DEGREES = 45.0

SYNTHETIC_TIDE_MEAN_METERS = 1.5
SYNTHETIC_TIDE_AMPLITUDE_METERS = 1.0
# (earliest hour after midnight, kind); each turn lands within a 4 h window
DAILY_TIDE_PATTERN = ((2.0, "low"), (8.0, "high"), (14.0, "low"), (20.0, "high"))
TIDE_TURN_WINDOW_HOURS = 4.0
HIGH_WATER_RANGE_METERS = (1.8, 2.5)
LOW_WATER_RANGE_METERS = (0.3, 1.2)


def is_west_coast(longitude: float) -> bool:
    return longitude < WEST_COAST_MAX_LONGITUDE


def is_tropical(latitude: float) -> bool:
    return abs(latitude) < TROPICAL_MAX_ABS_LATITUDE


class FallbackGenerator:
    """Produce plausible, location-sensitive readings without network access."""

    def __init__(self, seed: int | None = None) -> None:
        self.seed = 0 if seed is None else seed

    def _rng(self, latitude: float, longitude: float, day: int, stream: str) -> random.Random:
        # Adding 0.0 turns a rounded -0.0 into 0.0, as in cache_key.
        lat = round(latitude, 3) + 0.0
        lng = round(longitude, 3) + 0.0
        return random.Random(f"{self.seed}|{lat:.3f}|{lng:.3f}|{day}|{stream}")

    def marine(self, latitude: float, longitude: float, day: int = 0, *, forecast: bool = False) -> Dict[str, Any]:
        """Swell fields for the marine branch of a reading."""
        rng = self._rng(latitude, longitude, day, "marine")
        west = is_west_coast(longitude)
        if forecast:
            height = (3 + rng.random() * 5) if west else (2 + rng.random() * 4)
        else:
            height = (4 + rng.random() * 4) if west else (2 + rng.random() * 3)
        return {
            "swell_height": round_half_up(height, 1),
            "swell_period": round_half_up(8 + rng.random() * 6, 1),
            "swell_direction": degrees_to_compass(WEST_SWELL_DEGREES if west else EAST_SWELL_DEGREES),
        }

    def weather(self, latitude: float, longitude: float, day: int = 0, *, forecast: bool = False) -> Dict[str, Any]:
        """Wind and air-temperature fields for the weather branch of a reading."""
        rng = self._rng(latitude, longitude, day, "weather")
        tropical = is_tropical(latitude)
        fields: Dict[str, Any] = {
            "wind_speed": round_half_up(5 + rng.random() * 10, 1),
            "wind_direction": degrees_to_compass(FALLBACK_WIND_DEGREES),
            "air_temp": round_half_up((80 + rng.random() * 10) if tropical else (65 + rng.random() * 20), 1),
        }
        if forecast:
            fields["precipitation"] = mm_to_inches(rng.random() * 5)
            fields["cloud_cover"] = round_half_up(rng.random() * 100)
        return fields

    def water_temp(self, latitude: float, longitude: float, day: int = 0) -> float:
        """Synthetic sea temperature (°F)."""
        rng = self._rng(latitude, longitude, day, "water")
        if is_tropical(latitude):
            return round_half_up(75 + rng.random() * 10, 1)
        return round_half_up(60 + rng.random() * 15, 1)

    def tide(self, latitude: float, longitude: float, day: int = 0) -> Dict[str, Any]:
        """Current tide fields: height (ft), its Low/Mid/High state and a trend."""
        rng = self._rng(latitude, longitude, day, "tide")
        lowest = SYNTHETIC_TIDE_MEAN_METERS - SYNTHETIC_TIDE_AMPLITUDE_METERS
        highest = SYNTHETIC_TIDE_MEAN_METERS + SYNTHETIC_TIDE_AMPLITUDE_METERS
        height = SYNTHETIC_TIDE_MEAN_METERS + (rng.random() * 2 - 1) * SYNTHETIC_TIDE_AMPLITUDE_METERS
        return {
            "tide": TideState.from_height(height, lowest, highest),
            "tide_height": meters_to_feet(height),
            "tide_trend": rng.choice((TideTrend.RISING, TideTrend.FALLING)),
        }

    def tide_events(self, latitude: float, longitude: float, date: dt.date, day: int = 0) -> List[Dict[str, Any]]:
        """Two lows and two highs for one calendar day, in time order.

        Times are local wall-clock times on `date`; heights are feet above MLLW.
        """
        rng = self._rng(latitude, longitude, day, "tide_events")
        midnight = dt.datetime.combine(date, dt.time())
        events = []
        for start_hour, kind in DAILY_TIDE_PATTERN:
            offset = dt.timedelta(hours=start_hour + rng.random() * TIDE_TURN_WINDOW_HOURS)
            low, high = HIGH_WATER_RANGE_METERS if kind == "high" else LOW_WATER_RANGE_METERS
            events.append({
                "time": (midnight + offset).replace(second=0, microsecond=0),
                "kind": kind,
                "height": meters_to_feet(low + rng.random() * (high - low)),
            })
        return events
