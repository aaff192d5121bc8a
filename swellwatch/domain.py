"""Domain vocabulary and strict schemas for surf conditions and ratings.

This module defines the value types that flow between the conditions client,
the quality scorer and any caller: normalized readings, forecast days, spot
preference profiles, quality results and the caller-owned spot record. All
models are frozen, so a cached reading cannot be mutated in place. No
fetching or scoring logic lives here.
"""

from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import List, Tuple

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator

from swellwatch.units import COMPASS_POINTS


class _FrozenModel(BaseModel):
    """Base model with strict extra handling and immutable instances."""

    model_config = ConfigDict(extra="forbid", frozen=True)


def _check_compass(value: str | None) -> str | None:
    if value is not None and value not in COMPASS_POINTS:
        raise ValueError(f"{value!r} is not a 16-point compass direction")
    return value


class Rating(str, Enum):
    """Four-level categorical surf rating."""
    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"

    @classmethod
    def from_score(cls, display_score: float) -> "Rating":
        """Map a 0-10 score onto the rating bands."""
        if display_score >= 8:
            return cls.EXCELLENT
        if display_score >= 6:
            return cls.GOOD
        if display_score >= 4:
            return cls.FAIR
        return cls.POOR


class FetchFailure(str, Enum):
    """Which part of a reading was replaced with synthetic data."""
    WEATHER_UNAVAILABLE = "weather_unavailable"
    MARINE_UNAVAILABLE = "marine_unavailable"
    TIDE_UNAVAILABLE = "tide_unavailable"
    NORMALIZATION_FAILED = "normalization_failed"


class TideState(str, Enum):
    """Coarse tide level used for scoring against a spot profile."""
    LOW = "Low"
    MID = "Mid"
    HIGH = "High"

    @classmethod
    def from_height(cls, height: float, lowest: float, highest: float) -> "TideState":
        """Place a height within the day's range: bottom third Low, top third High."""
        span = highest - lowest
        if span <= 0:
            return cls.MID
        position = (height - lowest) / span
        if position < 1 / 3:
            return cls.LOW
        if position > 2 / 3:
            return cls.HIGH
        return cls.MID


class TideTrend(str, Enum):
    RISING = "Rising"
    FALLING = "Falling"


class TideEventKind(str, Enum):
    HIGH = "high"
    LOW = "low"


class _ReadingModel(_FrozenModel):
    """A reading that records which parts were synthesized."""
    failures: Tuple[FetchFailure, ...] = ()

    @model_validator(mode="before")
    @classmethod
    def drop_derived(cls, data):
        # Serialized readings carry `degraded`; accept them back as input.
        if isinstance(data, dict) and "degraded" in data:
            data = {k: v for k, v in data.items() if k != "degraded"}
        return data

    @computed_field  # type: ignore[prop-decorator]
    @property
    def degraded(self) -> bool:
        """True when any part of the reading is synthetic."""
        return bool(self.failures)


class TideEvent(_FrozenModel):
    """A predicted high or low water."""
    time: dt.datetime
    kind: TideEventKind
    height: float  # ft above MLLW


class NormalizedConditions(_ReadingModel):
    """A single reading in imperial units with compass directions."""
    swell_height: float = Field(ge=0)  # ft
    swell_period: float = Field(ge=0)  # s
    swell_direction: str
    wind_speed: float = Field(ge=0)  # mph
    wind_direction: str
    wind_gusts: float | None = Field(default=None, ge=0)  # mph
    water_temp: float  # °F
    air_temp: float  # °F
    timestamp: dt.datetime

    feels_like: float | None = None  # °F
    humidity: float | None = None  # %
    pressure: float | None = None  # hPa
    visibility: float | None = None  # ft
    uv_index: float | None = None
    cloud_cover: float | None = None  # %
    precipitation: float | None = None  # in
    weather_code: int | None = None
    weather_description: str | None = None

    wind_wave_height: float | None = None  # ft
    wind_wave_period: float | None = None  # s
    wind_wave_direction: str | None = None

    tide: TideState | None = None
    tide_height: float | None = None  # ft above MLLW
    tide_trend: TideTrend | None = None
    tide_events: Tuple[TideEvent, ...] = ()  # upcoming extremes

    @field_validator("swell_direction", "wind_direction", "wind_wave_direction")
    @classmethod
    def check_directions(cls, v: str | None) -> str | None:
        return _check_compass(v)


class DailyConditions(_ReadingModel):
    """One forecast day, converted like NormalizedConditions."""
    date: dt.date
    swell_height: float = Field(ge=0)
    swell_period: float = Field(ge=0)
    swell_direction: str
    wind_speed: float = Field(ge=0)
    wind_direction: str
    wind_gusts: float | None = Field(default=None, ge=0)
    air_temp: float  # daily max, °F
    air_temp_min: float | None = None
    water_temp: float
    precipitation: float = Field(default=0.0, ge=0)  # daily sum, in
    cloud_cover: float = Field(default=50.0, ge=0, le=100)  # daily mean, %
    weather_code: int | None = None
    weather_description: str | None = None
    tide_events: Tuple[TideEvent, ...] = ()

    @field_validator("swell_direction", "wind_direction")
    @classmethod
    def check_directions(cls, v: str) -> str:
        return _check_compass(v)


class SizeRange(_FrozenModel):
    """Preferred swell size band in feet."""
    min: float = Field(ge=0)
    max: float = Field(ge=0)


class SpotPreferenceProfile(_FrozenModel):
    """A spot's declared best conditions.

    Direction entries may be abbreviations ("NE") or names ("Northeast").
    `swell_size` is free text such as "4-10ft"; the scorer parses it.
    """
    swell_direction: List[str] = Field(default_factory=list)
    wind_direction: List[str] = Field(default_factory=list)
    tide: List[str] = Field(default_factory=list)
    swell_size: str = "2-8ft"


class QualityBreakdown(_FrozenModel):
    """Per-factor sub-scores, each in [0, 10]."""
    height: float = Field(ge=0, le=10)
    wind: float = Field(ge=0, le=10)
    period: float = Field(ge=0, le=10)
    tide: float = Field(ge=0, le=10)
    temperature: float = Field(ge=0, le=10)  # reported, not weighted


class QualityResult(_FrozenModel):
    """Bounded suitability score; the rating is always derived from it."""
    score: float = Field(ge=0, le=10)
    breakdown: QualityBreakdown | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def display_score(self) -> int:
        """Score rounded half-up for display and rating."""
        return int(self.score + 0.5)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def rating(self) -> Rating:
        return Rating.from_score(self.display_score)


class Location(_FrozenModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class SpotConditions(_FrozenModel):
    """Conditions as shown on a spot card. Directions are free text here."""
    swell_height: float = Field(ge=0)
    swell_period: float = Field(ge=0)
    swell_direction: str
    wind_speed: float = Field(ge=0)
    wind_direction: str
    tide: str | None = None
    water_temp: float
    air_temp: float


class SpotForecastDay(_FrozenModel):
    """Short forecast entry attached to a spot card."""
    date: dt.date
    swell_height: float = Field(ge=0)
    swell_period: float = Field(ge=0)
    swell_direction: str
    wind_speed: float = Field(ge=0)
    wind_direction: str
    tides: List[TideEvent] = Field(default_factory=list)


class SurfSpot(_FrozenModel):
    """Caller-owned spot record; updates always produce a new instance."""
    id: str
    name: str
    location: Location
    best_conditions: SpotPreferenceProfile
    current_conditions: SpotConditions | None = None
    forecast: List[SpotForecastDay] = Field(default_factory=list)
    conditions_rating: Rating | None = None
    quality_score: int | None = Field(default=None, ge=0, le=10)
    description: str | None = None
    difficulty: str | None = None
    region: str | None = None
    state: str | None = None
    last_updated: dt.datetime | None = None
