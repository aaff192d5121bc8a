"""Surf quality scoring: normalized conditions + a spot profile -> 0-10 rating.

The score is a weighted sum of four sub-scores, each in [0, 10]:

- height (30%): full marks inside the spot's size range, a linear ramp below
  it, and a gentler penalty above it (too small is worse than too big)
- wind (25%): tiered speed penalty plus a direction bonus or penalty
- period (20%): longer is better, saturating at 15 s
- tide (15%): full marks when the spot works on all tides or the current one,
  otherwise a minor demerit

Water-temperature comfort is computed alongside for display but is not
weighted into the score.
"""

from __future__ import annotations

import re
from typing import Iterable, Optional

from swellwatch.domain import (
    NormalizedConditions,
    QualityBreakdown,
    QualityResult,
    SizeRange,
    SpotPreferenceProfile,
)
from swellwatch.errors import MalformedProfile
from swellwatch.units import normalize_compass
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="quality")

HEIGHT_WEIGHT = 0.30
WIND_WEIGHT = 0.25
PERIOD_WEIGHT = 0.20
TIDE_WEIGHT = 0.15

DEFAULT_SIZE_RANGE = SizeRange(min=2, max=8)
OVERSIZE_PENALTY_PER_FOOT = 0.5
PERIOD_SATURATION_SECONDS = 15.0
TIDE_MISMATCH_SCORE = 6.0
ALL_TIDES = "all"

# (exclusive lower bound mph, penalty), checked strongest first
WIND_SPEED_PENALTIES = ((20.0, 6.0), (15.0, 4.0), (10.0, 2.0))
FAVORABLE_WIND_BONUS = 2.0
UNFAVORABLE_WIND_PENALTY = 3.0

# (minimum water temp °F, comfort score), warmest first
WATER_TEMP_TIERS = ((70.0, 10.0), (65.0, 8.0), (60.0, 6.0), (55.0, 4.0))
COLDEST_WATER_SCORE = 2.0

_SIZE_RANGE_RE = re.compile(r"(\d+(?:\.\d+)?)\s*-\s*(\d+(?:\.\d+)?)\s*ft", re.IGNORECASE)


def _clamp_score(score: float) -> float:
    """Clamp a score to the 0-10 range."""
    return max(0.0, min(10.0, score))


def parse_swell_size(swell_size: str) -> SizeRange:
    """Parse '4-10ft' into a SizeRange; raise MalformedProfile otherwise."""
    match = _SIZE_RANGE_RE.search(swell_size or "")
    if not match:
        raise MalformedProfile(swell_size)
    low, high = float(match.group(1)), float(match.group(2))
    if low > high:
        raise MalformedProfile(swell_size)
    return SizeRange(min=low, max=high)


def size_range_or_default(swell_size: str) -> SizeRange:
    """Parse a size range, falling back to 2-8ft for malformed strings."""
    try:
        return parse_swell_size(swell_size)
    except MalformedProfile as exc:
        logger.debug("%s; using default %s-%sft", exc, DEFAULT_SIZE_RANGE.min, DEFAULT_SIZE_RANGE.max)
        return DEFAULT_SIZE_RANGE


def _direction_matches(direction: str, accepted: Iterable[str]) -> bool:
    """Compare compass directions after normalizing names like 'East' to 'E'."""
    wanted = normalize_compass(direction)
    if wanted is None:
        return False
    return any(normalize_compass(option) == wanted for option in accepted)


def height_score(swell_height: float, size_range: SizeRange) -> float:
    if size_range.min <= swell_height <= size_range.max:
        return 10.0
    if swell_height < size_range.min:
        return _clamp_score(10.0 * swell_height / size_range.min)
    excess = swell_height - size_range.max
    return max(0.0, 10.0 - excess * OVERSIZE_PENALTY_PER_FOOT)


def wind_score(wind_speed: float, wind_direction: str, accepted_directions: Iterable[str]) -> float:
    score = 10.0
    for threshold, penalty in WIND_SPEED_PENALTIES:
        if wind_speed > threshold:
            score -= penalty
            break
    if _direction_matches(wind_direction, accepted_directions):
        score += FAVORABLE_WIND_BONUS
    else:
        score -= UNFAVORABLE_WIND_PENALTY
    return _clamp_score(score)


def period_score(swell_period: float) -> float:
    return min(swell_period / PERIOD_SATURATION_SECONDS, 1.0) * 10.0


def tide_score(tide: Optional[str], accepted_tides: Iterable[str]) -> float:
    accepted = {t.strip().lower() for t in accepted_tides}
    if ALL_TIDES in accepted:
        return 10.0
    if tide is not None and tide.strip().lower() in accepted:
        return 10.0
    return TIDE_MISMATCH_SCORE


def temperature_score(water_temp: float) -> float:
    for minimum, score in WATER_TEMP_TIERS:
        if water_temp >= minimum:
            return score
    return COLDEST_WATER_SCORE


class QualityScorer:
    """Score normalized conditions against a spot's preference profile."""

    def score(
        self,
        conditions: NormalizedConditions,
        profile: SpotPreferenceProfile,
        tide: Optional[str] = None,
    ) -> QualityResult:
        """
        Combine the weighted sub-scores into a QualityResult.

        Args:
            conditions: Normalized reading (imperial units, compass directions)
            profile: The spot's declared best conditions
            tide: Current tide state ("Low", "Mid", "High", ...), if known

        Returns:
            QualityResult with the clamped score, its rating and a breakdown
        """
        if conditions is None or profile is None:
            raise TypeError("conditions and profile are required")

        size_range = size_range_or_default(profile.swell_size)
        breakdown = QualityBreakdown(
            height=height_score(conditions.swell_height, size_range),
            wind=wind_score(conditions.wind_speed, conditions.wind_direction, profile.wind_direction),
            period=period_score(conditions.swell_period),
            tide=tide_score(tide, profile.tide),
            temperature=temperature_score(conditions.water_temp),
        )
        total = (
            breakdown.height * HEIGHT_WEIGHT
            + breakdown.wind * WIND_WEIGHT
            + breakdown.period * PERIOD_WEIGHT
            + breakdown.tide * TIDE_WEIGHT
        )
        result = QualityResult(score=_clamp_score(total), breakdown=breakdown)
        logger.debug(
            "Scored conditions %.2f (%s)", result.score, result.rating.value,
            extra={"breakdown": breakdown.model_dump()},
        )
        return result
