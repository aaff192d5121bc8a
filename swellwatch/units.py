"""Unit conversions and compass helpers shared by every normalization path.

All public converters round half-up to one decimal so values read the same
whether they came from a live provider or from the fallback generator.
"""

from __future__ import annotations

import math

FEET_PER_METER = 3.28084
MPH_PER_MPS = 2.237
INCHES_PER_MM = 1 / 25.4

COMPASS_POINTS = (
    "N",
    "NNE",
    "NE",
    "ENE",
    "E",
    "ESE",
    "SE",
    "SSE",
    "S",
    "SSW",
    "SW",
    "WSW",
    "W",
    "WNW",
    "NW",
    "NNW",
)
SECTOR_WIDTH_DEGREES = 360.0 / len(COMPASS_POINTS)  # 22.5

# Full names used by spot profiles ("East", "North-Northwest") -> abbreviations.
_COMPASS_NAMES = {
    "north": "N",
    "northnortheast": "NNE",
    "northeast": "NE",
    "eastnortheast": "ENE",
    "east": "E",
    "eastsoutheast": "ESE",
    "southeast": "SE",
    "southsoutheast": "SSE",
    "south": "S",
    "southsouthwest": "SSW",
    "southwest": "SW",
    "westsouthwest": "WSW",
    "west": "W",
    "westnorthwest": "WNW",
    "northwest": "NW",
    "northnorthwest": "NNW",
}


def round_half_up(value: float, digits: int = 0) -> float:
    """Round like a display would: .5 always goes up, never to even."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def meters_to_feet(meters: float) -> float:
    return round_half_up(meters * FEET_PER_METER, 1)


def feet_to_meters(feet: float) -> float:
    return round_half_up(feet / FEET_PER_METER, 2)


def mps_to_mph(mps: float) -> float:
    return round_half_up(mps * MPH_PER_MPS, 1)


def mph_to_mps(mph: float) -> float:
    return round_half_up(mph / MPH_PER_MPS, 2)


def celsius_to_fahrenheit(celsius: float) -> float:
    return round_half_up(celsius * 9 / 5 + 32, 1)


def fahrenheit_to_celsius(fahrenheit: float) -> float:
    return round_half_up((fahrenheit - 32) * 5 / 9, 1)


def mm_to_inches(mm: float) -> float:
    return round_half_up(mm * INCHES_PER_MM, 2)


def degrees_to_compass(degrees: float) -> str:
    """Map a bearing to one of the 16 compass points.

    Sector index is round(degrees / 22.5) mod 16, so 11.25 is already NNE and
    any multiple of 360 maps to the same point.
    """
    index = int(math.floor(degrees / SECTOR_WIDTH_DEGREES + 0.5)) % len(COMPASS_POINTS)
    return COMPASS_POINTS[index]


def compass_to_degrees(point: str) -> float:
    """Return the center bearing of a compass point (abbreviation or name)."""
    abbreviation = normalize_compass(point)
    if abbreviation is None:
        raise ValueError(f"Unknown compass direction: {point!r}")
    return COMPASS_POINTS.index(abbreviation) * SECTOR_WIDTH_DEGREES


def normalize_compass(direction: str | None) -> str | None:
    """Return the abbreviation for `direction`, or None if unrecognized.

    Accepts "E", "e", "East", "north-northwest" and "North Northwest".
    """
    if not direction:
        return None
    cleaned = direction.strip()
    if cleaned.upper() in COMPASS_POINTS:
        return cleaned.upper()
    key = cleaned.lower().replace("-", "").replace(" ", "").replace("_", "")
    return _COMPASS_NAMES.get(key)


def estimate_water_temp(latitude: float, air_temp_f: float) -> float:
    """Guess sea temperature (°F) when no provider supplies one.

    Higher latitudes bias colder; never below 50°F.
    """
    bias = -10 if abs(latitude) > 40 else 10
    return max(50.0, round_half_up(air_temp_f - 10 + bias))
