"""Exception hierarchy for SwellWatch."""


class SwellWatchError(Exception):
    """Base exception for all SwellWatch errors."""


class UpstreamUnavailable(SwellWatchError):
    """A provider request failed, returned a non-success status, or sent junk."""

    def __init__(self, provider: str, detail: str):
        self.provider = provider
        self.detail = detail
        super().__init__(f"{provider} unavailable: {detail}")


class InvalidCoordinate(SwellWatchError, ValueError):
    """Latitude or longitude is outside the valid range."""

    def __init__(self, latitude: float, longitude: float):
        self.latitude = latitude
        self.longitude = longitude
        super().__init__(
            f"Invalid coordinate ({latitude}, {longitude}): "
            "latitude must be in [-90, 90] and longitude in [-180, 180]"
        )


class MalformedProfile(SwellWatchError, ValueError):
    """A spot's swell size range does not look like '<min>-<max>ft'."""

    def __init__(self, swell_size: str):
        self.swell_size = swell_size
        super().__init__(f"Malformed swell size range: '{swell_size}'")
