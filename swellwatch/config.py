"""Application configuration pulled from environment variables via pydantic."""
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="config")


class Settings(BaseSettings):
    """Environment-driven configuration for the SwellWatch service."""
    model_config = SettingsConfigDict(env_prefix="SWELLWATCH_", extra="ignore")

    data_source: str = "open_meteo"  # options: open_meteo, offline
    weather_api_url: str = "https://api.open-meteo.com/v1/forecast"
    marine_api_url: str = "https://marine-api.open-meteo.com/v1/marine"
    tide_api_url: str = "https://api.tidesandcurrents.noaa.gov/api/prod/datagetter"
    request_timeout_seconds: float = Field(default=10.0, gt=0)
    request_retries: int = Field(default=3, ge=0)
    request_backoff_factor: float = Field(default=0.2, ge=0)
    cache_ttl_seconds: float = Field(default=600.0, gt=0)  # 10 minutes
    forecast_days: int = Field(default=7, ge=1, le=16)
    batch_size: int = Field(default=3, ge=1)
    batch_delay_seconds: float = Field(default=1.0, ge=0)
    fallback_seed: int | None = None
    auto_refresh_seconds: float = Field(default=600.0, ge=0)  # 0 disables
    log_level: str = "INFO"

    @field_validator("weather_api_url", "marine_api_url", "tide_api_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize endpoint URLs so query strings attach cleanly."""
        return str(v).rstrip("/")

    @field_validator("log_level", mode="after")
    @classmethod
    def upper_log_level(cls, v: str) -> str:
        return v.upper()


settings = Settings()


if __name__ == "__main__":
    logger.logger.setLevel("DEBUG")
    logger.debug(f"Loaded settings: {settings.model_dump_json(indent=4)}")
