"""HTTP API for the surf conditions service."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel

from swellwatch.conditions_client import MAX_FORECAST_DAYS, ConditionsClient
from swellwatch.domain import (
    DailyConditions,
    NormalizedConditions,
    QualityResult,
    SpotPreferenceProfile,
    SurfSpot,
)
from swellwatch.quality import QualityScorer
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="swellwatch/api")

router = APIRouter()


class ScoreRequest(BaseModel):
    """Conditions plus a spot profile to be rated."""
    conditions: NormalizedConditions
    profile: SpotPreferenceProfile
    tide: Optional[str] = None


class CacheClearResponse(BaseModel):
    cleared: int


class HealthResponse(BaseModel):
    status: str = "ok"


def get_conditions_client(request: Request) -> ConditionsClient:
    """Return the client composed by the application at startup."""
    return request.app.state.conditions_client


def get_scorer(client: ConditionsClient = Depends(get_conditions_client)) -> QualityScorer:
    return client.scorer


@router.get("/health", response_model=HealthResponse)
def health():
    return HealthResponse()


@router.get("/conditions", response_model=NormalizedConditions)
def get_conditions(
    lat: float,
    lng: float,
    client: ConditionsClient = Depends(get_conditions_client),
):
    """Current normalized conditions for a coordinate."""
    logger.info("Conditions requested", extra={"latitude": lat, "longitude": lng})
    return client.fetch_conditions(lat, lng)


@router.get("/forecast", response_model=List[DailyConditions])
def get_forecast(
    lat: float,
    lng: float,
    days: Optional[int] = Query(default=None, ge=1, le=MAX_FORECAST_DAYS),
    client: ConditionsClient = Depends(get_conditions_client),
):
    """Daily forecast for a coordinate, starting today."""
    logger.info("Forecast requested", extra={"latitude": lat, "longitude": lng, "days": days})
    return client.fetch_forecast(lat, lng, days)


@router.post("/score", response_model=QualityResult)
def score_conditions(req: ScoreRequest, scorer: QualityScorer = Depends(get_scorer)):
    """Rate supplied conditions against a spot profile.

    Without an explicit tide the reading's own tide state is used.
    """
    tide = req.tide
    if tide is None and req.conditions.tide is not None:
        tide = req.conditions.tide.value
    return scorer.score(req.conditions, req.profile, tide)


@router.post("/spots/live", response_model=SurfSpot)
def update_spot(spot: SurfSpot, client: ConditionsClient = Depends(get_conditions_client)):
    """Return the spot with live conditions, a short forecast and a rating."""
    return client.update_spot_with_live_data(spot)


@router.post("/spots/live/batch", response_model=List[SurfSpot])
def update_spots(spots: List[SurfSpot], client: ConditionsClient = Depends(get_conditions_client)):
    """Update several spots in polite batches, preserving order."""
    logger.info(f"Updating {len(spots)} spots")
    return client.update_spots(spots)


@router.post("/cache/clear", response_model=CacheClearResponse)
def clear_cache(client: ConditionsClient = Depends(get_conditions_client)):
    """Drop cached readings so the next request fetches live data."""
    return CacheClearResponse(cleared=client.clear_cache())
