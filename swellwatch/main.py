"""FastAPI application setup for SwellWatch."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from swellwatch.api import router as api_router
from swellwatch.conditions_client import ConditionsClient
from swellwatch.config import settings
from swellwatch.errors import InvalidCoordinate
from swellwatch.refresh import PeriodicCacheRefresher
from utils.logging_utils import get_tagged_logger, setup_logging

logger = get_tagged_logger(__name__, tag="swellwatch/main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging and run the cache refresher for the app's lifetime."""
    setup_logging(level=settings.log_level)
    refresher = PeriodicCacheRefresher(app.state.conditions_client.clear_cache, settings.auto_refresh_seconds)
    refresher.start()
    app.state.refresher = refresher
    try:
        yield
    finally:
        refresher.stop()


app = FastAPI(title="SwellWatch", lifespan=lifespan)
app.state.conditions_client = ConditionsClient.from_settings(settings)


@app.exception_handler(InvalidCoordinate)
async def invalid_coordinate_handler(request: Request, exc: InvalidCoordinate):
    logger.info("Rejected request with invalid coordinate", extra={"path": request.url.path})
    return JSONResponse(status_code=422, content={"detail": str(exc)})


# API routes
app.include_router(api_router, prefix="/v1")
