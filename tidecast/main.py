import logging
import uuid
from functools import lru_cache
from typing import Dict, Literal, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.responses import HTMLResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

from .astronomy_service import AstronomyService
from .chart import LayoutConfig, map_day
from .config import Settings
from .errors import TideDataError
from .locations import LOCATIONS
from .render import render_week_html
from .tide_service import TideForecastService


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"
        return response


app = FastAPI(
    title="Tidecast API",
    description="Weekly sea-level forecast with high/low tides and tidal range categories",
    version="1.0.0",
)

# Set up rate limiter
limiter = Limiter(key_func=get_remote_address)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Add security headers middleware
app.add_middleware(SecurityHeadersMiddleware)

# Initialize services
settings = Settings.from_env()
tide_service = TideForecastService(settings)


@lru_cache(maxsize=1)
def get_astronomy_service() -> AstronomyService:
    """Ephemeris loading is slow; only done when moon phases are requested."""
    return AstronomyService()


ModelParam = Optional[Literal["astronomical", "percentile"]]


def _get_forecast(location: Optional[str], model: Optional[str], days: Optional[int], moon: bool = False) -> Dict:
    """Run the pipeline, mapping pipeline failures to HTTP errors."""
    try:
        forecast = tide_service.get_forecast(location_key=location, model=model, day_count=days)
    except ValueError as e:
        raise HTTPException(400, detail=str(e))
    except TideDataError as e:
        logger.warning(f"Tide forecast failed: {e}")
        raise HTTPException(502, detail=str(e))

    if moon:
        forecast['days'] = get_astronomy_service().annotate_days(
            forecast['days'], forecast['location']['timezone']
        )
    return forecast


@app.get("/api/v1/forecast")
async def get_forecast(
    location: Optional[str] = Query(None, description="Preset location key (see /api/v1/locations)"),
    model: ModelParam = Query(
        None,
        description="Tidal range model: 'astronomical' (extrema + lunar corrections) or 'percentile' (outer deciles)",
    ),
    days: Optional[int] = Query(None, ge=1, le=16, description="Number of days to summarize"),
    moon: bool = Query(False, description="Include the moon phase of each day"),
):
    """
    Get the classified multi-day tide forecast.

    Each day includes:
    - Tidal range category and the numeric range
    - High and low tide times (HH:MM)
    - All hourly samples, with high/low samples labelled in `type`

    Times are in the location's local timezone as reported by the source.
    """
    try:
        forecast = _get_forecast(location, model, days, moon)
        return {
            "location": forecast["location"],
            "model": forecast["model"].value,
            "days": [day.to_dict() for day in forecast["days"]],
        }
    except HTTPException:
        raise
    except Exception as e:
        error_id = uuid.uuid4().hex[:8]
        logger.exception(f"Error {error_id} in get_forecast")
        raise HTTPException(500, detail=f"Internal error (ref: {error_id})")


@app.get("/api/v1/forecast/{date}/chart")
async def get_day_chart(
    date: str,
    location: Optional[str] = Query(None, description="Preset location key"),
    model: ModelParam = Query(None, description="Tidal range model"),
    width: float = Query(settings.layout.width, gt=0, le=4000, description="Canvas width in pixels"),
    height: float = Query(settings.layout.height, gt=0, le=4000, description="Canvas height in pixels"),
    padding: float = Query(settings.layout.padding, ge=0, le=1000, description="Canvas padding in pixels"),
    smooth: bool = Query(True, description="Draw the curve with quadratic smoothing"),
):
    """
    Get the chart geometry of one forecast day.

    Returns pixel coordinates for every sample, the quadratic segments of the
    smoothed curve, axis ticks, gridlines, high/low markers with label
    positions, time labels and, for today, the position of the now line.
    """
    try:
        layout = LayoutConfig(width=width, height=height, padding=padding)
        try:
            layout.validate()
        except ValueError as e:
            raise HTTPException(400, detail=str(e))

        forecast = _get_forecast(location, model, None)
        day = next((d for d in forecast["days"] if d.date_key == date), None)
        if day is None:
            raise HTTPException(404, detail=f"No forecast for {date}")

        now = tide_service.local_now(forecast["location"]["timezone"])
        geometry = map_day(day, layout, now=now, smooth=smooth)
        result = geometry.to_dict()
        result["tide_type"] = day.tidal_range.to_dict()
        return result
    except HTTPException:
        raise
    except Exception as e:
        error_id = uuid.uuid4().hex[:8]
        logger.exception(f"Error {error_id} in get_day_chart")
        raise HTTPException(500, detail=f"Internal error (ref: {error_id})")


@app.get("/api/v1/forecast/page", response_class=HTMLResponse)
@limiter.limit("30/minute")
async def get_forecast_page(
    request: Request,
    location: Optional[str] = Query(None, description="Preset location key"),
    model: ModelParam = Query(None, description="Tidal range model"),
    moon: bool = Query(False, description="Show the moon phase of each day"),
):
    """
    Get an HTML page with one annotated tide chart per forecast day.

    Rate limited to 30 requests per minute per IP.
    """
    try:
        forecast = _get_forecast(location, model, None, moon)
        loc = forecast["location"]
        html = render_week_html(
            forecast["days"],
            title=f"{loc['name']} - tide forecast",
            layout=settings.layout,
            now=tide_service.local_now(loc["timezone"]),
        )
        return HTMLResponse(content=html)
    except HTTPException:
        raise
    except Exception as e:
        error_id = uuid.uuid4().hex[:8]
        logger.exception(f"Error {error_id} in get_forecast_page")
        raise HTTPException(500, detail=f"Internal error (ref: {error_id})")


@app.get("/api/v1/locations")
async def get_locations():
    """List the preset locations."""
    return [
        {"key": key, "name": loc["name"], "lat": loc["lat"], "lon": loc["lon"], "timezone": loc["timezone"]}
        for key, loc in LOCATIONS.items()
    ]


@app.get("/health")
async def health():
    return {
        "status": "healthy",
        "source": "open-meteo marine",
        "classifier_model": settings.classifier_model.value,
    }
