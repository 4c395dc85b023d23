"""
Tide forecast service.

Runs the whole pipeline for one request: resolve the location, fetch hourly
sea-level samples (the only I/O), then group, detect extrema and classify
each day. Every call works on its own data; nothing is cached between calls.
"""
import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional
from zoneinfo import ZoneInfo

from timezonefinder import TimezoneFinder

from .aggregator import aggregate_days
from .config import Settings
from .locations import LOCATIONS
from .models import ClassifierModel, DaySummary
from .source import OpenMeteoSource

logger = logging.getLogger(__name__)


class TideForecastService:
    """
    Service producing classified day summaries for a location.

    The sea-level source is created per request by `source_factory`, which
    receives the resolved location dict and must return an object with a
    `fetch_samples()` method. It defaults to the Open-Meteo marine API.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        source_factory: Optional[Callable[[Dict], object]] = None,
    ):
        self.settings = settings or Settings()
        self.source_factory = source_factory or self._open_meteo_source
        # Timezone finder for auto-detection
        self._tf = TimezoneFinder()

    def _get_timezone(self, lat: float, lon: float, timezone_str: Optional[str] = None) -> str:
        """Get timezone name for coordinates, auto-detecting if not provided."""
        if timezone_str is None:
            timezone_str = self._tf.timezone_at(lat=lat, lng=lon)
            if timezone_str is None:
                timezone_str = 'UTC'

        try:
            ZoneInfo(timezone_str)
        except (ValueError, KeyError):
            logger.warning(f"Unknown timezone '{timezone_str}', falling back to UTC")
            return 'UTC'
        return timezone_str

    def resolve_location(self, location_key: Optional[str] = None) -> Dict:
        """
        Resolve a preset key, or the configured location, to coordinates and timezone.

        Raises:
            ValueError: If the key is unknown
        """
        settings = self.settings
        if location_key is None:
            location_key = settings.location
            preset = LOCATIONS.get(location_key, {})
            lat = settings.latitude if settings.latitude is not None else preset.get('lat')
            lon = settings.longitude if settings.longitude is not None else preset.get('lon')
            name = preset.get('name', f"{lat:.4f}, {lon:.4f}")
            timezone_str = settings.timezone or preset.get('timezone')
        else:
            if location_key not in LOCATIONS:
                raise ValueError(f"Unknown location: {location_key}")
            preset = LOCATIONS[location_key]
            lat, lon, name = preset['lat'], preset['lon'], preset['name']
            timezone_str = preset.get('timezone')

        return {
            'key': location_key,
            'name': name,
            'lat': lat,
            'lon': lon,
            'timezone': self._get_timezone(lat, lon, timezone_str),
        }

    def _open_meteo_source(self, location: Dict) -> OpenMeteoSource:
        settings = self.settings
        return OpenMeteoSource(
            lat=location['lat'],
            lon=location['lon'],
            timezone_name=location['timezone'],
            forecast_days=settings.forecast_days,
            timeout=settings.api_timeout,
            max_retries=settings.max_retries,
            retry_delay=settings.retry_delay,
        )

    def get_forecast(
        self,
        location_key: Optional[str] = None,
        model: Optional[ClassifierModel] = None,
        day_count: Optional[int] = None,
    ) -> Dict:
        """
        Fetch and summarize the forecast.

        Args:
            location_key: Preset key, or None for the configured location
            model: Classifier model, or None for the configured default
            day_count: Days to keep, or None for the configured count

        Returns:
            Dict with the resolved `location`, the `model` used and the `days`
            (list of DaySummary)

        Raises:
            SourceError, MalformedInputError, EmptyResultError
        """
        location = self.resolve_location(location_key)
        model = ClassifierModel(model or self.settings.classifier_model)
        if day_count is None:
            day_count = self.settings.day_count

        source = self.source_factory(location)
        samples = source.fetch_samples()
        logger.info(f"Fetched {len(samples)} samples for {location['name']}")

        days: List[DaySummary] = aggregate_days(samples, model=model, day_count=day_count)
        return {'location': location, 'model': model, 'days': days}

    def local_now(self, timezone_str: str) -> datetime:
        """Current time in the location's timezone, for the chart's now line."""
        return datetime.now(ZoneInfo(timezone_str))
