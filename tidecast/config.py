"""
Runtime configuration.

Values come from environment variables (optionally loaded from a .env file)
with the defaults below.
"""
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

from .chart import LayoutConfig
from .locations import DEFAULT_LOCATION, LOCATIONS
from .models import ClassifierModel

load_dotenv()


def _get_float_env(key: str, default: Optional[float]) -> Optional[float]:
    """Get a float value from environment variable or use default."""
    value = os.environ.get(key)
    if value is not None:
        try:
            return float(value)
        except ValueError:
            pass
    return default


def _get_int_env(key: str, default: int) -> int:
    """Get an int value from environment variable or use default."""
    value = os.environ.get(key)
    if value is not None:
        try:
            return int(value)
        except ValueError:
            pass
    return default


@dataclass
class Settings:
    """
    Forecast settings.

    - location: preset key from tidecast.locations
    - latitude/longitude: override the preset's coordinates
    - timezone: override the preset's timezone (None = preset or auto-detect)
    - classifier_model: default tidal range model
    - day_count: number of days summarized
    - forecast_days: horizon requested from the source
    """
    location: str = DEFAULT_LOCATION
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    timezone: Optional[str] = None
    classifier_model: ClassifierModel = ClassifierModel.ASTRONOMICAL
    day_count: int = 7
    forecast_days: int = 7
    api_timeout: float = 10.0
    max_retries: int = 2
    retry_delay: float = 1.0
    layout: LayoutConfig = field(default_factory=LayoutConfig)

    @classmethod
    def from_env(cls) -> 'Settings':
        settings = cls(
            location=os.environ.get('TIDECAST_LOCATION', DEFAULT_LOCATION),
            latitude=_get_float_env('TIDECAST_LATITUDE', None),
            longitude=_get_float_env('TIDECAST_LONGITUDE', None),
            timezone=os.environ.get('TIDECAST_TIMEZONE') or None,
            classifier_model=os.environ.get(
                'TIDECAST_CLASSIFIER_MODEL', ClassifierModel.ASTRONOMICAL.value
            ),
            day_count=_get_int_env('TIDECAST_DAY_COUNT', 7),
            forecast_days=_get_int_env('TIDECAST_FORECAST_DAYS', 7),
            api_timeout=_get_float_env('TIDECAST_API_TIMEOUT', 10.0),
            max_retries=_get_int_env('TIDECAST_MAX_RETRIES', 2),
            retry_delay=_get_float_env('TIDECAST_RETRY_DELAY', 1.0),
            layout=LayoutConfig(
                width=_get_float_env('TIDECAST_CHART_WIDTH', 1200),
                height=_get_float_env('TIDECAST_CHART_HEIGHT', 600),
                padding=_get_float_env('TIDECAST_CHART_PADDING', 80),
            ),
        )
        return settings.validate()

    def validate(self) -> 'Settings':
        """Normalize enum fields and reject out-of-range values."""
        try:
            self.classifier_model = ClassifierModel(self.classifier_model)
        except ValueError:
            choices = ', '.join(m.value for m in ClassifierModel)
            raise ValueError(
                f"Unknown classifier model '{self.classifier_model}' (expected one of: {choices})"
            )
        if self.location not in LOCATIONS and (self.latitude is None or self.longitude is None):
            raise ValueError(
                f"Unknown location '{self.location}' and no TIDECAST_LATITUDE/TIDECAST_LONGITUDE set"
            )
        if self.latitude is not None and not -90 <= self.latitude <= 90:
            raise ValueError(f"Latitude out of range: {self.latitude}")
        if self.longitude is not None and not -180 <= self.longitude <= 180:
            raise ValueError(f"Longitude out of range: {self.longitude}")
        if self.day_count < 1:
            raise ValueError(f"day_count must be at least 1, got {self.day_count}")
        if not 1 <= self.forecast_days <= 16:
            raise ValueError(f"forecast_days must be between 1 and 16, got {self.forecast_days}")
        if self.api_timeout <= 0:
            raise ValueError(f"api_timeout must be positive, got {self.api_timeout}")
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be non-negative, got {self.max_retries}")
        self.layout.validate()
        return self
