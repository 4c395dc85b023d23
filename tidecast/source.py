"""
Open-Meteo marine sea-level source.

Fetches hourly `sea_level_height_msl` for a location and validates the
response once, at this boundary, into a list of Sample. The rest of the
pipeline only ever sees validated samples.
"""
import json
import logging
import time
import urllib.error
import urllib.parse
import urllib.request
from datetime import date
from typing import Any, Dict, List, Optional

from .errors import MalformedInputError, SourceError
from .models import Sample, date_key_of

logger = logging.getLogger(__name__)

BASE_URL = 'https://marine-api.open-meteo.com/v1/marine'
HEIGHT_FIELD = 'sea_level_height_msl'

# Maximum response size from the upstream API (1 MB)
MAX_RESPONSE_SIZE = 1 * 1024 * 1024


def safe_read_response(response, max_size: int = MAX_RESPONSE_SIZE) -> bytes:
    """
    Read an HTTP response body with a size limit.

    Args:
        response: urllib response object
        max_size: Maximum allowed response size in bytes

    Returns:
        Response body as bytes

    Raises:
        SourceError: If the response exceeds the size limit
    """
    content_length = response.headers.get('Content-Length')
    if content_length and int(content_length) > max_size:
        raise SourceError(f"Response too large: {content_length} bytes (max: {max_size})")

    # Read one extra byte to detect overflow
    data = response.read(max_size + 1)
    if len(data) > max_size:
        raise SourceError(f"Response exceeded size limit of {max_size} bytes")

    return data


def _coerce_height(value: Any, index: int) -> float:
    if value is None:
        return float('nan')
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedInputError(
            f'hourly.{HEIGHT_FIELD}',
            f"Malformed tide payload: non-numeric height at index {index}",
        )
    return float(value)


def _has_calendar_date(timestamp: str) -> bool:
    try:
        date.fromisoformat(date_key_of(timestamp))
    except ValueError:
        return False
    return True


def parse_payload(payload: Any) -> List[Sample]:
    """
    Validate an Open-Meteo marine payload and return its samples.

    Expected shape: {"hourly": {"time": [str], "sea_level_height_msl": [float|null]}}
    with both arrays of equal length. Missing heights (null) become NaN so the
    sample keeps its place in the day; classifiers skip them.

    Raises:
        MalformedInputError: naming the offending field
    """
    if not isinstance(payload, dict) or not isinstance(payload.get('hourly'), dict):
        raise MalformedInputError('hourly')

    hourly = payload['hourly']
    times = hourly.get('time')
    heights = hourly.get(HEIGHT_FIELD)

    if not isinstance(times, list):
        raise MalformedInputError('hourly.time')
    if not isinstance(heights, list):
        raise MalformedInputError(f'hourly.{HEIGHT_FIELD}')
    if len(times) != len(heights):
        raise MalformedInputError(
            f'hourly.{HEIGHT_FIELD}',
            f"Malformed tide payload: {len(times)} timestamps but {len(heights)} heights",
        )

    samples = []
    for idx, (ts, height) in enumerate(zip(times, heights)):
        if not isinstance(ts, str) or not _has_calendar_date(ts):
            raise MalformedInputError(
                'hourly.time',
                f"Malformed tide payload: invalid timestamp at index {idx}",
            )
        samples.append(Sample(timestamp=ts, height_m=_coerce_height(height, idx)))

    return samples


class OpenMeteoSource:
    """
    Time series source backed by the Open-Meteo marine API.

    Timestamps come back in the requested timezone, so day grouping follows
    that local calendar.
    """

    def __init__(
        self,
        lat: float,
        lon: float,
        timezone_name: str,
        forecast_days: int = 7,
        timeout: float = 10.0,
        max_retries: int = 2,
        retry_delay: float = 1.0,
        base_url: str = BASE_URL,
    ):
        self.lat = lat
        self.lon = lon
        self.timezone_name = timezone_name
        self.forecast_days = forecast_days
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.base_url = base_url

    def build_url(self) -> str:
        params = {
            'latitude': self.lat,
            'longitude': self.lon,
            'hourly': HEIGHT_FIELD,
            'timezone': self.timezone_name,
            'forecast_days': self.forecast_days,
        }
        return f"{self.base_url}?{urllib.parse.urlencode(params)}"

    def fetch_payload(self) -> Dict:
        """
        Fetch the raw JSON payload.

        Transport errors and 5xx responses are retried up to max_retries times
        with a fixed delay; 4xx responses fail immediately.

        Raises:
            SourceError: on HTTP or transport failure
        """
        url = self.build_url()
        attempts = self.max_retries + 1
        last_error: Optional[SourceError] = None

        for attempt in range(1, attempts + 1):
            try:
                with urllib.request.urlopen(url, timeout=self.timeout) as response:
                    return json.loads(safe_read_response(response).decode())
            except urllib.error.HTTPError as e:
                last_error = SourceError(f"Tide API returned status {e.code}", status=e.code)
                if e.code < 500:
                    raise last_error from e
            except (urllib.error.URLError, TimeoutError, OSError) as e:
                last_error = SourceError(f"Tide API request failed: {e}")
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                raise SourceError(f"Tide API returned invalid JSON: {e}") from e

            if attempt < attempts:
                logger.warning(f"Tide fetch attempt {attempt}/{attempts} failed: {last_error}")
                time.sleep(self.retry_delay)

        logger.warning(f"Tide fetch failed after {attempts} attempts: {last_error}")
        raise last_error

    def fetch_samples(self) -> List[Sample]:
        """Fetch and validate hourly samples."""
        return parse_payload(self.fetch_payload())
