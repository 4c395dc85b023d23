"""
Synthetic Open-Meteo marine payloads for tests.

Heights follow a semidiurnal tide (M2 period, 12.42 h) so every full day has
two highs and two lows.
"""
import math
from datetime import datetime, timedelta

M2_PERIOD_HOURS = 12.42


def semidiurnal_height(hour: float, amplitude: float = 1.8, mean: float = 0.0) -> float:
    """Sea level at `hour` hours from the series start, in meters."""
    return round(mean + amplitude * math.cos(2 * math.pi * (hour - 3.0) / M2_PERIOD_HOURS), 3)


def hourly_times(start: str, hours: int):
    """Open-Meteo style local timestamps ('YYYY-MM-DDTHH:MM')."""
    t0 = datetime.fromisoformat(start)
    return [(t0 + timedelta(hours=h)).strftime('%Y-%m-%dT%H:%M') for h in range(hours)]


def make_payload(start: str = '2025-12-02T00:00', days: int = 7, amplitude: float = 1.8):
    """Payload with `days` full days of hourly semidiurnal heights."""
    hours = days * 24
    return {
        'latitude': 36.0649,
        'longitude': 120.3804,
        'timezone': 'Asia/Shanghai',
        'hourly_units': {'time': 'iso8601', 'sea_level_height_msl': 'm'},
        'hourly': {
            'time': hourly_times(start, hours),
            'sea_level_height_msl': [semidiurnal_height(h, amplitude) for h in range(hours)],
        },
    }


def payload_from_heights(heights, start: str = '2025-12-02T00:00'):
    """Payload with explicit hourly heights."""
    return {
        'hourly': {
            'time': hourly_times(start, len(heights)),
            'sea_level_height_msl': list(heights),
        },
    }


class StubSource:
    """Stand-in for the network source, serving a fixed payload."""

    def __init__(self, payload):
        self.payload = payload
        self.calls = 0

    def fetch_samples(self):
        from tidecast.source import parse_payload

        self.calls += 1
        return parse_payload(self.payload)


class FailingSource:
    """Source whose fetch always raises the given exception."""

    def __init__(self, error: Exception):
        self.error = error

    def fetch_samples(self):
        raise self.error
