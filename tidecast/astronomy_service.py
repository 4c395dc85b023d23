"""
Moon phase information for forecast days.

Shown next to each day's tidal range category: spring tides follow new and
full moon, neap tides the quarters. Phases are evaluated at local noon of
each day with Skyfield and the DE421 ephemeris.
"""

from dataclasses import replace
from datetime import date, datetime, time
from typing import Any, Dict, List, Optional, Sequence
from zoneinfo import ZoneInfo

from skyfield import almanac
from skyfield.api import load

from .models import DaySummary

# Upper phase angle (exclusive) of each name, in degrees
PHASE_NAMES = (
    (5, "New Moon"),
    (85, "Waxing Crescent"),
    (95, "First Quarter"),
    (175, "Waxing Gibbous"),
    (185, "Full Moon"),
    (265, "Waning Gibbous"),
    (275, "Last Quarter"),
    (355, "Waning Crescent"),
)


class AstronomyService:
    """Service for calculating moon phases for calendar days."""

    def __init__(self):
        """Initialize the astronomy service with required data."""
        # Load the ephemeris data
        self.eph = load("de421.bsp")
        self.ts = load.timescale()

    def _get_timezone(self, timezone_str: Optional[str]) -> ZoneInfo:
        try:
            return ZoneInfo(timezone_str or 'UTC')
        except (ValueError, KeyError):
            return ZoneInfo('UTC')

    def get_moon_phases(
        self, date_keys: Sequence[str], timezone_str: Optional[str] = None
    ) -> Dict[str, Dict[str, Any]]:
        """
        Calculate the moon phase at local noon for each day.

        Args:
            date_keys: Days as YYYY-MM-DD
            timezone_str: Timezone the days are expressed in (default UTC)

        Returns:
            Mapping of date key to phase name, phase angle and illumination
        """
        tz = self._get_timezone(timezone_str)
        if not date_keys:
            return {}

        noons = [
            datetime.combine(date.fromisoformat(key), time(12, 0), tzinfo=tz)
            for key in date_keys
        ]
        # BATCHED: one Skyfield call for all days
        t = self.ts.from_datetimes(noons)
        angles = almanac.moon_phase(self.eph, t).degrees

        results = {}
        for key, angle in zip(date_keys, angles):
            angle = float(angle)
            results[key] = {
                "phase": self._get_moon_phase_name(angle),
                "phase_angle": round(angle, 1),
                "illumination": self._get_moon_illumination(angle),
            }
        return results

    def _get_moon_phase_name(self, angle: float) -> str:
        """Name shown on a day card; the four principal phases span 10 degrees each."""
        angle = angle % 360
        for upper, name in PHASE_NAMES:
            if angle < upper:
                return name
        return "New Moon"

    def _get_moon_illumination(self, angle: float) -> int:
        """Lit fraction of the disc in percent, linear in the elongation from new moon."""
        elongation = min(angle % 360, 360 - angle % 360)
        return round(elongation / 180 * 100)

    def annotate_days(
        self, days: List[DaySummary], timezone_str: Optional[str] = None
    ) -> List[DaySummary]:
        """Return copies of the day summaries with their moon phase attached."""
        phases = self.get_moon_phases([d.date_key for d in days], timezone_str)
        return [replace(d, moon=phases.get(d.date_key)) for d in days]
