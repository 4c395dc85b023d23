"""
Tidal range classification.

Two interchangeable models turn one day's heights into a tidal range and a
TideCategory:

- Astronomical: mean of detected high tides minus mean of detected low tides,
  scaled by a lunar phase factor (spring/neap cycle, 0.75-1.25) and a lunar
  distance factor (perigee/apogee cycle, 0.95-1.05). The factors are evaluated
  at local noon (UTC+8) of the day.
- Percentile: mean of the top decile minus mean of the bottom decile of the
  physically plausible heights. Ignores timing entirely and is robust to
  single-sample spikes.

Both are pure functions of their inputs.
"""
import math
from datetime import datetime, timezone
from typing import Optional, Sequence

import numpy as np

from .extrema import find_extrema
from .models import ClassifierModel, RangeResult, TideCategory

MS_PER_DAY = 24 * 3600 * 1000

# Reference new moon and lunar perigee (UTC)
NEW_MOON_EPOCH = datetime(2000, 1, 6, 18, 14, 0, tzinfo=timezone.utc)
PERIGEE_EPOCH = datetime(2000, 1, 10, 0, 0, 0, tzinfo=timezone.utc)

SYNODIC_MONTH_MS = 29.530588 * MS_PER_DAY
ANOMALISTIC_MONTH_MS = 27.55455 * MS_PER_DAY

MOON_PHASE_AMPLITUDE = 0.25
PERIGEE_AMPLITUDE = 0.05

# Phase factors are evaluated at local noon
LOCAL_NOON_SUFFIX = 'T12:00:00+08:00'

# Plausible sea-level band for the percentile model (meters)
MIN_VALID_HEIGHT = -2.0
MAX_VALID_HEIGHT = 7.0
MIN_VALID_SAMPLES = 10
DECILE = 0.1

# Strongest first, for threshold lookup
_BANDS = sorted(
    (c for c in TideCategory if c is not TideCategory.INSUFFICIENT_DATA),
    key=lambda c: c.rank,
    reverse=True,
)


def category_for_range(range_m: float) -> TideCategory:
    """Map a tidal range in meters to the strongest band it reaches."""
    for category in _BANDS:
        if range_m >= category.lower_bound:
            return category
    return TideCategory.DEAD


def _epoch_ms(dt: datetime) -> float:
    return dt.timestamp() * 1000.0


def _cycle_factor(date_key: str, epoch: datetime, cycle_ms: float, amplitude: float) -> float:
    """1 + amplitude * cos(phase angle of the day's local noon within a cycle)."""
    noon = datetime.fromisoformat(date_key + LOCAL_NOON_SUFFIX)
    # fmod keeps the sign of the dividend for dates before the epoch
    offset = math.fmod(_epoch_ms(noon) - _epoch_ms(epoch), cycle_ms)
    angle = 2 * math.pi * (offset / cycle_ms)
    return 1 + amplitude * math.cos(angle)


def moon_phase_factor(date_key: str) -> float:
    """Spring/neap correction, 0.75 at the quarters to 1.25 at new moon."""
    return _cycle_factor(date_key, NEW_MOON_EPOCH, SYNODIC_MONTH_MS, MOON_PHASE_AMPLITUDE)


def perigee_factor(date_key: str) -> float:
    """Lunar distance correction, 0.95 near apogee to 1.05 at perigee."""
    return _cycle_factor(date_key, PERIGEE_EPOCH, ANOMALISTIC_MONTH_MS, PERIGEE_AMPLITUDE)


def classify_astronomical(date_key: str, heights: Sequence[float]) -> RangeResult:
    """
    Classify a day using detected extrema and astronomical corrections.

    When the day has at least one high and one low, their means are used;
    otherwise the day's maximum and minimum stand in for them.

    Args:
        date_key: Day as YYYY-MM-DD
        heights: The day's heights in meters, chronological

    Returns:
        RangeResult with the corrected range rounded to centimeters
    """
    h = np.asarray(heights, dtype=float)
    finite = h[np.isfinite(h)]
    if finite.size == 0:
        return RangeResult(TideCategory.INSUFFICIENT_DATA, ClassifierModel.ASTRONOMICAL)

    extrema = find_extrema(h)
    if extrema.high and extrema.low:
        avg_high = float(np.mean(h[list(extrema.high)]))
        avg_low = float(np.mean(h[list(extrema.low)]))
    else:
        avg_high = float(finite.max())
        avg_low = float(finite.min())

    tide_range = avg_high - avg_low
    tide_range *= moon_phase_factor(date_key)
    tide_range *= perigee_factor(date_key)
    tide_range = round(tide_range, 2)

    return RangeResult(
        category=category_for_range(tide_range),
        model=ClassifierModel.ASTRONOMICAL,
        range_m=tide_range,
        avg_high=round(avg_high, 3),
        avg_low=round(avg_low, 3),
    )


def classify_percentile(heights: Sequence[float]) -> RangeResult:
    """
    Classify a day from the outer deciles of its valid heights.

    Heights outside [-2, 7] m or non-finite are discarded. With fewer than
    ten valid samples the day is INSUFFICIENT_DATA.
    """
    h = np.asarray(heights, dtype=float)
    valid = h[np.isfinite(h) & (h >= MIN_VALID_HEIGHT) & (h <= MAX_VALID_HEIGHT)]
    if valid.size < MIN_VALID_SAMPLES:
        return RangeResult(TideCategory.INSUFFICIENT_DATA, ClassifierModel.PERCENTILE)

    ordered = np.sort(valid)
    k = max(int(math.floor(ordered.size * DECILE)), 1)
    avg_high = float(np.mean(ordered[-k:]))
    avg_low = float(np.mean(ordered[:k]))
    tide_range = round(avg_high - avg_low, 2)

    return RangeResult(
        category=category_for_range(tide_range),
        model=ClassifierModel.PERCENTILE,
        range_m=tide_range,
        avg_high=round(avg_high, 3),
        avg_low=round(avg_low, 3),
    )


def classify(
    heights: Sequence[float],
    date_key: Optional[str] = None,
    model: ClassifierModel = ClassifierModel.ASTRONOMICAL,
) -> RangeResult:
    """Classify one day's heights with the selected model."""
    model = ClassifierModel(model)
    if model is ClassifierModel.PERCENTILE:
        return classify_percentile(heights)
    if date_key is None:
        raise ValueError("The astronomical model needs the day's date")
    return classify_astronomical(date_key, heights)
