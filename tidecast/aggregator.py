"""
Group hourly samples into classified day summaries.
"""
from typing import Any, Dict, List, Sequence

from .classifier import classify
from .errors import EmptyResultError
from .extrema import find_extrema
from .models import ClassifierModel, DaySummary, Sample, TideEvent, TideKind
from .source import parse_payload

DEFAULT_DAY_COUNT = 7


def group_by_day(samples: Sequence[Sample]) -> Dict[str, List[Sample]]:
    """
    Partition samples by calendar date, keeping first-appearance order.

    Samples are assumed chronological already and are not re-sorted.
    """
    days: Dict[str, List[Sample]] = {}
    for sample in samples:
        days.setdefault(sample.date_key, []).append(sample)
    return days


def summarize_day(
    date_key: str,
    samples: Sequence[Sample],
    model: ClassifierModel = ClassifierModel.ASTRONOMICAL,
) -> DaySummary:
    """Run extrema detection and range classification on one day."""
    heights = [s.height_m for s in samples]
    extrema = find_extrema(heights)
    high = set(extrema.high)
    low = set(extrema.low)

    events = []
    for idx, sample in enumerate(samples):
        if idx in high:
            kind = TideKind.HIGH
        elif idx in low:
            kind = TideKind.LOW
        else:
            kind = TideKind.NONE
        events.append(TideEvent(timestamp=sample.timestamp, height_m=sample.height_m, kind=kind))

    return DaySummary(
        date_key=date_key,
        tidal_range=classify(heights, date_key=date_key, model=model),
        events=tuple(events),
    )


def aggregate_days(
    samples: Sequence[Sample],
    model: ClassifierModel = ClassifierModel.ASTRONOMICAL,
    day_count: int = DEFAULT_DAY_COUNT,
) -> List[DaySummary]:
    """
    Build one DaySummary per calendar day, for the first `day_count` days.

    Args:
        samples: Chronological samples, possibly spanning many days
        model: Range classification model applied to every day
        day_count: Maximum number of days to keep, in order of first appearance

    Returns:
        Day summaries in chronological order

    Raises:
        EmptyResultError: If no day could be built
    """
    if day_count < 1:
        raise ValueError(f"day_count must be at least 1, got {day_count}")

    days = group_by_day(samples)
    date_keys = list(days)[:day_count]
    summaries = [summarize_day(key, days[key], model) for key in date_keys]

    if not summaries:
        raise EmptyResultError("No tide data found")
    return summaries


def aggregate_payload(
    payload: Any,
    model: ClassifierModel = ClassifierModel.ASTRONOMICAL,
    day_count: int = DEFAULT_DAY_COUNT,
) -> List[DaySummary]:
    """Validate a raw source payload and aggregate it into day summaries."""
    return aggregate_days(parse_payload(payload), model=model, day_count=day_count)
