"""
Tide forecast data model.

Plain immutable records shared by the source, the analysis pipeline and the
chart geometry. Everything here is produced once and never mutated; chart
points are rebuilt on every render pass.
"""
import math
from dataclasses import dataclass, field
from enum import Enum
from functools import total_ordering
from typing import Dict, List, Optional, Tuple


def finite_or_none(value: Optional[float]) -> Optional[float]:
    """Map NaN and infinities to None so values serialize as JSON null."""
    if value is None or not math.isfinite(value):
        return None
    return value


def date_key_of(timestamp: str) -> str:
    """Return the calendar date portion (YYYY-MM-DD) of an ISO-8601 timestamp.

    The date is taken from the text as reported by the source, so a timestamp
    in local time keeps its local calendar day.
    """
    for sep in ('T', ' '):
        idx = timestamp.find(sep)
        if idx != -1:
            return timestamp[:idx]
    return timestamp


def clock_of(timestamp: str) -> str:
    """Return the HH:MM portion of an ISO-8601 timestamp."""
    for sep in ('T', ' '):
        idx = timestamp.find(sep)
        if idx != -1:
            return timestamp[idx + 1:idx + 6]
    return ''


class TideKind(str, Enum):
    """Label attached to each sample after extrema detection."""
    HIGH = "high"
    LOW = "low"
    NONE = ""


class ClassifierModel(str, Enum):
    """
    Tidal range classification models.

    - ASTRONOMICAL: average of detected highs/lows, corrected by lunar phase
      and lunar distance factors.
    - PERCENTILE: mean of the outer deciles of the day's valid heights.
    """
    ASTRONOMICAL = "astronomical"
    PERCENTILE = "percentile"


@total_ordering
class TideCategory(Enum):
    """
    Tidal range severity, weakest to strongest.

    Each value is (rank, lower bound in meters, label). The bound is inclusive:
    a range belongs to the strongest category whose bound it reaches.
    INSUFFICIENT_DATA sits outside the ordering.
    """
    INSUFFICIENT_DATA = (-1, None, "Insufficient data")
    DEAD = (0, float('-inf'), "Dead tide")
    WEAK_DEAD = (1, 2.0, "Weak neap")
    SMALL = (2, 2.5, "Small tide")
    MEDIUM = (3, 3.0, "Medium tide")
    MEDIUM_LARGE = (4, 3.5, "Medium-large tide")
    LARGE = (5, 4.0, "Large tide")
    SUPER_LARGE = (6, 4.3, "Super large tide")

    def __init__(self, rank: int, lower_bound: Optional[float], label: str):
        self.rank = rank
        self.lower_bound = lower_bound
        self.label = label

    def __lt__(self, other):
        if not isinstance(other, TideCategory):
            return NotImplemented
        return self.rank < other.rank

    @property
    def code(self) -> str:
        return self.name.lower()


@dataclass(frozen=True)
class Sample:
    """A single hourly sea-level reading."""
    timestamp: str
    height_m: float

    @property
    def date_key(self) -> str:
        return date_key_of(self.timestamp)


@dataclass(frozen=True)
class TideEvent:
    """A sample annotated with its extrema kind."""
    timestamp: str
    height_m: float
    kind: TideKind = TideKind.NONE

    def to_dict(self) -> Dict:
        return {
            'time': self.timestamp,
            'height_m': finite_or_none(self.height_m),
            'type': self.kind.value,
        }


@dataclass(frozen=True)
class RangeResult:
    """Tidal range of one day and its category."""
    category: TideCategory
    model: ClassifierModel
    range_m: Optional[float] = None
    avg_high: Optional[float] = None
    avg_low: Optional[float] = None

    @property
    def label(self) -> str:
        if self.range_m is None:
            return self.category.label
        return f"{self.category.label} (range {self.range_m:.2f}m)"

    def to_dict(self) -> Dict:
        return {
            'category': self.category.code,
            'label': self.label,
            'model': self.model.value,
            'range_m': self.range_m,
            'avg_high_m': self.avg_high,
            'avg_low_m': self.avg_low,
        }


@dataclass(frozen=True)
class DaySummary:
    """Classified, extrema-annotated view of one calendar day."""
    date_key: str
    tidal_range: RangeResult
    events: Tuple[TideEvent, ...]
    moon: Optional[Dict] = field(default=None, compare=False)

    @property
    def category(self) -> TideCategory:
        return self.tidal_range.category

    @property
    def highs(self) -> List[TideEvent]:
        return [e for e in self.events if e.kind is TideKind.HIGH]

    @property
    def lows(self) -> List[TideEvent]:
        return [e for e in self.events if e.kind is TideKind.LOW]

    def to_dict(self) -> Dict:
        result = {
            'date': self.date_key,
            'tide_type': self.tidal_range.to_dict(),
            'high_tides': [clock_of(e.timestamp) for e in self.highs],
            'low_tides': [clock_of(e.timestamp) for e in self.lows],
            'data': [e.to_dict() for e in self.events],
        }
        if self.moon is not None:
            result['moon'] = self.moon
        return result


@dataclass(frozen=True)
class ChartPoint:
    """Rendering-space projection of a tide event."""
    x: float
    y: float
    height_m: float
    timestamp: str
    kind: TideKind = TideKind.NONE

    def to_dict(self) -> Dict:
        return {
            'x': self.x,
            'y': self.y,
            'height_m': finite_or_none(self.height_m),
            'time': self.timestamp,
            'type': self.kind.value,
        }
