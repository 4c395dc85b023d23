"""
Chart geometry for a day's tide curve.

Maps a DaySummary onto a canvas of a given size: pixel coordinates for every
sample, the quadratic segments of the smoothed curve, axis ticks, gridlines,
time labels, high/low markers and an optional "now" guide line. The result is
a plain value; callers recompute it whenever the data or the canvas size
changes and hand it to a renderer.

Smoothing rule: the path starts at the first point; for every interior point
p[i] a quadratic segment uses p[i] as control point and ends at the midpoint
of p[i] and p[i+1]; a straight line closes the path at the last point. A
renderer that wants straight segments just joins `points` in order.
"""
import math
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from .models import ChartPoint, DaySummary, TideEvent, TideKind, clock_of

TICK_COUNT = 5
BLEED_RATIO = 0.1
# Height band always covered by the vertical axis, in meters
MIN_AXIS_BAND = (0.0, 3.0)
TIME_LABEL_COUNT = 6
TIME_LABEL_GAP = 10.0
TICK_LABEL_GAP = 20.0
EVENT_LABEL_OFFSET = 14.0


@dataclass(frozen=True)
class LayoutConfig:
    """Canvas size and inner padding, in pixels."""
    width: float = 1200
    height: float = 600
    padding: float = 80

    def validate(self):
        if self.padding < 0:
            raise ValueError(f"padding must be non-negative, got {self.padding}")
        if self.width <= 2 * self.padding or self.height <= 2 * self.padding:
            raise ValueError(
                f"Canvas {self.width}x{self.height} is too small for padding {self.padding}"
            )
        return self

    @property
    def inner_width(self) -> float:
        return self.width - 2 * self.padding

    @property
    def inner_height(self) -> float:
        return self.height - 2 * self.padding


@dataclass(frozen=True)
class AxisTick:
    value: float
    y: float
    label: str
    label_x: float


@dataclass(frozen=True)
class CurveSegment:
    """Quadratic bezier segment; the start is the previous segment's end."""
    control_x: float
    control_y: float
    end_x: float
    end_y: float


@dataclass(frozen=True)
class EventMarker:
    """High/low tide dot and the position of its text label."""
    x: float
    y: float
    kind: TideKind
    label: str
    label_x: float
    label_y: float


@dataclass(frozen=True)
class TimeLabel:
    x: float
    y: float
    label: str


@dataclass(frozen=True)
class NowMarker:
    x: float
    top: float
    bottom: float


@dataclass(frozen=True)
class ChartGeometry:
    """Everything a renderer needs to paint one day."""
    layout: LayoutConfig
    min_height: float
    max_height: float
    points: Tuple[ChartPoint, ...] = ()
    segments: Tuple[CurveSegment, ...] = ()
    ticks: Tuple[AxisTick, ...] = ()
    gridlines: Tuple[float, ...] = ()
    markers: Tuple[EventMarker, ...] = ()
    time_labels: Tuple[TimeLabel, ...] = ()
    now: Optional[NowMarker] = None
    smooth: bool = True
    date_key: str = ''

    @property
    def baseline_y(self) -> float:
        return self.layout.height - self.layout.padding

    @property
    def is_empty(self) -> bool:
        return not self.points

    def to_dict(self) -> Dict:
        return {
            'date': self.date_key,
            'layout': {
                'width': self.layout.width,
                'height': self.layout.height,
                'padding': self.layout.padding,
            },
            'min_height_m': self.min_height,
            'max_height_m': self.max_height,
            'baseline_y': self.baseline_y,
            'smooth': self.smooth,
            'points': [p.to_dict() for p in self.points],
            'segments': [
                {'cx': s.control_x, 'cy': s.control_y, 'x': s.end_x, 'y': s.end_y}
                for s in self.segments
            ],
            'ticks': [
                {'value': t.value, 'y': t.y, 'label': t.label, 'label_x': t.label_x}
                for t in self.ticks
            ],
            'gridlines': list(self.gridlines),
            'markers': [
                {
                    'x': m.x, 'y': m.y, 'type': m.kind.value, 'label': m.label,
                    'label_x': m.label_x, 'label_y': m.label_y,
                }
                for m in self.markers
            ],
            'time_labels': [{'x': t.x, 'y': t.y, 'label': t.label} for t in self.time_labels],
            'now': None if self.now is None else {
                'x': self.now.x, 'top': self.now.top, 'bottom': self.now.bottom,
            },
        }


def height_bounds(heights: Sequence[float]) -> Tuple[float, float]:
    """
    Vertical domain of the chart.

    The day's own min/max, widened to cover at least MIN_AXIS_BAND, then
    extended by 10% of the span on both sides.
    """
    h = np.asarray(heights, dtype=float)
    finite = h[np.isfinite(h)]
    lo, hi = MIN_AXIS_BAND
    if finite.size:
        lo = min(float(finite.min()), lo)
        hi = max(float(finite.max()), hi)
    bleed = (hi - lo) * BLEED_RATIO
    return lo - bleed, hi + bleed


def _x_at(index: int, count: int, layout: LayoutConfig) -> float:
    if count == 1:
        fraction = 0.5
    else:
        fraction = index / (count - 1)
    return layout.padding + fraction * layout.inner_width


def _y_at(height_m: float, min_height: float, max_height: float, layout: LayoutConfig) -> float:
    # Pixel Y grows downward
    if not math.isfinite(height_m):
        return layout.height - layout.padding
    fraction = (height_m - min_height) / (max_height - min_height)
    return layout.height - layout.padding - fraction * layout.inner_height


def project_points(
    events: Sequence[TideEvent],
    layout: LayoutConfig,
    min_height: float,
    max_height: float,
) -> List[ChartPoint]:
    """Project tide events into pixel space."""
    count = len(events)
    return [
        ChartPoint(
            x=_x_at(idx, count, layout),
            y=_y_at(event.height_m, min_height, max_height, layout),
            height_m=event.height_m,
            timestamp=event.timestamp,
            kind=event.kind,
        )
        for idx, event in enumerate(events)
    ]


def curve_segments(points: Sequence[ChartPoint]) -> List[CurveSegment]:
    """Midpoint quadratic segments through the interior points."""
    segments = []
    for i in range(1, len(points) - 1):
        curr, nxt = points[i], points[i + 1]
        segments.append(CurveSegment(
            control_x=curr.x,
            control_y=curr.y,
            end_x=(curr.x + nxt.x) / 2,
            end_y=(curr.y + nxt.y) / 2,
        ))
    return segments


def axis_ticks(min_height: float, max_height: float, layout: LayoutConfig) -> List[AxisTick]:
    """Evenly spaced ticks from the bottom to the top of the vertical domain."""
    step = (max_height - min_height) / (TICK_COUNT - 1)
    ticks = []
    for i in range(TICK_COUNT):
        value = min_height + step * i
        ticks.append(AxisTick(
            value=value,
            y=_y_at(value, min_height, max_height, layout),
            label=f"{value:.1f}",
            label_x=layout.padding - TICK_LABEL_GAP,
        ))
    return ticks


def event_markers(points: Sequence[ChartPoint]) -> List[EventMarker]:
    """Markers for high and low tides; labels sit above highs and below lows."""
    markers = []
    for point in points:
        if point.kind is TideKind.HIGH:
            label_y = point.y - EVENT_LABEL_OFFSET
        elif point.kind is TideKind.LOW:
            label_y = point.y + EVENT_LABEL_OFFSET
        else:
            continue
        markers.append(EventMarker(
            x=point.x,
            y=point.y,
            kind=point.kind,
            label=f"{clock_of(point.timestamp)} {point.height_m:.2f}m",
            label_x=point.x,
            label_y=label_y,
        ))
    return markers


def time_labels(points: Sequence[ChartPoint], layout: LayoutConfig) -> List[TimeLabel]:
    """About six HH:MM labels along the bottom axis."""
    if not points:
        return []
    step = math.ceil(len(points) / TIME_LABEL_COUNT)
    y = layout.height - layout.padding + TIME_LABEL_GAP
    return [
        TimeLabel(x=points[i].x, y=y, label=clock_of(points[i].timestamp))
        for i in range(0, len(points), step)
    ]


def now_marker(date_key: str, now: Optional[datetime], layout: LayoutConfig) -> Optional[NowMarker]:
    """
    Vertical guide at the current time of day, when `now` falls on the day.

    `now` must already be expressed in the source's local time.
    """
    if now is None or now.date().isoformat() != date_key:
        return None
    hour_fraction = now.hour + now.minute / 60 + now.second / 3600
    return NowMarker(
        x=layout.padding + (hour_fraction / 24) * layout.inner_width,
        top=layout.padding,
        bottom=layout.height - layout.padding,
    )


def map_day(
    day: DaySummary,
    layout: Optional[LayoutConfig] = None,
    now: Optional[datetime] = None,
    smooth: bool = True,
) -> ChartGeometry:
    """
    Compute the chart geometry of one day.

    Args:
        day: Day summary to chart
        layout: Canvas configuration (defaults to 1200x600 with 80px padding)
        now: Current local time, for the "now" guide line
        smooth: Whether the renderer should draw the quadratic segments

    Returns:
        ChartGeometry; empty points when the day has no events
    """
    layout = (layout or LayoutConfig()).validate()
    events = day.events
    min_height, max_height = height_bounds([e.height_m for e in events])

    ticks = axis_ticks(min_height, max_height, layout)
    geometry = ChartGeometry(
        layout=layout,
        min_height=min_height,
        max_height=max_height,
        ticks=tuple(ticks),
        gridlines=tuple(t.y for t in ticks[1:-1]),
        now=now_marker(day.date_key, now, layout),
        smooth=smooth,
        date_key=day.date_key,
    )
    if not events:
        return geometry

    points = project_points(events, layout, min_height, max_height)
    return replace(
        geometry,
        points=tuple(points),
        segments=tuple(curve_segments(points)),
        markers=tuple(event_markers(points)),
        time_labels=tuple(time_labels(points, layout)),
    )
