"""
SVG rendering of tide chart geometry.

Painting only: every coordinate comes from a ChartGeometry computed by
`tidecast.chart`. Render options are passed per call and nothing is kept
between calls, so re-rendering after a resize is just mapping and rendering
again.
"""
import html
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence

from .chart import ChartGeometry, LayoutConfig, map_day
from .models import DaySummary, TideKind, clock_of


@dataclass(frozen=True)
class RenderOptions:
    """Per-call drawing options."""
    smooth: bool = True
    grid_lines: bool = True
    marker_radius: float = 6.0
    point_radius: float = 2.0
    background: str = '#FFFFFF'
    grid_color: str = 'rgba(200, 200, 200, 0.6)'
    axis_color: str = '#999999'
    text_color: str = '#666666'
    area_color: str = 'rgba(122, 197, 232, 0.3)'
    curve_color: str = '#1a5490'
    high_color: str = '#ff4444'
    low_color: str = '#00cc00'
    point_color: str = '#2C7FD9'
    now_color: str = '#ff8800'


def _fmt(value: float) -> str:
    return f"{value:.2f}"


def curve_path(geometry: ChartGeometry, smooth: bool = True) -> str:
    """SVG path data for the tide curve, smoothed or as straight segments."""
    points = geometry.points
    if not points:
        return ''

    parts = [f"M {_fmt(points[0].x)} {_fmt(points[0].y)}"]
    if smooth:
        for seg in geometry.segments:
            parts.append(
                f"Q {_fmt(seg.control_x)} {_fmt(seg.control_y)} {_fmt(seg.end_x)} {_fmt(seg.end_y)}"
            )
        if len(points) > 1:
            parts.append(f"L {_fmt(points[-1].x)} {_fmt(points[-1].y)}")
    else:
        for point in points[1:]:
            parts.append(f"L {_fmt(point.x)} {_fmt(point.y)}")
    return ' '.join(parts)


def area_path(geometry: ChartGeometry) -> str:
    """Closed polygon between the curve and the bottom axis."""
    points = geometry.points
    if not points:
        return ''
    base = _fmt(geometry.baseline_y)
    parts = [f"M {_fmt(points[0].x)} {base}"]
    parts.extend(f"L {_fmt(p.x)} {_fmt(p.y)}" for p in points)
    parts.append(f"L {_fmt(points[-1].x)} {base} Z")
    return ' '.join(parts)


def render_svg(geometry: ChartGeometry, options: Optional[RenderOptions] = None) -> str:
    """
    Paint a chart geometry as a standalone SVG document.

    Layers, bottom to top: background, gridlines, axes with tick labels,
    filled area, curve, sample dots, high/low markers with labels, time
    labels, now line.
    """
    options = options or RenderOptions()
    layout = geometry.layout
    pad = layout.padding
    left, right = pad, layout.width - pad
    top, bottom = pad, layout.height - pad
    smooth = options.smooth and geometry.smooth

    out: List[str] = [
        f'<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 {layout.width} {layout.height}" '
        f'width="100%" preserveAspectRatio="xMidYMid meet">',
        f'<rect x="0" y="0" width="{layout.width}" height="{layout.height}" fill="{options.background}"/>',
    ]

    if options.grid_lines:
        for y in geometry.gridlines:
            out.append(
                f'<line x1="{_fmt(left)}" y1="{_fmt(y)}" x2="{_fmt(right)}" y2="{_fmt(y)}" '
                f'stroke="{options.grid_color}" stroke-width="1"/>'
            )

    out.append(
        f'<line x1="{_fmt(left)}" y1="{_fmt(bottom)}" x2="{_fmt(right)}" y2="{_fmt(bottom)}" '
        f'stroke="{options.axis_color}" stroke-width="2"/>'
    )
    out.append(
        f'<line x1="{_fmt(left)}" y1="{_fmt(top)}" x2="{_fmt(left)}" y2="{_fmt(bottom)}" '
        f'stroke="{options.axis_color}" stroke-width="2"/>'
    )
    for tick in geometry.ticks:
        out.append(
            f'<text x="{_fmt(tick.label_x)}" y="{_fmt(tick.y)}" fill="{options.text_color}" '
            f'font-size="12" text-anchor="middle" dominant-baseline="middle">{html.escape(tick.label)}</text>'
        )

    if geometry.points:
        out.append(f'<path d="{area_path(geometry)}" fill="{options.area_color}" stroke="none"/>')
        out.append(
            f'<path class="curve" d="{curve_path(geometry, smooth)}" fill="none" '
            f'stroke="{options.curve_color}" stroke-width="3"/>'
        )

    for point in geometry.points:
        if point.kind is TideKind.NONE:
            out.append(
                f'<circle cx="{_fmt(point.x)}" cy="{_fmt(point.y)}" r="{options.point_radius}" '
                f'fill="{options.point_color}"/>'
            )

    for marker in geometry.markers:
        color = options.high_color if marker.kind is TideKind.HIGH else options.low_color
        out.append(
            f'<circle class="{marker.kind.value}" cx="{_fmt(marker.x)}" cy="{_fmt(marker.y)}" '
            f'r="{options.marker_radius}" fill="{color}" stroke="#fff" stroke-width="2"/>'
        )
        out.append(
            f'<text x="{_fmt(marker.label_x)}" y="{_fmt(marker.label_y)}" fill="{color}" '
            f'font-size="12" text-anchor="middle" dominant-baseline="middle">{html.escape(marker.label)}</text>'
        )

    for label in geometry.time_labels:
        out.append(
            f'<text x="{_fmt(label.x)}" y="{_fmt(label.y)}" fill="{options.text_color}" '
            f'font-size="11" text-anchor="middle" dominant-baseline="hanging">{html.escape(label.label)}</text>'
        )

    if geometry.now is not None:
        now = geometry.now
        out.append(
            f'<line class="now" x1="{_fmt(now.x)}" y1="{_fmt(now.top)}" x2="{_fmt(now.x)}" y2="{_fmt(now.bottom)}" '
            f'stroke="{options.now_color}" stroke-width="2" stroke-dasharray="6 4"/>'
        )

    out.append('</svg>')
    return '\n'.join(out)


def _times_or_none(events) -> str:
    return ' | '.join(clock_of(e.timestamp) for e in events) or 'none'


def render_day_card(
    day: DaySummary,
    layout: Optional[LayoutConfig] = None,
    now: Optional[datetime] = None,
    options: Optional[RenderOptions] = None,
) -> str:
    """HTML card for one day: header, high/low times and the chart."""
    options = options or RenderOptions()
    geometry = map_day(day, layout, now=now, smooth=options.smooth)

    moon = ''
    if day.moon:
        moon = f' <span class="moon">({html.escape(day.moon["phase"])})</span>'

    return f"""
    <div class="day-card" id="day-{day.date_key}">
        <div class="day-header">
            <span class="date">{html.escape(day.date_key)}</span>{moon}
            <span class="tide-type category-{day.category.code}">{html.escape(day.tidal_range.label)}</span>
        </div>
        <div class="tide-info">
            <span class="high-tide">High: {html.escape(_times_or_none(day.highs))}</span>
            <span class="low-tide">Low: {html.escape(_times_or_none(day.lows))}</span>
        </div>
        <div class="chart">
{render_svg(geometry, options)}
        </div>
    </div>
"""


def render_week_html(
    days: Sequence[DaySummary],
    title: str,
    layout: Optional[LayoutConfig] = None,
    now: Optional[datetime] = None,
    options: Optional[RenderOptions] = None,
) -> str:
    """Full HTML page with one chart card per day."""
    cards = ''.join(render_day_card(day, layout, now, options) for day in days)
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <title>{html.escape(title)}</title>
    <style>
        body {{ font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif; margin: 0; padding: 20px; background: #f5f7fa; }}
        h1 {{ color: #1a5490; }}
        .day-card {{ background: white; margin: 24px 0; padding: 12px; border: 1px solid #eee; border-radius: 8px; }}
        .day-header {{ font-weight: bold; font-size: 18px; display: flex; gap: 12px; align-items: center; }}
        .tide-info {{ margin: 8px 0; font-size: 15px; display: flex; gap: 12px; }}
        .high-tide {{ color: #ff4444; }}
        .low-tide {{ color: #00aa00; }}
        .moon {{ color: #666; font-weight: normal; }}
    </style>
</head>
<body>
    <h1>{html.escape(title)}</h1>
{cards}
</body>
</html>
"""
