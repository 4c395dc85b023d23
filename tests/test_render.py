"""
Unit tests for SVG and HTML rendering
"""
from datetime import datetime
from dataclasses import replace

from tidecast.aggregator import aggregate_payload
from tidecast.chart import LayoutConfig, map_day
from tidecast.render import RenderOptions, curve_path, render_day_card, render_svg, render_week_html
from tests.payloads import make_payload, payload_from_heights

LAYOUT = LayoutConfig(width=600, height=300, padding=40)


def first_day(payload=None):
    return aggregate_payload(payload or make_payload(days=1))[0]


class TestCurvePath:
    """Tests for the curve path data."""

    def test_smooth_path(self):
        geometry = map_day(first_day(payload_from_heights([1.0, 2.0, 1.0, 0.5])), LAYOUT)
        path = curve_path(geometry, smooth=True)
        assert path.startswith('M 40.00 ')
        assert path.count('Q ') == 2
        assert path.count('L ') == 1
        assert path.endswith(f"L 560.00 {geometry.points[-1].y:.2f}")

    def test_straight_path(self):
        geometry = map_day(first_day(payload_from_heights([1.0, 2.0, 1.0, 0.5])), LAYOUT)
        path = curve_path(geometry, smooth=False)
        assert 'Q ' not in path
        assert path.count('L ') == 3

    def test_single_point(self):
        geometry = map_day(first_day(payload_from_heights([1.0])), LAYOUT)
        assert curve_path(geometry) == f"M 300.00 {geometry.points[0].y:.2f}"


class TestRenderSvg:
    """Tests for the SVG painter."""

    def test_markers_and_labels(self):
        geometry = map_day(first_day(), LAYOUT)
        svg = render_svg(geometry)
        assert svg.startswith('<svg')
        assert svg.rstrip().endswith('</svg>')
        assert svg.count('class="high"') == 2
        assert svg.count('class="low"') == 2
        assert 'class="curve"' in svg

    def test_grid_lines_optional(self):
        geometry = map_day(first_day(), LAYOUT)
        with_grid = render_svg(geometry)
        without_grid = render_svg(geometry, RenderOptions(grid_lines=False))
        assert with_grid.count('<line') - without_grid.count('<line') == 3

    def test_smoothing_off(self):
        geometry = map_day(first_day(), LAYOUT)
        svg = render_svg(geometry, RenderOptions(smooth=False))
        assert ' Q ' not in svg

    def test_now_line(self):
        day = first_day()
        geometry = map_day(day, LAYOUT, now=datetime(2025, 12, 2, 9, 0))
        assert 'class="now"' in render_svg(geometry)
        assert 'class="now"' not in render_svg(replace(geometry, now=None))

    def test_empty_geometry(self):
        geometry = map_day(replace(first_day(), events=()), LAYOUT)
        svg = render_svg(geometry)
        assert 'class="curve"' not in svg
        assert '<circle' not in svg


class TestHtml:
    """Tests for day cards and the week page."""

    def test_day_card_lists_times(self):
        card = render_day_card(first_day(), LAYOUT)
        assert 'id="day-2025-12-02"' in card
        assert 'High: 03:00 | 15:00' in card
        assert 'Low: 09:00 | 22:00' in card

    def test_day_card_without_events(self):
        day = first_day(payload_from_heights([1.0, 2.0]))
        card = render_day_card(day, LAYOUT)
        assert 'High: none' in card
        assert 'Low: none' in card

    def test_day_card_moon(self):
        day = replace(first_day(), moon={'phase': 'Full Moon', 'phase_angle': 180.0, 'illumination': 1.0})
        assert '(Full Moon)' in render_day_card(day, LAYOUT)

    def test_week_page(self):
        days = aggregate_payload(make_payload(days=7))
        page = render_week_html(days, 'Qingdao <tides>', LAYOUT)
        assert page.startswith('<!DOCTYPE html>')
        assert page.count('class="day-card"') == 7
        assert 'Qingdao &lt;tides&gt;' in page
