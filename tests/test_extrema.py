"""
Unit tests for high/low tide detection
"""
import math

import pytest

from tidecast.extrema import find_extrema
from tests.payloads import semidiurnal_height


class TestExamples:
    """Small hand-checked sequences."""

    def test_single_peak(self):
        """[1.0, 2.5, 1.0] has one high in the middle."""
        result = find_extrema([1.0, 2.5, 1.0])
        assert result.high == (1,)
        assert result.low == ()

    def test_single_trough_with_rising_end(self):
        """Index 2 is a boundary and never a high."""
        result = find_extrema([1.0, 0.2, 1.5])
        assert result.high == ()
        assert result.low == (1,)

    def test_rise_then_fall(self):
        """Strictly increasing then decreasing gives exactly one high at the top."""
        heights = [0.1, 0.5, 1.2, 2.0, 2.6, 1.9, 1.0, 0.3]
        result = find_extrema(heights)
        assert result.high == (4,)
        assert result.low == ()

    def test_double_high_tide(self):
        """Several highs and lows in one day are all reported."""
        heights = [0.0, 2.0, 1.0, 2.2, 0.5, 0.9, -0.3, 0.4]
        result = find_extrema(heights)
        assert result.high == (1, 3, 5)
        assert result.low == (2, 4, 6)


class TestBoundaries:
    """Edge-case policies."""

    @pytest.mark.parametrize("heights", [[], [1.0], [1.0, 2.0]])
    def test_short_sequences_have_no_extrema(self, heights):
        """Fewer than 3 samples have no interior index and must not raise."""
        result = find_extrema(heights)
        assert result.high == ()
        assert result.low == ()

    def test_endpoints_never_marked(self):
        """A global max at index 0 or n-1 is not a tide event."""
        result = find_extrema([5.0, 1.0, 2.0, 1.0, 6.0])
        assert 0 not in result.high + result.low
        assert 4 not in result.high + result.low
        assert result.high == (2,)
        assert result.low == (1, 3)

    def test_plateau_does_not_qualify(self):
        """Equal neighbouring heights fail the strict comparison."""
        result = find_extrema([1.0, 2.0, 2.0, 1.0])
        assert result.high == ()
        assert result.low == ()

    def test_flat_day(self):
        result = find_extrema([1.5] * 24)
        assert result == ((), ())

    def test_nan_never_qualifies(self):
        """A missing sample is neither an event nor makes its neighbours one."""
        result = find_extrema([1.0, math.nan, 1.0, 2.0, 1.0])
        assert 1 not in result.high + result.low
        assert result.high == (3,)

    def test_input_not_mutated(self):
        heights = [1.0, 3.0, 2.0, 0.5, 1.0]
        snapshot = list(heights)
        find_extrema(heights)
        assert heights == snapshot


class TestProperties:
    """Properties over realistic series."""

    def test_highs_and_lows_disjoint(self):
        heights = [semidiurnal_height(h) for h in range(24)]
        result = find_extrema(heights)
        assert not set(result.high) & set(result.low)
        assert 0 not in result.high + result.low
        assert len(heights) - 1 not in result.high + result.low

    def test_semidiurnal_day_has_two_highs_and_two_lows(self):
        heights = [semidiurnal_height(h) for h in range(24)]
        result = find_extrema(heights)
        assert len(result.high) == 2
        assert len(result.low) == 2

    def test_order_dependent(self):
        """Reordering the same heights changes the result."""
        heights = [1.0, 2.5, 1.0, 0.5, 0.8]
        assert find_extrema(heights) != find_extrema(sorted(heights))

    def test_indices_are_chronological(self):
        heights = [semidiurnal_height(h) for h in range(48)]
        result = find_extrema(heights)
        assert list(result.high) == sorted(result.high)
        assert list(result.low) == sorted(result.low)
