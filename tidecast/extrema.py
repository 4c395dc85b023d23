"""
High/low tide detection on an hourly height series.

A sample is a high tide when it is strictly above both neighbours and a low
tide when strictly below both. The first and last samples of a day are never
labelled: without the adjacent day's data they cannot be shown to be turning
points.
"""
from typing import NamedTuple, Sequence, Tuple

import numpy as np


class Extrema(NamedTuple):
    """Indices of high and low tides, in chronological order."""
    high: Tuple[int, ...]
    low: Tuple[int, ...]


def find_extrema(heights: Sequence[float]) -> Extrema:
    """
    Find local maxima and minima in a day's height sequence.

    Only interior indices (1 <= i <= n-2) are candidates and both neighbour
    comparisons are strict, so plateaus never qualify. NaN heights never
    qualify either since every comparison against NaN is false.

    Args:
        heights: Heights in meters, chronological

    Returns:
        Extrema with the high and low indices
    """
    h = np.asarray(heights, dtype=float)
    if h.size < 3:
        return Extrema(high=(), low=())

    prev, curr, nxt = h[:-2], h[1:-1], h[2:]
    high_mask = (curr > prev) & (curr > nxt)
    low_mask = (curr < prev) & (curr < nxt)

    # +1 maps interior slice positions back to indices into heights
    high = tuple(int(i) + 1 for i in np.flatnonzero(high_mask))
    low = tuple(int(i) + 1 for i in np.flatnonzero(low_mask))
    return Extrema(high=high, low=low)
