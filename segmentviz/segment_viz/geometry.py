"""
Pure geometry helpers for the segment layout.

All coordinates are absolute canvas coordinates in point-radius units with
the origin at the top-left corner.
"""

from __future__ import annotations
import math
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np
from numpy.typing import NDArray

# Distance kept between points and the segment edge, in point radii.
POINT_MARGIN = 1.0


@dataclass(frozen=True)
class RectBounds:
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def contains(self, x: float, y: float) -> bool:
        return self.x <= x <= self.right and self.y <= y <= self.bottom

    def is_close(self, other: RectBounds, tol: float = 1e-9) -> bool:
        return (
            math.isclose(self.x, other.x, abs_tol=tol)
            and math.isclose(self.y, other.y, abs_tol=tol)
            and math.isclose(self.width, other.width, abs_tol=tol)
            and math.isclose(self.height, other.height, abs_tol=tol)
        )


def axis_slots(extent: float, count: int, gap: float) -> List[Tuple[float, float]]:
    """
    Evenly divide ``extent`` into ``count`` slots separated by ``gap``.

    Returns:
        List of (offset, size) pairs. Sizes are clamped at 0 when the gaps
        alone exceed the extent.
    """
    count = max(count, 1)
    size = max(0.0, (extent - (count - 1) * gap) / count)
    return [(i * (size + gap), size) for i in range(count)]


def segment_bounds(
    cell: RectBounds,
    point_counts: Sequence[int],
    base_width: float,
    response_gap: float,
) -> List[RectBounds]:
    """
    Lay out one segment per response group left to right inside a cell.

    Each segment gets ``base_width`` plus its share of the remaining width in
    proportion to its point count. A cell without points gets base widths only.
    """
    n = len(point_counts)
    if n == 0:
        return []
    available = max(0.0, cell.width - (n - 1) * response_gap - n * base_width)
    total_points = sum(point_counts)

    bounds = []
    current_x = cell.x
    for count in point_counts:
        share = count / total_points if total_points > 0 else 0.0
        width = base_width + available * share
        bounds.append(RectBounds(current_x, cell.y, width, cell.height))
        current_x += width + response_gap
    return bounds


def grid_shape(n: int, width: float, height: float) -> Tuple[int, int]:
    """Columns and rows of a grid holding ``n`` points with cells shaped like the area."""
    if n <= 0:
        return 0, 0
    aspect = width / height if height > 0 else 1.0
    cols = max(1, min(n, int(round(math.sqrt(n * aspect)))))
    rows = math.ceil(n / cols)
    while cols > 1 and (cols - 1) * rows >= n:
        cols -= 1
    return cols, rows


def place_points(n: int, bounds: RectBounds, margin: float = POINT_MARGIN) -> NDArray[np.float64]:
    """
    Deterministic positions for ``n`` points inside ``bounds``.

    Points fill a grid row by row at the cell centres, so the i-th point
    always lands in the same spot for the same ``n`` and bounds. Too small
    bounds collapse every point onto the centre.

    Returns:
        Array of shape (n, 2) with absolute (x, y) coordinates
    """
    if n <= 0:
        return np.zeros((0, 2), dtype=np.float64)

    inner_width = bounds.width - 2 * margin
    inner_height = bounds.height - 2 * margin
    if inner_width <= 0 or inner_height <= 0:
        center = (bounds.x + bounds.width / 2, bounds.y + bounds.height / 2)
        return np.tile(np.asarray(center, dtype=np.float64), (n, 1))

    cols, rows = grid_shape(n, inner_width, inner_height)
    cell_width = inner_width / cols
    cell_height = inner_height / rows

    idx = np.arange(n)
    xs = bounds.x + margin + (idx % cols + 0.5) * cell_width
    ys = bounds.y + margin + (idx // cols + 0.5) * cell_height
    return np.column_stack((xs, ys))
