"""Contour extraction: marching-squares boundary trace, RDP simplification."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
from numpy.typing import NDArray
from skimage.measure import approximate_polygon

from stickercut.utils.units import Scale

Point = tuple[int, int]

_UP = (0, -1)
_RIGHT = (1, 0)
_DOWN = (0, 1)
_LEFT = (-1, 0)

# Step per 2×2 occupancy pattern around the current corner (x, y).
# Bits: 1 = up-left cell (x-1, y-1), 2 = up-right (x, y-1),
#       4 = down-left (x-1, y),      8 = down-right (x, y).
# The walk keeps inside cells on its left-hand side.
_STEP: tuple[tuple[int, int] | None, ...] = (
    _RIGHT,  # 0: never on a boundary
    _UP,  # 1
    _RIGHT,  # 2
    _RIGHT,  # 3
    _LEFT,  # 4
    _UP,  # 5
    None,  # 6: saddle (up-right + down-left)
    _RIGHT,  # 7
    _DOWN,  # 8
    None,  # 9: saddle (up-left + down-right)
    _DOWN,  # 10
    _DOWN,  # 11
    _LEFT,  # 12
    _UP,  # 13
    _LEFT,  # 14
    _RIGHT,  # 15: never on a boundary
)

# Saddles keep diagonal neighbours apart (4-connected inside).
_SADDLE: dict[tuple[int, tuple[int, int]], tuple[int, int]] = {
    (6, _UP): _LEFT,
    (6, _DOWN): _RIGHT,
    (9, _RIGHT): _UP,
    (9, _LEFT): _DOWN,
}

# A closed loop around a single pixel takes 4 steps.
_MIN_LOOP_STEPS = 3


def trace_contour(mask: NDArray) -> list[Point]:
    """Trace the outer boundary of the first shape found in row-major order.

    Returns corner coordinates (x in [0, w], y in [0, h]) as a closed
    polyline whose last point repeats the first. An empty list means there
    is no traceable boundary: the mask is empty or completely full.
    """
    grid = np.asarray(mask) != 0
    if grid.ndim != 2 or grid.size == 0 or grid.all():
        return []

    h, w = grid.shape
    left = np.zeros_like(grid)
    left[:, 1:] = grid[:, :-1]
    starts = np.flatnonzero(grid & ~left)
    if starts.size == 0:
        return []
    sy, sx = divmod(int(starts[0]), w)

    # One-cell zero border so lookups at x-1 / y-1 never go out of range.
    cells = np.pad(grid, 1, mode="constant", constant_values=False).tolist()

    x, y = sx, sy
    direction = _DOWN
    points: list[Point] = [(x, y)]
    max_steps = w * h + (w + h) * 50

    for i in range(max_steps):
        idx = (
            (1 if cells[y][x] else 0)
            | (2 if cells[y][x + 1] else 0)
            | (4 if cells[y + 1][x] else 0)
            | (8 if cells[y + 1][x + 1] else 0)
        )
        step = _STEP[idx]
        if step is None:
            step = _SADDLE.get((idx, direction), _RIGHT)
        direction = step
        x += step[0]
        y += step[1]
        points.append((x, y))
        if x == sx and y == sy and i >= _MIN_LOOP_STEPS:
            break

    return points


def rdp_simplify(
    points: NDArray[np.float64] | Sequence[Sequence[float]],
    epsilon: float,
) -> NDArray[np.float64]:
    """Douglas-Peucker simplification within ``epsilon``.

    The first and last input points are always kept, so a closed loop stays
    closed. A zero tolerance returns the points unchanged.
    """
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    if len(pts) < 3:
        return pts.copy()
    return approximate_polygon(pts, tolerance=max(0.0, float(epsilon)))


def points_to_path(
    points: NDArray[np.float64] | Sequence[Sequence[float]],
    scale: Scale,
    origin: tuple[float, float] = (0.0, 0.0),
    offset: tuple[float, float] = (0.0, 0.0),
) -> str:
    """Serialize a polyline as absolute SVG path data (``M … L … Z``).

    ``origin`` is subtracted in source space before scaling, so a cropped
    raster and its path share one coordinate frame. ``offset`` is added in
    destination space afterwards.
    """
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    if len(pts) < 2:
        return ""

    ox, oy = origin
    dx, dy = offset
    cmds = []
    for i, (px, py) in enumerate(pts):
        x, y = scale.point_to_dst(px - ox, py - oy)
        cmds.append(f"{'M' if i == 0 else 'L'} {x + dx:.2f} {y + dy:.2f}")
    cmds.append("Z")
    return " ".join(cmds)
