"""Binary morphology on uint8 0/1 masks (H×W arrays, row = y, col = x).

Masks returned by this module are always fresh ``np.uint8`` arrays holding
only 0 and 1, so callers may mutate them freely.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from functools import lru_cache

import numpy as np
from numpy.typing import NDArray
from skimage.morphology import disk

Mask = NDArray[np.uint8]


@dataclass(frozen=True)
class BBox:
    """Inclusive pixel bounding box."""

    min_x: int
    min_y: int
    max_x: int
    max_y: int

    @property
    def width(self) -> int:
        return self.max_x - self.min_x + 1

    @property
    def height(self) -> int:
        return self.max_y - self.min_y + 1

    @property
    def aspect(self) -> float:
        return self.width / max(1, self.height)

    def expand(self, margin: int, canvas_w: int, canvas_h: int) -> BBox:
        """Grow by ``margin`` on every side, clamped to the canvas."""
        return BBox(
            max(0, self.min_x - margin),
            max(0, self.min_y - margin),
            min(canvas_w - 1, self.max_x + margin),
            min(canvas_h - 1, self.max_y + margin),
        )

    def as_box(self) -> tuple[int, int, int, int]:
        """Half-open (left, top, right, bottom) box as used by Pillow."""
        return (self.min_x, self.min_y, self.max_x + 1, self.max_y + 1)


def as_mask(grid: NDArray) -> Mask:
    return (np.asarray(grid) != 0).astype(np.uint8)


def invert_mask(mask: NDArray) -> Mask:
    return (np.asarray(mask) == 0).astype(np.uint8)


@lru_cache(maxsize=64)
def disc_offsets(radius: int) -> tuple[tuple[int, int], ...]:
    """All integer (dx, dy) with dx² + dy² <= radius²."""
    footprint = disk(radius)
    dy, dx = np.nonzero(footprint)
    return tuple(zip((dx - radius).tolist(), (dy - radius).tolist()))


def dilate_exact(mask: NDArray, radius: float) -> Mask:
    """Disc dilation: every set pixel stamps its disc-shaped neighbourhood.

    Offsets that fall outside the canvas are dropped.
    """
    src = np.asarray(mask) != 0
    r = max(0, int(round(radius or 0)))
    if r <= 0:
        return src.astype(np.uint8)

    h, w = src.shape
    out = np.zeros_like(src)
    for dx, dy in disc_offsets(r):
        if abs(dx) >= w or abs(dy) >= h:
            continue
        # out[y + dy, x + dx] |= src[y, x]
        out[max(0, dy) : h + min(0, dy), max(0, dx) : w + min(0, dx)] |= src[
            max(0, -dy) : h - max(0, dy), max(0, -dx) : w - max(0, dx)
        ]
    return out.astype(np.uint8)


def _box_any_1d(src: NDArray[np.bool_], radius: int, axis: int) -> NDArray[np.bool_]:
    """Set where any pixel within ±radius along ``axis`` is set (prefix sums)."""
    n = src.shape[axis]
    ps = np.cumsum(src, axis=axis, dtype=np.int32)
    pad_shape = list(src.shape)
    pad_shape[axis] = 1
    ps = np.concatenate([np.zeros(pad_shape, dtype=np.int32), ps], axis=axis)

    idx = np.arange(n)
    lo = np.clip(idx - radius, 0, n - 1)
    hi = np.clip(idx + radius, 0, n - 1)
    sums = np.take(ps, hi + 1, axis=axis) - np.take(ps, lo, axis=axis)
    return sums > 0


def dilate_box(mask: NDArray, radius: float) -> Mask:
    """Separable square dilation: horizontal pass, then vertical pass.

    O(w·h) regardless of radius. Corners come out square, so the result is
    a superset of ``dilate_exact`` for the same radius.
    """
    src = np.asarray(mask) != 0
    r = max(0, int(round(radius or 0)))
    if r <= 0:
        return src.astype(np.uint8)
    horizontal = _box_any_1d(src, r, axis=1)
    return _box_any_1d(horizontal, r, axis=0).astype(np.uint8)


def erode_exact(mask: NDArray, radius: float) -> Mask:
    """Disc erosion as the dual of dilation: invert, dilate, invert."""
    return invert_mask(dilate_exact(invert_mask(mask), radius))


def close_mask(mask: NDArray, radius: float) -> Mask:
    """Binary closing (dilate then erode) to seal slits narrower than 2·radius."""
    r = max(0, int(round(radius or 0)))
    if r <= 0:
        return as_mask(mask)
    return erode_exact(dilate_exact(mask, r), r)


def flood_fill_outside(blocked: NDArray) -> Mask:
    """Mark pixels reachable from the canvas edge without crossing ``blocked``.

    4-connected breadth-first fill seeded from all four edges.
    """
    grid = np.asarray(blocked) != 0
    h, w = grid.shape
    if h == 0 or w == 0:
        return np.zeros((h, w), dtype=np.uint8)

    wall = grid.ravel().tolist()
    outside = [False] * (w * h)
    queue: deque[int] = deque()

    def _seed(i: int) -> None:
        if not wall[i] and not outside[i]:
            outside[i] = True
            queue.append(i)

    for x in range(w):
        _seed(x)
        _seed((h - 1) * w + x)
    for y in range(h):
        _seed(y * w)
        _seed(y * w + w - 1)

    while queue:
        i = queue.popleft()
        y, x = divmod(i, w)
        if x + 1 < w:
            _seed(i + 1)
        if x > 0:
            _seed(i - 1)
        if y + 1 < h:
            _seed(i + w)
        if y > 0:
            _seed(i - w)

    return np.array(outside, dtype=np.uint8).reshape(h, w)


def mask_bbox(mask: NDArray) -> BBox:
    """Tight bounding box of set pixels; the full canvas when nothing is set."""
    grid = np.asarray(mask) != 0
    h, w = grid.shape
    rows = np.flatnonzero(grid.any(axis=1))
    cols = np.flatnonzero(grid.any(axis=0))
    if rows.size == 0:
        return BBox(0, 0, max(0, w - 1), max(0, h - 1))
    return BBox(int(cols[0]), int(rows[0]), int(cols[-1]), int(rows[-1]))


def mask_to_alpha(mask: NDArray) -> NDArray[np.uint8]:
    """0/1 mask to a 0/255 alpha plane."""
    return np.where(np.asarray(mask) != 0, 255, 0).astype(np.uint8)
