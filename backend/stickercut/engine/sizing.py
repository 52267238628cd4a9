"""Physical sizing rules for freeform stickers.

All sizes are in centimetres. Aspect ratios are width / height.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol, TypeVar

from stickercut.engine.context import MasterContext, mask_aspect

logger = logging.getLogger(__name__)

MIN_EDGE_CM = 4.0
MAX_EDGE_CM = 300.0
FREEFORM_MAX_LONG_SIDE_CM = 20.0
FREEFORM_LONG_SIDE_PRESETS_CM = (4, 5, 6, 7, 8, 9, 10, 12, 15, 20)

_MIN_ASPECT = 1e-6


class Sized(Protocol):
    @property
    def width_cm(self) -> float: ...

    @property
    def height_cm(self) -> float: ...


S = TypeVar("S", bound=Sized)


def _finite(v: float | None, default: float) -> float:
    try:
        f = float(v)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    return f if math.isfinite(f) else default


def _clamp(v: float, lo: float, hi: float) -> float:
    return min(hi, max(lo, v))


def _safe_aspect(aspect: float | None) -> float:
    ar = _finite(aspect, 1.0)
    return ar if ar > _MIN_ASPECT else 1.0


@dataclass(frozen=True)
class MinEdgeResult:
    width_cm: float
    height_cm: float
    scaled: bool
    k: float


def enforce_min_edge(w: float, h: float, min_edge: float = MIN_EDGE_CM) -> MinEdgeResult:
    """Scale (w, h) up uniformly until the shorter side reaches ``min_edge``.

    Non-positive or non-numeric input falls back to a ``min_edge`` square.
    """
    ww = _finite(w, 0.0)
    hh = _finite(h, 0.0)
    if ww <= 0 or hh <= 0:
        return MinEdgeResult(min_edge, min_edge, scaled=True, k=1.0)
    short = min(ww, hh)
    if short >= min_edge:
        return MinEdgeResult(ww, hh, scaled=False, k=1.0)
    k = min_edge / short
    return MinEdgeResult(ww * k, hh * k, scaled=True, k=k)


def enforce_aspect(
    w: float | None,
    h: float | None,
    aspect: float | None,
    edited: str = "w",
    min_edge: float = MIN_EDGE_CM,
    max_edge: float = MAX_EDGE_CM,
) -> tuple[float, float]:
    """Recompute the non-edited side from ``aspect``.

    The edited side is clamped to [min_edge, max_edge] first; the pair is
    then scaled down if its long side exceeds ``max_edge`` and up if its
    short side is below ``min_edge``.
    """
    if edited not in ("w", "h"):
        raise ValueError(f"edited must be 'w' or 'h', got {edited!r}")
    ar = _safe_aspect(aspect)
    ww = _finite(w, min_edge)
    hh = _finite(h, min_edge)

    if edited == "h":
        hh = _clamp(hh, min_edge, max_edge)
        ww = hh * ar
    else:
        ww = _clamp(ww, min_edge, max_edge)
        hh = ww / ar

    long_side = max(ww, hh)
    if long_side > max_edge:
        k = max_edge / long_side
        ww, hh = ww * k, hh * k

    r = enforce_min_edge(ww, hh, min_edge)
    return _clamp(r.width_cm, min_edge, max_edge), _clamp(r.height_cm, min_edge, max_edge)


def dims_from_long_side(
    long_side: float,
    aspect: float | None,
    min_edge: float = MIN_EDGE_CM,
    max_long_side: float = FREEFORM_MAX_LONG_SIDE_CM,
) -> tuple[float, float]:
    """Freeform size from a long-side preset, rounded to 0.01 cm."""
    ar = _safe_aspect(aspect)
    ls = _clamp(_finite(long_side, min_edge), min_edge, max_long_side)
    if ar >= 1:
        w, h = ls, ls / ar
    else:
        w, h = ls * ar, ls
    r = enforce_min_edge(w, h, min_edge)
    return round(r.width_cm, 2), round(r.height_cm, 2)


def fit_aspect_into_box(box_w: float, box_h: float, aspect: float | None) -> tuple[float, float]:
    """Largest (w, h) with the given aspect inside the box."""
    bw = max(1e-9, _finite(box_w, 1.0))
    bh = max(1e-9, _finite(box_h, 1.0))
    ar = _safe_aspect(aspect)
    w, h = bw, bw / ar
    if h > bh:
        w, h = bh * ar, bh
    return w, h


def pick_billing_size(w: float, h: float, sizes: Sequence[S]) -> S | None:
    """Smallest catalog size whose box contains (w, h), rotation allowed.

    Ties on area go to the shorter long side. When nothing fits, the
    largest size is returned. None when ``sizes`` is empty or the request
    is degenerate.
    """
    ww = max(0.0, _finite(w, 0.0))
    hh = max(0.0, _finite(h, 0.0))
    if not sizes or ww <= 0 or hh <= 0:
        return None

    fits = []
    for s in sizes:
        sw, sh = float(s.width_cm), float(s.height_cm)
        if sw <= 0 or sh <= 0:
            continue
        if (ww <= sw and hh <= sh) or (ww <= sh and hh <= sw):
            fits.append((sw * sh, max(sw, sh), s))
    if fits:
        fits.sort(key=lambda t: (t[0], t[1]))
        return fits[0][2]

    largest = max(sizes, key=lambda s: max(0.0, s.width_cm) * max(0.0, s.height_cm))
    logger.warning(
        "No catalog size holds %.2fx%.2f cm; falling back to %.2fx%.2f cm",
        ww,
        hh,
        largest.width_cm,
        largest.height_cm,
    )
    return largest


@dataclass(frozen=True)
class AspectLock:
    """Freeform aspect ratio frozen for one image.

    The ratio comes from the cut shape's own bbox, so transparent padding
    in the upload does not distort the billed size. A new image means a new
    lock.
    """

    image_key: str
    aspect: float
    min_edge: float = MIN_EDGE_CM
    max_edge: float = FREEFORM_MAX_LONG_SIDE_CM

    @classmethod
    def for_context(cls, context: MasterContext, **kwargs) -> AspectLock:
        return cls(context.image_key, mask_aspect(context), **kwargs)

    def matches(self, image_key: str) -> bool:
        return image_key == self.image_key

    def edit(self, w: float | None, h: float | None, edited: str = "w") -> tuple[float, float]:
        ww, hh = enforce_aspect(w, h, self.aspect, edited, self.min_edge, self.max_edge)
        return round(ww, 2), round(hh, 2)

    def from_long_side(self, long_side: float) -> tuple[float, float]:
        return dims_from_long_side(long_side, self.aspect, self.min_edge, self.max_edge)

    def size_for_box(self, w: float | None, h: float | None) -> MinEdgeResult:
        """Sticker size for a requested box: its long side at the locked aspect.

        ``scaled`` is set when the minimum edge grew the sticker past the
        requested long side.
        """
        long_side = max(_finite(w, 0.0), _finite(h, 0.0))
        ww, hh = self.from_long_side(long_side)
        grown = max(ww, hh)
        if long_side <= 0:
            return MinEdgeResult(ww, hh, scaled=True, k=1.0)
        return MinEdgeResult(ww, hh, scaled=grown > long_side + 0.005, k=grown / long_side)
