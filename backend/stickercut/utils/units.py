"""Coordinate-space and physical-unit conversions.

Three spaces coexist:
  - master space: the full-resolution padded source surface
  - mask space: the downsampled grid used for morphology and tracing
  - output space: the raster being rendered (preview or print)

Every conversion between two pixel spaces goes through a ``Scale``.
Physical sizes (cm / mm) become pixels only through the DPI helpers below.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

CM_PER_INCH = 2.54
MM_PER_INCH = 25.4

# Border distances above this are treated as input noise.
_MAX_BORDER_MM = 50.0

# Guard against division by zero for degenerate sizes.
_EPS = 1e-9


@dataclass(frozen=True)
class Scale:
    """Uniform linear map from a source pixel space to a destination space.

    ``factor`` is destination pixels per source pixel. The map is always
    isotropic, so masks are never stretched.
    """

    factor: float

    def __post_init__(self) -> None:
        if not math.isfinite(self.factor) or self.factor <= 0:
            raise ValueError(f"Scale factor must be positive, got {self.factor!r}")

    @classmethod
    def fit(cls, src_w: float, src_h: float, dst_w: float, dst_h: float) -> Scale:
        """Largest factor that fits (src_w, src_h) inside (dst_w, dst_h)."""
        sw = max(_EPS, float(src_w))
        sh = max(_EPS, float(src_h))
        return cls(min(max(_EPS, float(dst_w)) / sw, max(_EPS, float(dst_h)) / sh))

    @classmethod
    def limit(cls, src_w: float, src_h: float, max_dim: float) -> Scale:
        """Downscale-only factor so the longer side is at most ``max_dim``."""
        long_side = max(_EPS, float(src_w), float(src_h))
        return cls(min(1.0, float(max_dim) / long_side))

    def to_dst(self, value: float) -> float:
        return value * self.factor

    def to_src(self, value: float) -> float:
        return value / self.factor

    def point_to_dst(self, x: float, y: float) -> tuple[float, float]:
        return (x * self.factor, y * self.factor)

    def size_to_dst(self, w: float, h: float) -> tuple[int, int]:
        """Scaled integer size, never smaller than 1×1."""
        return (
            max(1, int(round(w * self.factor))),
            max(1, int(round(h * self.factor))),
        )

    def radius_to_src(self, radius: float) -> int:
        """Destination-space radius expressed in whole source pixels.

        Positive radii never collapse to zero so a requested border is
        always at least one source pixel wide.
        """
        if radius <= 0:
            return 0
        return max(1, int(round(radius / self.factor)))

    def inverse(self) -> Scale:
        return Scale(1.0 / self.factor)

    def then(self, other: Scale) -> Scale:
        """Compose: apply ``self`` first, then ``other``."""
        return Scale(self.factor * other.factor)


def cm_to_inch(cm: float) -> float:
    return float(cm) / CM_PER_INCH


def cm_to_px(cm: float, dpi: float) -> int:
    """Physical length in cm to whole pixels at ``dpi`` (at least 1)."""
    return max(1, int(round(cm_to_inch(cm) * float(dpi))))


def mm_to_px(mm: float, dpi: float) -> int:
    """Border-style length in mm to whole pixels at ``dpi``.

    Non-positive lengths give 0; any positive length gives at least 1 px.
    """
    m = min(_MAX_BORDER_MM, float(mm))
    if m <= 0:
        return 0
    return max(1, int(round(m / MM_PER_INCH * float(dpi))))


def px_to_cm(px: float, dpi: float) -> float:
    return float(px) / float(dpi) * CM_PER_INCH


def px_per_cm_to_dpi(px_per_cm: float) -> float:
    return float(px_per_cm) * CM_PER_INCH


def diagonal(w: float, h: float) -> float:
    ww = max(0.0, float(w))
    hh = max(0.0, float(h))
    return math.sqrt(ww * ww + hh * hh)
