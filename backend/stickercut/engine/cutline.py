"""Cutline extraction: traced freeform contours and geometric fixed-shape paths."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from stickercut.engine.border import BackingVariant
from stickercut.engine.compose import Layout, ShapeKind, freeform_layout
from stickercut.engine.context import MasterContext
from stickercut.utils.contour import points_to_path, rdp_simplify, trace_contour

logger = logging.getLogger(__name__)

# Rounded-rectangle cut radius when none is given: 8% of the short side, >= 6 px
_ROUNDED_MIN_RADIUS = 6.0
_ROUNDED_RADIUS_FRACTION = 0.08


@dataclass(frozen=True)
class CutlineResult:
    """SVG path data for the cutter plus the stroke width to draw it with.

    An empty ``svg_d`` means no cutline is available; that is a normal
    outcome (empty backing mask) and not an error.
    """

    svg_d: str
    stroke_width: float
    n_points: int = 0
    n_raw_points: int = 0

    @property
    def available(self) -> bool:
        return bool(self.svg_d)

    @classmethod
    def unavailable(cls, stroke_width: float) -> CutlineResult:
        return cls("", stroke_width)


def extract_cutline(
    context: MasterContext,
    variant: BackingVariant,
    out_w: int,
    out_h: int,
    tolerance: float | None = None,
    stroke_width: float | None = None,
    layout: Layout | None = None,
    offset: tuple[float, float] = (0.0, 0.0),
) -> CutlineResult:
    """Trace, simplify and scale the backing outline into output pixels.

    The path shares its coordinate frame with ``composite_freeform`` for the
    same ``(out_w, out_h)``, shifted by ``offset`` when the sticker is placed
    inside a larger billing canvas.
    """
    cfg = context.config
    tol = cfg.rdp_tolerance if tolerance is None else tolerance
    stroke = cfg.cutline_stroke_px if stroke_width is None else stroke_width
    lay = layout or freeform_layout(context, variant, out_w, out_h)

    raw = trace_contour(variant.backing_mask)
    if not raw:
        logger.info("No traceable contour for %s r=%d", context.image_key[:8], variant.radius)
        return CutlineResult.unavailable(stroke)

    simplified = rdp_simplify(raw, tol)
    d = points_to_path(simplified, lay.scale, lay.origin, offset)
    logger.debug("Cutline: %d -> %d points (tol=%.2f)", len(raw), len(simplified), tol)
    return CutlineResult(
        svg_d=d,
        stroke_width=stroke,
        n_points=len(simplified),
        n_raw_points=len(raw),
    )


def _f(v: float) -> str:
    return f"{v:.2f}"


def rounded_corner_radius(w: float, h: float) -> float:
    return max(_ROUNDED_MIN_RADIUS, _ROUNDED_RADIUS_FRACTION * min(w, h))


def shape_cutline(
    shape: ShapeKind,
    w: float,
    h: float,
    stroke_width: float = 2.0,
    corner_radius: float | None = None,
) -> CutlineResult:
    """Exact cut path for a fixed shape filling a ``w`` × ``h`` canvas."""
    if w <= 0 or h <= 0:
        raise ValueError(f"Cut size must be positive, got {w}x{h}")

    if shape in (ShapeKind.RECT, ShapeKind.SQUARE):
        d = f"M 0.00 0.00 L {_f(w)} 0.00 L {_f(w)} {_f(h)} L 0.00 {_f(h)} Z"
        return CutlineResult(d, stroke_width, n_points=4)

    if shape in (ShapeKind.ROUND, ShapeKind.OVAL):
        rx, ry, cy = w / 2, h / 2, h / 2
        arc = f"A {_f(rx)} {_f(ry)} 0 1 0"
        d = f"M 0.00 {_f(cy)} {arc} {_f(w)} {_f(cy)} {arc} 0.00 {_f(cy)} Z"
        return CutlineResult(d, stroke_width, n_points=2)

    if shape is ShapeKind.ROUNDED:
        r = rounded_corner_radius(w, h) if corner_radius is None else corner_radius
        r = max(0.0, min(r, w / 2, h / 2))
        arc = f"A {_f(r)} {_f(r)} 0 0 1"
        d = " ".join(
            [
                f"M {_f(r)} 0.00",
                f"L {_f(w - r)} 0.00",
                f"{arc} {_f(w)} {_f(r)}",
                f"L {_f(w)} {_f(h - r)}",
                f"{arc} {_f(w - r)} {_f(h)}",
                f"L {_f(r)} {_f(h)}",
                f"{arc} 0.00 {_f(h - r)}",
                f"L 0.00 {_f(r)}",
                f"{arc} {_f(r)} 0.00",
                "Z",
            ]
        )
        return CutlineResult(d, stroke_width, n_points=8)

    raise ValueError(f"No geometric cutline for shape {shape.value!r}")
