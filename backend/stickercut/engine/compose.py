"""Bounding & compose: backing crop, layered compositing, shape canvases, billing fit.

Freeform compositing order with a fill:
  1. backing alpha
  2. solid fill constrained to that alpha
  3. source image drawn over
  4. whole result clipped to the backing alpha (destination-in)

Transparent mode skips step 2. All placement goes through ``Scale``.
"""

from __future__ import annotations

import enum
import io
import math
from dataclasses import dataclass

from PIL import Image, ImageChops, ImageColor, ImageDraw

from stickercut.engine.border import BackingVariant
from stickercut.engine.context import MasterContext
from stickercut.utils.morphology import BBox, mask_bbox
from stickercut.utils.units import Scale, diagonal

RGBA = tuple[int, int, int, int]

_TRANSPARENT_WORDS = {"", "transparent", "none"}


@dataclass(frozen=True)
class Background:
    """Fill colour behind the artwork, or None for a transparent sticker."""

    color: RGBA | None = (255, 255, 255, 255)

    @property
    def has_fill(self) -> bool:
        return self.color is not None

    @classmethod
    def transparent(cls) -> Background:
        return cls(None)

    @classmethod
    def parse(cls, mode: str | None, color: str | None) -> Background:
        """Normalize a (mode, colour) pair as sent by a configurator.

        ``mode == "transparent"`` or an empty / "transparent" / "none" colour
        means no fill. Unknown colour strings raise ``ValueError``.
        """
        m = (mode or "color").strip().lower()
        raw = (color or "").strip()
        if m == "transparent" or raw.lower() in _TRANSPARENT_WORDS:
            return cls.transparent()
        return cls(ImageColor.getcolor(raw, "RGBA"))


class ShapeKind(str, enum.Enum):
    RECT = "rect"
    SQUARE = "square"
    ROUND = "round"
    OVAL = "oval"
    ROUNDED = "rounded"
    FREEFORM = "freeform"

    @classmethod
    def parse(cls, name: str | ShapeKind) -> ShapeKind:
        """Resolve a shape name or catalog alias. Unknown names raise ValueError."""
        if isinstance(name, ShapeKind):
            return name
        key = str(name or "").strip().lower()
        try:
            return _SHAPE_ALIASES[key]
        except KeyError:
            raise ValueError(f"Unknown shape: {name!r}") from None


_SHAPE_ALIASES: dict[str, ShapeKind] = {
    "rect": ShapeKind.RECT,
    "rectangle": ShapeKind.RECT,
    "rect_landscape": ShapeKind.RECT,
    "square": ShapeKind.SQUARE,
    "round": ShapeKind.ROUND,
    "circle": ShapeKind.ROUND,
    "rund": ShapeKind.ROUND,
    "oval": ShapeKind.OVAL,
    "oval_portrait": ShapeKind.OVAL,
    "rounded": ShapeKind.ROUNDED,
    "square_rounded": ShapeKind.ROUNDED,
    "rect_rounded": ShapeKind.ROUNDED,
    "rect_landscape_rounded": ShapeKind.ROUNDED,
    "freeform": ShapeKind.FREEFORM,
}


# ---------------------------------------------------------------------------
# Freeform
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Layout:
    """Where the backing crop lands in the output raster.

    ``scale`` maps mask px to output px, ``crop`` is the margin-expanded
    backing bbox in mask px and ``size`` is the output raster size.
    """

    scale: Scale
    crop: BBox
    size: tuple[int, int]

    @property
    def origin(self) -> tuple[float, float]:
        return (float(self.crop.min_x), float(self.crop.min_y))


def freeform_layout(
    context: MasterContext,
    variant: BackingVariant,
    out_w: int,
    out_h: int,
    margin: int | None = None,
) -> Layout:
    """Uniformly fit the backing crop into ``out_w`` × ``out_h``."""
    if out_w < 1 or out_h < 1:
        raise ValueError(f"Output size must be positive, got {out_w}x{out_h}")
    m = context.config.bbox_margin_px if margin is None else margin
    crop = variant.bbox.expand(m, context.mask_w, context.mask_h)
    scale = Scale.fit(crop.width, crop.height, out_w, out_h)
    size = scale.size_to_dst(crop.width, crop.height)
    return Layout(scale=scale, crop=crop, size=size)


def border_radius_for_output(
    context: MasterContext,
    out_w: int,
    out_h: int,
    border_px: float,
) -> int:
    """Mask-space radius that renders as ``border_px`` in the output raster.

    Solves for the mask→output scale the backing crop will get once it has
    grown by the border on each side of the inside-mask bbox.
    """
    if border_px <= 0:
        return 0
    inside = mask_bbox(context.inside_mask)
    margin = 2 * context.config.bbox_margin_px
    sx = (out_w - 2 * border_px) / max(1, inside.width + margin)
    sy = (out_h - 2 * border_px) / max(1, inside.height + margin)
    s = min(sx, sy)
    if s <= 0:
        s = Scale.fit(inside.width + margin, inside.height + margin, out_w, out_h).factor
    return Scale(s).radius_to_src(border_px)


def center_offset(size: tuple[int, int], box: tuple[int, int]) -> tuple[int, int]:
    """Top-left offset that centres ``size`` inside ``box``."""
    return (box[0] - size[0]) // 2, (box[1] - size[1]) // 2


def crop_to_master(context: MasterContext, crop: BBox) -> tuple[float, float, float, float]:
    """The same crop in master space, as a Pillow box.

    Each axis uses the exact master/mask size ratio, so a crop reaching the
    mask edge reaches the master edge even when the mask size was rounded.
    """
    sx = Scale(context.master_w / context.mask_w)
    sy = Scale(context.master_h / context.mask_h)
    x0, y0, x1, y1 = crop.as_box()
    return (sx.to_dst(x0), sy.to_dst(y0), sx.to_dst(x1), sy.to_dst(y1))


def _clip_alpha(image: Image.Image, alpha: Image.Image) -> Image.Image:
    """destination-in: keep ``image`` only where ``alpha`` is set."""
    out = image.copy()
    out.putalpha(ImageChops.multiply(out.getchannel("A"), alpha))
    return out


def _filled(size: tuple[int, int], color: RGBA, alpha: Image.Image) -> Image.Image:
    """Solid colour restricted to ``alpha``."""
    fill = Image.new("RGBA", size, color)
    fill.putalpha(ImageChops.multiply(fill.getchannel("A"), alpha))
    return fill


def composite_freeform(
    context: MasterContext,
    variant: BackingVariant,
    out_w: int,
    out_h: int,
    background: Background,
    layout: Layout | None = None,
) -> Image.Image:
    """Render the backing crop of ``context`` at output resolution."""
    lay = layout or freeform_layout(context, variant, out_w, out_h)
    size = lay.size

    alpha = variant.alpha_surface.resize(
        size, Image.Resampling.BILINEAR, box=lay.crop.as_box()
    )

    art = context.source.resize(size, Image.Resampling.LANCZOS, box=crop_to_master(context, lay.crop))

    if background.has_fill:
        out = _filled(size, background.color, alpha)
        out.alpha_composite(art)
    else:
        out = art
    return _clip_alpha(out, alpha)


# ---------------------------------------------------------------------------
# Fixed shapes
# ---------------------------------------------------------------------------


def shape_canvas_size(
    shape: ShapeKind,
    base_w: int,
    base_h: int,
    rounded_pad: int = 0,
) -> tuple[int, int]:
    """Canvas that holds a ``base_w`` × ``base_h`` sticker of ``shape``.

    ROUND is a square with the base diagonal as its side, so the inscribed
    circle passes through the base rect's corners. OVAL scales by √2 for the
    same reason. ROUNDED adds the corner radius on every side.
    """
    if base_w < 1 or base_h < 1:
        raise ValueError(f"Base size must be positive, got {base_w}x{base_h}")
    if shape is ShapeKind.ROUND:
        side = max(1, int(round(diagonal(base_w, base_h))))
        return side, side
    if shape is ShapeKind.OVAL:
        return (
            max(1, int(round(base_w * math.sqrt(2)))),
            max(1, int(round(base_h * math.sqrt(2)))),
        )
    if shape is ShapeKind.ROUNDED:
        pad = max(0, int(rounded_pad))
        return base_w + 2 * pad, base_h + 2 * pad
    return base_w, base_h


def shape_clip(shape: ShapeKind, size: tuple[int, int], corner_radius: int = 0) -> Image.Image | None:
    """"L" clip mask for ``shape`` on a canvas of ``size``; None for no clip."""
    w, h = size
    if shape in (ShapeKind.ROUND, ShapeKind.OVAL):
        clip = Image.new("L", size, 0)
        ImageDraw.Draw(clip).ellipse((0, 0, w - 1, h - 1), fill=255)
        return clip
    if shape is ShapeKind.ROUNDED:
        clip = Image.new("L", size, 0)
        radius = max(0, min(int(corner_radius), min(w, h) // 2))
        ImageDraw.Draw(clip).rounded_rectangle((0, 0, w - 1, h - 1), radius=radius, fill=255)
        return clip
    return None


def composite_shape(
    image: Image.Image,
    shape: ShapeKind,
    base_w: int,
    base_h: int,
    background: Background,
    rounded_pad: int = 0,
) -> Image.Image:
    """Render a fixed-shape sticker.

    The image is contain-fitted into the base rect centred on the shape
    canvas, optionally laid over a fill, then clipped to the shape.
    """
    if shape is ShapeKind.FREEFORM:
        raise ValueError("Freeform stickers are composited from a MasterContext")
    cw, ch = shape_canvas_size(shape, base_w, base_h, rounded_pad)
    src = image.convert("RGBA")

    fit = Scale.fit(src.width, src.height, base_w, base_h)
    dw, dh = fit.size_to_dst(src.width, src.height)
    art = src.resize((dw, dh), Image.Resampling.LANCZOS)

    out = Image.new("RGBA", (cw, ch), background.color if background.has_fill else (0, 0, 0, 0))
    out.alpha_composite(art, ((cw - dw) // 2, (ch - dh) // 2))

    clip = shape_clip(shape, (cw, ch), rounded_pad)
    if clip is None:
        return out
    return _clip_alpha(out, clip)


# ---------------------------------------------------------------------------
# Billing box & encoding
# ---------------------------------------------------------------------------


def fit_into_billing_box(sticker: Image.Image, box_w: int, box_h: int) -> Image.Image:
    """Centre ``sticker`` in a transparent ``box_w`` × ``box_h`` canvas, contain-fit."""
    if box_w < 1 or box_h < 1:
        raise ValueError(f"Billing box must be positive, got {box_w}x{box_h}")
    src = sticker.convert("RGBA")
    dw, dh = Scale.fit(src.width, src.height, box_w, box_h).size_to_dst(src.width, src.height)
    dw, dh = min(dw, box_w), min(dh, box_h)
    fitted = src if (dw, dh) == src.size else src.resize((dw, dh), Image.Resampling.LANCZOS)
    box = Image.new("RGBA", (box_w, box_h), (0, 0, 0, 0))
    box.alpha_composite(fitted, center_offset((dw, dh), (box_w, box_h)))
    return box


def encode_png(image: Image.Image, dpi: float | None = None) -> bytes:
    buf = io.BytesIO()
    if dpi:
        image.save(buf, format="PNG", dpi=(dpi, dpi))
    else:
        image.save(buf, format="PNG")
    return buf.getvalue()
