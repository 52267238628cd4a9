"""MasterContext: per-image state shared by every render of that image.

Holds the padded full-resolution source surface (master space), the
downsampled inside mask (mask space), the Scale linking the two, and a
bounded cache of backing variants keyed by border radius.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

from PIL import Image

from stickercut.engine.border import BackingVariant, DilationStrategy, build_backing_variant
from stickercut.engine.cache import LruTtlCache, content_hash
from stickercut.engine.config import EngineConfig
from stickercut.engine.mask_builder import build_inside_mask
from stickercut.utils.morphology import Mask, mask_bbox
from stickercut.utils.units import Scale

logger = logging.getLogger(__name__)

# Cut-shape aspect is clamped to this range
_MIN_ASPECT = 0.1
_MAX_ASPECT = 10.0


@dataclass
class MasterContext:
    """Shared state for one source image."""

    image_key: str
    # Padded RGBA surface the image was contain-fitted into (master space)
    source: Image.Image
    inner_w: int
    inner_h: int
    pad_px: int
    # Inside mask (mask space), uint8 0/1, shape (mask_h, mask_w)
    inside_mask: Mask
    # master px -> mask px
    mask_scale: Scale
    config: EngineConfig = field(default_factory=EngineConfig)
    _variants: LruTtlCache[BackingVariant] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._variants = LruTtlCache(
            self.config.variant_cache_size,
            name=f"variants[{self.image_key[:8]}]",
        )

    @property
    def master_w(self) -> int:
        return self.source.width

    @property
    def master_h(self) -> int:
        return self.source.height

    @property
    def mask_w(self) -> int:
        return int(self.inside_mask.shape[1])

    @property
    def mask_h(self) -> int:
        return int(self.inside_mask.shape[0])

    @property
    def variant_count(self) -> int:
        return len(self._variants)

    def variant(
        self,
        radius: int,
        strategy: DilationStrategy = DilationStrategy.EXACT,
    ) -> BackingVariant:
        return get_or_build_backing_variant(self, radius, strategy)

    def clear_variants(self) -> None:
        self._variants.clear()


def master_inner_size(aspect: float | None, long_side: int) -> tuple[int, int]:
    """Inner rect with the given aspect (w/h) and ``long_side`` as its longer edge."""
    ar = aspect if aspect is not None and aspect > 0 else 1.0
    if ar >= 1:
        return long_side, max(1, int(round(long_side / ar)))
    return max(1, int(round(long_side * ar))), long_side


def image_identity(image: Image.Image) -> str:
    """Content hash of a decoded image (mode, size and pixels)."""
    header = f"{image.mode}:{image.width}x{image.height}:".encode()
    return content_hash(header + image.tobytes())


def build_master_context(
    image: Image.Image,
    target_aspect: float | None = None,
    *,
    max_mask_dim: int | None = None,
    alpha_threshold: int | None = None,
    seal_gap_px: int | None = None,
    image_key: str | None = None,
    config: EngineConfig | None = None,
) -> MasterContext:
    """Contain-fit ``image`` into a padded master surface and build its mask.

    ``target_aspect`` defaults to the image's own aspect. Arguments left as
    None fall back to ``config``.
    """
    cfg = config or EngineConfig()
    max_dim = max_mask_dim if max_mask_dim is not None else cfg.max_mask_dim
    threshold = alpha_threshold if alpha_threshold is not None else cfg.alpha_threshold
    seal = seal_gap_px if seal_gap_px is not None else cfg.seal_gap_px
    if max_dim < 1:
        raise ValueError(f"max_mask_dim must be >= 1, got {max_dim}")

    t0 = time.perf_counter()
    src = image.convert("RGBA")
    iw, ih = src.size
    aspect = target_aspect if target_aspect else iw / max(1, ih)

    inner_w, inner_h = master_inner_size(aspect, cfg.master_long_side)
    pad = cfg.pad_px
    master_w = inner_w + pad * 2
    master_h = inner_h + pad * 2

    dw, dh = Scale.fit(iw, ih, inner_w, inner_h).size_to_dst(iw, ih)
    fitted = src.resize((dw, dh), Image.Resampling.LANCZOS) if (dw, dh) != (iw, ih) else src
    surface = Image.new("RGBA", (master_w, master_h), (0, 0, 0, 0))
    surface.alpha_composite(fitted, (pad + (inner_w - dw) // 2, pad + (inner_h - dh) // 2))

    mask_scale = Scale.limit(master_w, master_h, max_dim)
    mw, mh = mask_scale.size_to_dst(master_w, master_h)
    small = surface if (mw, mh) == (master_w, master_h) else surface.resize(
        (mw, mh), Image.Resampling.BILINEAR
    )
    inside = build_inside_mask(small, alpha_threshold=threshold, seal_gap_px=seal)

    ctx = MasterContext(
        image_key=image_key or image_identity(src),
        source=surface,
        inner_w=inner_w,
        inner_h=inner_h,
        pad_px=pad,
        inside_mask=inside,
        mask_scale=mask_scale,
        config=cfg,
    )
    logger.info(
        "Master context %s: image %dx%d -> master %dx%d, mask %dx%d in %.0fms",
        ctx.image_key[:8],
        iw,
        ih,
        master_w,
        master_h,
        mw,
        mh,
        (time.perf_counter() - t0) * 1000,
    )
    return ctx


def get_or_build_backing_variant(
    context: MasterContext,
    radius: int,
    strategy: DilationStrategy = DilationStrategy.EXACT,
) -> BackingVariant:
    """Cached backing mask for ``radius`` mask pixels."""
    r = int(radius)
    if r < 0:
        raise ValueError(f"Border radius must be >= 0, got {radius}")
    key = (strategy.value, r)
    cached = context._variants.get(key)
    if cached is not None:
        logger.debug("Variant hit %s r=%d (%s)", context.image_key[:8], r, strategy.value)
        return cached
    variant = build_backing_variant(context.inside_mask, r, strategy)
    context._variants.put(key, variant)
    return variant


def mask_aspect(context: MasterContext) -> float:
    """Width/height of the inside mask's bbox, clamped to a printable range.

    This is the cut shape's own aspect, without any transparent padding the
    source image may carry.
    """
    if not context.inside_mask.any():
        return 1.0
    bb = mask_bbox(context.inside_mask)
    return min(_MAX_ASPECT, max(_MIN_ASPECT, bb.aspect))
