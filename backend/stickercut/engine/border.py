"""Border (bleed) generator: dilates the inside mask into the backing mask."""

from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass

from numpy.typing import NDArray
from PIL import Image

from stickercut.utils.morphology import (
    BBox,
    Mask,
    dilate_box,
    dilate_exact,
    mask_bbox,
    mask_to_alpha,
)

logger = logging.getLogger(__name__)


class DilationStrategy(str, enum.Enum):
    """How the border is grown.

    EXACT stamps a true disc and is used for anything that gets cut.
    APPROXIMATE is a separable box filter with square corners, O(w·h)
    for any radius, meant for interactive previews only.
    """

    EXACT = "exact"
    APPROXIMATE = "approximate"


def dilate(mask: NDArray, radius: int, strategy: DilationStrategy) -> Mask:
    if radius < 0:
        raise ValueError(f"Border radius must be >= 0, got {radius}")
    if strategy is DilationStrategy.EXACT:
        return dilate_exact(mask, radius)
    if strategy is DilationStrategy.APPROXIMATE:
        return dilate_box(mask, radius)
    raise ValueError(f"Unknown dilation strategy: {strategy!r}")


@dataclass(frozen=True)
class BackingVariant:
    """Backing mask for one border radius, with its bbox and alpha surface."""

    radius: int
    strategy: DilationStrategy
    backing_mask: Mask
    bbox: BBox
    alpha_surface: Image.Image

    @property
    def is_empty(self) -> bool:
        return not self.backing_mask.any()


def build_backing_variant(
    inside_mask: NDArray,
    radius: int,
    strategy: DilationStrategy = DilationStrategy.EXACT,
) -> BackingVariant:
    """Dilate ``inside_mask`` by ``radius`` mask pixels."""
    t0 = time.perf_counter()
    backing = dilate(inside_mask, radius, strategy)
    variant = BackingVariant(
        radius=radius,
        strategy=strategy,
        backing_mask=backing,
        bbox=mask_bbox(backing),
        alpha_surface=Image.fromarray(mask_to_alpha(backing)),
    )
    logger.debug(
        "Backing variant r=%d (%s) built in %.1fms",
        radius,
        strategy.value,
        (time.perf_counter() - t0) * 1000,
    )
    return variant
