"""Alpha mask builder: RGBA pixels to the binary "inside" silhouette.

Pipeline:
  1. Opaque mask: alpha > threshold
  2. Closing with a disc of radius ``seal_gap_px`` to seal thin slits
  3. Flood fill from the canvas edge over non-opaque pixels = outside
  4. inside = NOT outside

Transparent holes fully enclosed by artwork end up inside, which is what a
die-cut backing needs.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray
from PIL import Image

from stickercut.utils.morphology import Mask, close_mask, flood_fill_outside, invert_mask


def alpha_channel(image: Image.Image | NDArray) -> NDArray[np.uint8]:
    """Alpha plane (H×W uint8) of a Pillow image or an H×W×4 array."""
    if isinstance(image, Image.Image):
        return np.asarray(image.convert("RGBA").getchannel("A"), dtype=np.uint8)
    arr = np.asarray(image)
    if arr.ndim == 3 and arr.shape[2] == 4:
        return arr[:, :, 3].astype(np.uint8)
    if arr.ndim == 2:
        return arr.astype(np.uint8)
    raise ValueError(f"Expected RGBA pixels or an alpha plane, got shape {arr.shape}")


def opaque_mask(image: Image.Image | NDArray, threshold: int = 8) -> Mask:
    """1 where alpha is strictly greater than ``threshold``."""
    return (alpha_channel(image) > threshold).astype(np.uint8)


def build_inside_mask(
    image: Image.Image | NDArray,
    alpha_threshold: int = 8,
    seal_gap_px: int = 0,
) -> Mask:
    """Silhouette of everything not reachable from the canvas edge."""
    opaque = opaque_mask(image, alpha_threshold)
    seal = max(0, int(round(seal_gap_px or 0)))
    if seal > 0:
        opaque = close_mask(opaque, seal)
    outside = flood_fill_outside(opaque)
    return invert_mask(outside)
