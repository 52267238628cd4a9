"""Tests for the alpha → inside-mask pipeline."""

import numpy as np
import pytest
from PIL import Image

from stickercut.engine.mask_builder import alpha_channel, build_inside_mask, opaque_mask
from stickercut.utils.morphology import BBox, mask_bbox


def test_fully_opaque_image(opaque_image):
    inside = build_inside_mask(opaque_image, alpha_threshold=8, seal_gap_px=0)
    assert inside.shape == (100, 100)
    assert inside.all()
    assert mask_bbox(inside) == BBox(0, 0, 99, 99)


def test_centered_square(centered_square):
    inside = build_inside_mask(centered_square, alpha_threshold=8, seal_gap_px=0)
    expected = np.zeros((100, 100), dtype=np.uint8)
    expected[10:90, 10:90] = 1
    assert np.array_equal(inside, expected)


def test_all_transparent_is_empty():
    img = Image.new("RGBA", (40, 30), (255, 0, 0, 0))
    inside = build_inside_mask(img)
    assert not inside.any()
    assert mask_bbox(inside) == BBox(0, 0, 39, 29)


def test_enclosed_hole_counts_as_inside(ring):
    alpha = alpha_channel(ring)
    inside = build_inside_mask(ring)
    c = ring.width // 2
    assert alpha[c, c] == 0
    assert inside[c, c] == 1
    assert inside[0, 0] == 0


def test_threshold_is_strict():
    arr = np.zeros((5, 5, 4), dtype=np.uint8)
    arr[2, 2, 3] = 8
    arr[2, 3, 3] = 9
    opaque = opaque_mask(arr, threshold=8)
    assert opaque[2, 2] == 0
    assert opaque[2, 3] == 1


def test_seal_closes_slit_into_inside():
    # Ring with a one-pixel slit: without sealing the hole leaks to the edge
    arr = np.zeros((30, 30, 4), dtype=np.uint8)
    arr[5:25, 5:25, 3] = 255
    arr[10:20, 10:20, 3] = 0
    arr[14, 5:10, 3] = 0  # slit from the hole to the outside
    unsealed = build_inside_mask(arr, seal_gap_px=0)
    sealed = build_inside_mask(arr, seal_gap_px=2)
    assert unsealed[15, 15] == 0
    assert sealed[15, 15] == 1


def test_inside_contains_opaque(ring):
    assert np.all(build_inside_mask(ring, seal_gap_px=3) >= opaque_mask(ring))


def test_alpha_channel_rejects_bad_shape():
    with pytest.raises(ValueError):
        alpha_channel(np.zeros((4, 4, 3), dtype=np.uint8))
