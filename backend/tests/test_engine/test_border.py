"""Tests for border dilation strategies and backing variants."""

import numpy as np
import pytest

from stickercut.engine.border import DilationStrategy, build_backing_variant, dilate
from stickercut.utils.morphology import BBox


def _square_mask():
    m = np.zeros((60, 60), dtype=np.uint8)
    m[20:40, 20:40] = 1
    return m


class TestDilate:
    def test_explicit_strategy(self):
        m = _square_mask()
        exact = dilate(m, 4, DilationStrategy.EXACT)
        approx = dilate(m, 4, DilationStrategy.APPROXIMATE)
        # box corners are square, disc corners are rounded
        assert approx[16, 16] == 1
        assert exact[16, 16] == 0
        assert np.all(approx >= exact)

    def test_negative_radius(self):
        with pytest.raises(ValueError):
            dilate(_square_mask(), -1, DilationStrategy.EXACT)

    def test_unknown_strategy(self):
        with pytest.raises(ValueError):
            dilate(_square_mask(), 1, "fast")

    def test_strategy_values(self):
        assert DilationStrategy("exact") is DilationStrategy.EXACT
        assert DilationStrategy("approximate") is DilationStrategy.APPROXIMATE


class TestBackingVariant:
    def test_backing_is_superset_of_inside(self):
        m = _square_mask()
        v = build_backing_variant(m, 3)
        assert np.all(v.backing_mask >= m)
        assert v.bbox == BBox(17, 17, 42, 42)
        assert v.radius == 3
        assert v.strategy is DilationStrategy.EXACT

    def test_alpha_surface(self):
        v = build_backing_variant(_square_mask(), 2, DilationStrategy.APPROXIMATE)
        assert v.alpha_surface.mode == "L"
        assert v.alpha_surface.size == (60, 60)
        alpha = np.asarray(v.alpha_surface)
        assert alpha[30, 30] == 255
        assert alpha[0, 0] == 0

    def test_empty_inside(self):
        v = build_backing_variant(np.zeros((10, 12), dtype=np.uint8), 5)
        assert v.is_empty
        assert v.bbox == BBox(0, 0, 11, 9)

    def test_zero_radius(self):
        m = _square_mask()
        v = build_backing_variant(m, 0)
        assert np.array_equal(v.backing_mask, m)
