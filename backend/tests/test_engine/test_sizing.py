"""Tests for minimum edge, aspect lock and catalog snapping."""

from dataclasses import dataclass

import pytest

from stickercut.engine.context import build_master_context
from stickercut.engine.sizing import (
    FREEFORM_LONG_SIDE_PRESETS_CM,
    AspectLock,
    dims_from_long_side,
    enforce_aspect,
    enforce_min_edge,
    fit_aspect_into_box,
    pick_billing_size,
)


@dataclass(frozen=True)
class Size:
    width_cm: float
    height_cm: float


class TestMinEdge:
    def test_scales_short_side_up(self):
        r = enforce_min_edge(5, 3)
        assert r.scaled
        assert r.k == pytest.approx(4 / 3)
        assert r.width_cm == pytest.approx(6.6667, abs=1e-4)
        assert r.height_cm == pytest.approx(4.0)

    def test_large_enough_unchanged(self):
        r = enforce_min_edge(10, 4)
        assert not r.scaled
        assert (r.width_cm, r.height_cm, r.k) == (10, 4, 1.0)

    @pytest.mark.parametrize("w,h", [(0, 0), (-1, 5), (5, 0), (None, 3), ("abc", 2)])
    def test_degenerate_falls_back_to_square(self, w, h):
        r = enforce_min_edge(w, h)
        assert (r.width_cm, r.height_cm) == (4, 4)
        assert r.scaled

    @pytest.mark.parametrize("w,h", [(0.5, 0.5), (1, 7), (3.9, 12), (4, 4), (100, 2), (0.01, 0.02)])
    def test_properties(self, w, h):
        r = enforce_min_edge(w, h)
        assert min(r.width_cm, r.height_cm) >= 4 - 1e-9
        assert r.width_cm / r.height_cm == pytest.approx(w / h)


class TestEnforceAspect:
    def test_width_edit_drives_height(self):
        assert enforce_aspect(10, 99, 2.0, "w") == pytest.approx((10, 5))

    def test_height_edit_drives_width(self):
        assert enforce_aspect(99, 6, 2.0, "h") == pytest.approx((12, 6))

    def test_min_edge_lifts_short_side(self):
        w, h = enforce_aspect(5, None, 2.0, "w")
        assert (w, h) == pytest.approx((8, 4))

    def test_max_edge_scales_back(self):
        w, h = enforce_aspect(None, 15, 2.0, "h", max_edge=20)
        assert (w, h) == pytest.approx((20, 10))

    def test_bad_aspect_is_square(self):
        assert enforce_aspect(6, 1, 0, "w") == pytest.approx((6, 6))

    def test_bad_edited(self):
        with pytest.raises(ValueError):
            enforce_aspect(5, 5, 1, "x")


class TestLongSide:
    def test_landscape(self):
        assert dims_from_long_side(10, 2.0) == (10.0, 5.0)

    def test_portrait(self):
        assert dims_from_long_side(9, 0.75) == (6.75, 9.0)

    def test_clamped_to_max(self):
        assert dims_from_long_side(50, 1.0) == (20.0, 20.0)

    def test_min_edge_wins(self):
        w, h = dims_from_long_side(5, 5.0)
        assert h == 4.0
        assert w == 20.0

    def test_presets(self):
        assert FREEFORM_LONG_SIDE_PRESETS_CM == (4, 5, 6, 7, 8, 9, 10, 12, 15, 20)
        for p in FREEFORM_LONG_SIDE_PRESETS_CM:
            w, h = dims_from_long_side(p, 1.5)
            assert min(w, h) >= 4


class TestAspectLock:
    def test_edit_rounds_to_hundredths(self):
        lock = AspectLock("img", 3.0)
        assert lock.edit(13, None, "w") == (13.0, 4.33)

    def test_from_context_uses_mask_aspect(self, logo_image, small_config):
        ctx = build_master_context(logo_image, config=small_config)
        lock = AspectLock.for_context(ctx)
        assert lock.matches(ctx.image_key)
        assert not lock.matches("other")
        assert lock.aspect == pytest.approx(2.0, rel=0.1)
        w, h = lock.from_long_side(10)
        assert w == 10.0
        assert h == pytest.approx(5.0, abs=0.6)

    def test_size_for_box_takes_long_side(self):
        lock = AspectLock("img", 2.0)
        r = lock.size_for_box(10, 5)
        assert (r.width_cm, r.height_cm, r.scaled) == (10.0, 5.0, False)
        # orientation follows the art, not the requested box
        assert lock.size_for_box(5, 10).width_cm == 10.0

    def test_size_for_box_min_edge(self):
        r = AspectLock("img", 4.0).size_for_box(4, 10)
        assert (r.width_cm, r.height_cm) == (16.0, 4.0)
        assert r.scaled
        assert r.k == pytest.approx(1.6)

    def test_size_for_box_capped(self):
        r = AspectLock("img", 2.0).size_for_box(30, 15)
        assert (r.width_cm, r.height_cm) == (20.0, 10.0)
        assert not r.scaled

    def test_size_for_box_degenerate(self):
        r = AspectLock("img", 2.0).size_for_box(0, None)
        assert (r.width_cm, r.height_cm) == (8.0, 4.0)
        assert r.scaled

    def test_frozen(self):
        lock = AspectLock("img", 1.0)
        with pytest.raises(AttributeError):
            lock.aspect = 2.0


def test_fit_aspect_into_box():
    assert fit_aspect_into_box(10, 10, 2.0) == pytest.approx((10, 5))
    assert fit_aspect_into_box(10, 4, 2.0) == pytest.approx((8, 4))


class TestPickBillingSize:
    SIZES = [Size(5, 5), Size(10, 5), Size(10, 10), Size(20, 15)]

    def test_smallest_containing(self):
        assert pick_billing_size(4.5, 4.2, self.SIZES) == Size(5, 5)
        assert pick_billing_size(9, 4, self.SIZES) == Size(10, 5)

    def test_rotation_allowed(self):
        assert pick_billing_size(4, 9, self.SIZES) == Size(10, 5)

    def test_exact_fit(self):
        assert pick_billing_size(10, 10, self.SIZES) == Size(10, 10)

    def test_fallback_to_largest(self):
        assert pick_billing_size(30, 30, self.SIZES) == Size(20, 15)

    def test_degenerate(self):
        assert pick_billing_size(5, 5, []) is None
        assert pick_billing_size(0, 5, self.SIZES) is None

    def test_area_tie_prefers_shorter_long_side(self):
        sizes = [Size(16, 4), Size(8, 8)]
        assert pick_billing_size(4, 4, sizes) == Size(8, 8)
