"""StickerEngine: the entry point callers use for previews and print exports.

Owns the process-wide caches (master contexts, rendered previews) and
applies the print policy from ``Settings`` around the pure engine
functions. Image bytes in, PNG bytes and cutline path data out; fetching
uploads and storing results stay with the caller.
"""

from __future__ import annotations

import io
import logging
import math
import time
from collections.abc import Callable

from PIL import Image

from stickercut.config import Settings
from stickercut.config import settings as default_settings
from stickercut.engine import compose, context, cutline, resolution
from stickercut.engine.border import BackingVariant, DilationStrategy
from stickercut.engine.cache import LruTtlCache, content_hash, preview_key
from stickercut.engine.compose import Background, ShapeKind
from stickercut.engine.config import EngineConfig
from stickercut.engine.context import MasterContext
from stickercut.engine.cutline import CutlineResult
from stickercut.engine.resolution import ResolutionReport
from stickercut.engine.sizing import (
    FREEFORM_LONG_SIDE_PRESETS_CM,
    AspectLock,
    enforce_min_edge,
    fit_aspect_into_box,
    pick_billing_size,
)
from stickercut.models.catalog import Catalog
from stickercut.models.export import ExportRequest, ExportResult
from stickercut.utils.units import cm_to_px, mm_to_px, px_per_cm_to_dpi, px_to_cm

logger = logging.getLogger(__name__)


def decode_image(data: bytes) -> Image.Image:
    image = Image.open(io.BytesIO(data))
    image.load()
    return image


class StickerEngine:
    """Preview and export front-end over the mask & cutline engine."""

    def __init__(
        self,
        config: EngineConfig | None = None,
        settings: Settings | None = None,
        catalog: Catalog | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config or EngineConfig()
        self.settings = settings or default_settings
        self.catalog = catalog
        self._masters: LruTtlCache[MasterContext] = LruTtlCache(
            self.settings.master_cache_size,
            self.settings.master_cache_ttl_s,
            clock=clock,
            name="masters",
        )
        self._previews: LruTtlCache[bytes] = LruTtlCache(
            self.settings.preview_cache_size,
            self.settings.preview_cache_ttl_s,
            clock=clock,
            name="previews",
        )

    # -- engine operations -------------------------------------------------

    def build_master_context(self, image: Image.Image, target_aspect: float | None = None, **kwargs) -> MasterContext:
        return context.build_master_context(image, target_aspect, config=self.config, **kwargs)

    def get_or_build_backing_variant(
        self,
        ctx: MasterContext,
        radius: int,
        strategy: DilationStrategy = DilationStrategy.EXACT,
    ) -> BackingVariant:
        return context.get_or_build_backing_variant(ctx, radius, strategy)

    def composite(
        self,
        ctx: MasterContext,
        variant: BackingVariant,
        out_w: int,
        out_h: int,
        background: Background,
    ) -> bytes:
        return compose.encode_png(compose.composite_freeform(ctx, variant, out_w, out_h, background))

    def extract_cutline(
        self,
        ctx: MasterContext,
        variant: BackingVariant,
        out_w: int,
        out_h: int,
        tolerance: float | None = None,
    ) -> CutlineResult:
        return cutline.extract_cutline(ctx, variant, out_w, out_h, tolerance=tolerance)

    def validate_resolution(self, px_w: int, px_h: int, w_cm: float, h_cm: float) -> ResolutionReport:
        return resolution.validate_resolution(
            px_w, px_h, w_cm, h_cm, min_dpi=self.settings.min_dpi, warn_dpi=self.settings.warn_dpi
        )

    # -- cached master contexts --------------------------------------------

    def master_context(self, image_bytes: bytes, image: Image.Image | None = None) -> MasterContext:
        """Master context for an upload, built once per distinct content."""
        key = content_hash(image_bytes)
        ctx = self._masters.get(key)
        if ctx is None:
            src = image if image is not None else decode_image(image_bytes)
            ctx = self.build_master_context(src, image_key=key)
            self._masters.put(key, ctx)
        return ctx

    def billing_size_for(self, w_cm: float, h_cm: float, color: str | None = None) -> tuple[float, float] | None:
        """Catalog billing box for a freeform size, oriented like the sticker."""
        if self.catalog is None:
            return None
        size = pick_billing_size(w_cm, h_cm, self.catalog.sizes_for(ShapeKind.FREEFORM.value, color))
        if size is None:
            return None
        long_side = max(size.width_cm, size.height_cm)
        short_side = min(size.width_cm, size.height_cm)
        return (long_side, short_side) if w_cm >= h_cm else (short_side, long_side)

    def aspect_lock(self, image_bytes: bytes) -> AspectLock:
        """Freeform aspect of an upload's cut shape, bounded by the size policy."""
        return self._lock_for(self.master_context(image_bytes))

    def edit_size(
        self, image_bytes: bytes, w: float | None, h: float | None, edited: str = "w"
    ) -> tuple[float, float]:
        """Recompute the other freeform side after ``edited`` changed."""
        return self.aspect_lock(image_bytes).edit(w, h, edited)

    def size_presets(self, image_bytes: bytes) -> list[tuple[float, float]]:
        lock = self.aspect_lock(image_bytes)
        return [lock.from_long_side(ls) for ls in FREEFORM_LONG_SIDE_PRESETS_CM if ls <= lock.max_edge]

    def _lock_for(self, ctx: MasterContext) -> AspectLock:
        s = self.settings
        return AspectLock.for_context(ctx, min_edge=s.min_edge_cm, max_edge=s.freeform_max_long_side_cm)

    def _freeform_frame(
        self,
        ctx: MasterContext,
        out_w: int,
        out_h: int,
        border_px: float,
        strategy: DilationStrategy,
        min_px: int = 0,
    ) -> tuple[BackingVariant, compose.Layout]:
        """Backing variant and layout for an ``out_w`` × ``out_h`` box.

        The backing crop is fitted into the box, so one side can come out
        shorter than the box. When the short side lands below ``min_px`` the
        box is grown once to lift it.
        """
        radius = compose.border_radius_for_output(ctx, out_w, out_h, border_px)
        variant = ctx.variant(radius, strategy)
        layout = compose.freeform_layout(ctx, variant, out_w, out_h)
        short = min(layout.size)
        if short < min_px:
            k = min_px / short
            out_w, out_h = math.ceil(out_w * k), math.ceil(out_h * k)
            radius = compose.border_radius_for_output(ctx, out_w, out_h, border_px)
            variant = ctx.variant(radius, strategy)
            layout = compose.freeform_layout(ctx, variant, out_w, out_h)
            logger.info("Freeform box grown by %.2f to keep the minimum edge", k)
        return variant, layout

    # -- preview -----------------------------------------------------------

    def render_preview(self, image_bytes: bytes, request: ExportRequest) -> bytes:
        """Fast PNG preview, memoised by content hash and request parameters."""
        key = preview_key(
            image=content_hash(image_bytes),
            shape=request.shape.value,
            width_cm=request.width_cm,
            height_cm=request.height_cm,
            bg_mode=request.bg_mode,
            bg_color=request.bg_color,
            border_mm=request.border_mm,
            max_px=request.max_px,
        )
        cached = self._previews.get(key)
        if cached is not None:
            return cached

        t0 = time.perf_counter()
        cfg = self.config
        w_cm, h_cm = request.width_cm, request.height_cm
        ctx = self.master_context(image_bytes) if request.shape is ShapeKind.FREEFORM else None
        if ctx is not None:
            size = self._lock_for(ctx).size_for_box(w_cm, h_cm)
            w_cm, h_cm = size.width_cm, size.height_cm
        raw_w = max(1, round(w_cm * cfg.preview_px_per_cm))
        raw_h = max(1, round(h_cm * cfg.preview_px_per_cm))
        cap = request.max_px or cfg.preview_max_px
        kk = min(1.0, cap / max(raw_w, raw_h))
        out_w = max(1, round(raw_w * kk))
        out_h = max(1, round(raw_h * kk))
        preview_dpi = px_per_cm_to_dpi(cfg.preview_px_per_cm)
        background = request.background

        if ctx is not None:
            border_px = mm_to_px(request.border_mm, preview_dpi) * kk
            variant, layout = self._freeform_frame(ctx, out_w, out_h, border_px, DilationStrategy.APPROXIMATE)
            img = compose.composite_freeform(ctx, variant, out_w, out_h, background, layout=layout)
        else:
            pad = round(cfg.rounded_pad_px * kk) if request.shape is ShapeKind.ROUNDED else 0
            img = compose.composite_shape(decode_image(image_bytes), request.shape, out_w, out_h, background, pad)

        png = compose.encode_png(img)
        self._previews.put(key, png)
        logger.info(
            "Preview %s %s %dx%d in %.0fms",
            key[:8],
            request.shape.value,
            img.width,
            img.height,
            (time.perf_counter() - t0) * 1000,
        )
        return png

    # -- export ------------------------------------------------------------

    def export(self, image_bytes: bytes, request: ExportRequest) -> ExportResult:
        """Print-resolution PNG plus cutline.

        A freeform sticker takes the requested long side at the upload's
        locked aspect, grown to the minimum edge. Raises
        ``ResolutionTooLowError`` before compositing when the upload has too
        few pixels for the size that would be rendered.
        """
        s = self.settings
        dpi = s.export_dpi
        src = decode_image(image_bytes)
        background = request.background
        shape = request.shape
        stroke = self.config.cutline_stroke_px
        t0 = time.perf_counter()

        if shape is ShapeKind.FREEFORM:
            ctx = self.master_context(image_bytes, src)
            lock = self._lock_for(ctx)
            size = lock.size_for_box(request.width_cm, request.height_cm)
            w_cm, h_cm, scaled = size.width_cm, size.height_cm, size.scaled

            billing: tuple[float, float] | None = None
            if request.has_billing_box:
                billing = (request.billing_width_cm, request.billing_height_cm)
            elif request.snap_to_catalog:
                billing = self.billing_size_for(w_cm, h_cm, request.catalog_color)
            if billing is not None:
                w_cm, h_cm = fit_aspect_into_box(billing[0], billing[1], lock.aspect)
                me = enforce_min_edge(w_cm, h_cm, s.min_edge_cm)
                if me.scaled:
                    w_cm, h_cm, scaled = me.width_cm, me.height_cm, True
                    billing = (max(billing[0], w_cm), max(billing[1], h_cm))

            border_px = mm_to_px(request.border_mm, dpi)
            variant, layout = self._freeform_frame(
                ctx,
                cm_to_px(w_cm, dpi),
                cm_to_px(h_cm, dpi),
                border_px,
                DilationStrategy.EXACT,
                min_px=cm_to_px(s.min_edge_cm, dpi),
            )
            w_cm, h_cm = px_to_cm(layout.size[0], dpi), px_to_cm(layout.size[1], dpi)
            report = self._check_resolution(src, w_cm, h_cm)

            img = compose.composite_freeform(ctx, variant, *layout.size, background, layout=layout)
            offset = (0, 0)
            if billing is not None:
                box = (
                    max(img.width, cm_to_px(billing[0], dpi)),
                    max(img.height, cm_to_px(billing[1], dpi)),
                )
                offset = compose.center_offset(img.size, box)
                canvas = Image.new("RGBA", box, (0, 0, 0, 0))
                canvas.alpha_composite(img, offset)
                img = canvas

            if background.has_fill:
                cut = cutline.extract_cutline(
                    ctx, variant, *layout.size, stroke_width=stroke, layout=layout, offset=offset
                )
            else:
                cut = CutlineResult.unavailable(stroke)
        else:
            billing, scaled = None, False
            w_cm = min(request.width_cm, s.max_edge_cm)
            h_cm = min(request.height_cm, s.max_edge_cm)
            report = self._check_resolution(src, w_cm, h_cm)
            out_w, out_h = cm_to_px(w_cm, dpi), cm_to_px(h_cm, dpi)
            pad = mm_to_px(self.config.rounded_radius_mm, dpi) if shape is ShapeKind.ROUNDED else 0
            img = compose.composite_shape(src, shape, out_w, out_h, background, pad)
            if background.has_fill:
                cut = cutline.shape_cutline(shape, img.width, img.height, stroke, corner_radius=pad or None)
            else:
                cut = CutlineResult.unavailable(stroke)

        png = compose.encode_png(img, dpi=dpi)
        logger.info(
            "Export %s %.2fx%.2f cm -> %dx%d px @%d DPI (%s, cutline=%s) in %.0fms",
            shape.value,
            w_cm,
            h_cm,
            img.width,
            img.height,
            dpi,
            report.status.value,
            "yes" if cut.available else "no",
            (time.perf_counter() - t0) * 1000,
        )
        return ExportResult(
            png=png,
            width_px=img.width,
            height_px=img.height,
            width_cm=round(w_cm, 2),
            height_cm=round(h_cm, 2),
            dpi=dpi,
            cutline=cut,
            resolution=report,
            billing_width_cm=billing[0] if billing else None,
            billing_height_cm=billing[1] if billing else None,
            min_edge_scaled=scaled,
        )

    def _check_resolution(self, src: Image.Image, w_cm: float, h_cm: float) -> ResolutionReport:
        report = self.validate_resolution(src.width, src.height, w_cm, h_cm)
        if not report.ok:
            logger.warning("Export aborted: %s", report.message)
        report.raise_for_status()
        return report

    def clear(self) -> None:
        self._masters.clear()
        self._previews.clear()
