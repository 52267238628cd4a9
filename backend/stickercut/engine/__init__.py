"""Sticker mask & cutline engine."""

from stickercut.engine.border import BackingVariant, DilationStrategy
from stickercut.engine.context import (
    MasterContext,
    build_master_context,
    get_or_build_backing_variant,
    mask_aspect,
)
from stickercut.engine.compose import Background, ShapeKind, composite_freeform, composite_shape
from stickercut.engine.cutline import CutlineResult, extract_cutline, shape_cutline
from stickercut.engine.resolution import (
    ResolutionReport,
    ResolutionStatus,
    ResolutionTooLowError,
    validate_resolution,
)
