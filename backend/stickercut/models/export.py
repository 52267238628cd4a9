"""Request / result models for preview and export."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, Field, field_validator

from stickercut.engine.compose import Background, ShapeKind
from stickercut.engine.cutline import CutlineResult
from stickercut.engine.resolution import ResolutionReport


class ExportRequest(BaseModel):
    """What the caller wants printed."""

    shape: ShapeKind = ShapeKind.FREEFORM
    width_cm: float = Field(default=4.0, ge=1, le=300)
    height_cm: float = Field(default=4.0, ge=1, le=300)
    # Billing box when it differs from the sticker size (freeform catalog sizes)
    billing_width_cm: float | None = Field(default=None, gt=0, le=300)
    billing_height_cm: float | None = Field(default=None, gt=0, le=300)
    bg_mode: str = "color"
    bg_color: str = "#ffffff"
    border_mm: float = Field(default=3.0, ge=0, le=10)
    # Preview only: cap on the longer output side
    max_px: int = Field(default=1200, ge=600, le=2000)
    # Snap a freeform size to the smallest catalog size that holds it
    snap_to_catalog: bool = False
    catalog_color: str | None = None

    @field_validator("shape", mode="before")
    @classmethod
    def _parse_shape(cls, v):
        return ShapeKind.parse(v)

    @property
    def background(self) -> Background:
        return Background.parse(self.bg_mode, self.bg_color)

    @property
    def has_billing_box(self) -> bool:
        return self.billing_width_cm is not None and self.billing_height_cm is not None


@dataclass(frozen=True)
class ExportResult:
    png: bytes
    width_px: int
    height_px: int
    width_cm: float
    height_cm: float
    dpi: int
    cutline: CutlineResult
    resolution: ResolutionReport
    billing_width_cm: float | None = None
    billing_height_cm: float | None = None
    min_edge_scaled: bool = False

    @property
    def has_cutline(self) -> bool:
        return self.cutline.available
