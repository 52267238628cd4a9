"""Print resolution check: effective DPI of an image at a physical size."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

from stickercut.utils.units import cm_to_inch

logger = logging.getLogger(__name__)

MIN_DPI = 180
WARN_DPI = 240
TARGET_DPI = 300


class ResolutionStatus(str, enum.Enum):
    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"


class ResolutionTooLowError(ValueError):
    """Image has too few pixels for the requested print size."""

    def __init__(self, effective_dpi: float, min_dpi: float) -> None:
        self.effective_dpi = effective_dpi
        self.min_dpi = min_dpi
        super().__init__(
            f"Resolution too low: {effective_dpi:.0f} DPI at the requested size, "
            f"at least {min_dpi:.0f} DPI required"
        )


@dataclass(frozen=True)
class ResolutionReport:
    effective_dpi: float
    status: ResolutionStatus
    message: str
    min_dpi: float = MIN_DPI

    @property
    def ok(self) -> bool:
        return self.status is not ResolutionStatus.FAIL

    def raise_for_status(self) -> None:
        if self.status is ResolutionStatus.FAIL:
            raise ResolutionTooLowError(self.effective_dpi, self.min_dpi)


def effective_dpi(px_w: int, px_h: int, w_cm: float, h_cm: float) -> float:
    """min(px_w / width_in, px_h / height_in)."""
    if w_cm <= 0 or h_cm <= 0:
        raise ValueError(f"Target size must be positive, got {w_cm}x{h_cm} cm")
    return min(px_w / cm_to_inch(w_cm), px_h / cm_to_inch(h_cm))


def validate_resolution(
    px_w: int,
    px_h: int,
    w_cm: float,
    h_cm: float,
    min_dpi: float = MIN_DPI,
    warn_dpi: float = WARN_DPI,
) -> ResolutionReport:
    """Classify the effective DPI into fail / warn / pass bands."""
    dpi = effective_dpi(px_w, px_h, w_cm, h_cm)
    if dpi < min_dpi:
        status = ResolutionStatus.FAIL
        message = f"{dpi:.0f} DPI is below the minimum of {min_dpi:.0f} DPI; choose a smaller size"
    elif dpi < warn_dpi:
        status = ResolutionStatus.WARN
        message = f"{dpi:.0f} DPI may print soft; {TARGET_DPI} DPI is ideal"
    else:
        status = ResolutionStatus.PASS
        message = f"{dpi:.0f} DPI"

    if status is not ResolutionStatus.PASS:
        logger.warning("Resolution %s: %dx%d px at %.2fx%.2f cm -> %.1f DPI",
                       status.value, px_w, px_h, w_cm, h_cm, dpi)
    return ResolutionReport(effective_dpi=dpi, status=status, message=message, min_dpi=min_dpi)
