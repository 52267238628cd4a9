"""Engine configuration: algorithm tunables for mask building and rendering."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class EngineConfig:
    """Controls mask resolution, morphology and cutline simplification."""

    # Alpha > threshold counts as opaque
    alpha_threshold: int = 8
    # Closing radius (mask px) that seals thin slits before the flood fill
    seal_gap_px: int = 3

    # Master surface: long side of the inner rect plus transparent padding
    master_long_side: int = 1200
    pad_px: int = 120
    # Long side of the downsampled mask grid
    max_mask_dim: int = 520

    # Per-context backing variants kept in memory
    variant_cache_size: int = 12
    # Margin (mask px) around the backing bbox when cropping
    bbox_margin_px: int = 3

    # RDP tolerance in mask px
    rdp_tolerance: float = 1.2
    # Cutline stroke at export resolution
    cutline_stroke_px: float = 2.0

    # Preview rendering density and cap on the longer output side
    preview_px_per_cm: int = 100
    preview_max_px: int = 1200

    # Rounded-rectangle corner padding at preview density (2.8 mm)
    rounded_pad_px: int = 28

    @property
    def rounded_radius_mm(self) -> float:
        return self.rounded_pad_px / self.preview_px_per_cm * 10
