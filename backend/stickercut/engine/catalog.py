"""Catalog loading and size-label parsing.

Labels come from shop data and are free text: "4x6", "4 × 6 cm", "Ø 4",
"D4", "Durchmesser 4,5", "10". ``parse_size_label`` resolves them with a
fixed precedence:

  1. two numbers joined by x / × → RectSize (as written)
  2. a diameter marker (Ø, durchmesser, diameter, leading "d<number>") → RoundSize
  3. exactly one number → RectSize square
  4. anything else → Unrecognized

Numbers may use a decimal comma. A trailing "mm" unit converts to cm.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Union

from pydantic import ValidationError

from stickercut.models.catalog import Catalog, ColorEntry, ShapeEntry, SizeOption

logger = logging.getLogger(__name__)

_NUM = r"(\d+(?:[.,]\d+)?)"
_RECT_RE = re.compile(_NUM + r"\s*(?:cm|mm)?\s*[x×*]\s*" + _NUM)
_NUM_RE = re.compile(_NUM)
_DIAMETER_RE = re.compile(r"ø|⌀|durchmesser|diameter|^d\s*\d")
_MM_RE = re.compile(r"\d\s*mm\b")


class CatalogError(ValueError):
    """Catalog data is structurally invalid."""


@dataclass(frozen=True)
class RectSize:
    width_cm: float
    height_cm: float
    kind: str = "rect"


@dataclass(frozen=True)
class RoundSize:
    diameter_cm: float
    kind: str = "round"

    @property
    def width_cm(self) -> float:
        return self.diameter_cm

    @property
    def height_cm(self) -> float:
        return self.diameter_cm


@dataclass(frozen=True)
class Unrecognized:
    text: str
    kind: str = "unrecognized"


SizeLabel = Union[RectSize, RoundSize, Unrecognized]


def _num(s: str) -> float:
    return float(s.replace(",", "."))


def parse_size_label(text: str | None) -> SizeLabel:
    raw = str(text or "")
    t = raw.strip().lower()
    unit = 0.1 if _MM_RE.search(t) else 1.0

    m = _RECT_RE.search(t)
    if m:
        return RectSize(_num(m.group(1)) * unit, _num(m.group(2)) * unit)

    nums = _NUM_RE.findall(t)
    if _DIAMETER_RE.search(t) and nums:
        return RoundSize(_num(nums[0]) * unit)

    if len(nums) == 1:
        n = _num(nums[0]) * unit
        return RectSize(n, n)

    return Unrecognized(raw)


def _with_dims(row: SizeOption, where: str) -> SizeOption:
    if row.has_dims:
        return row
    parsed = parse_size_label(row.label or row.size_key)
    if isinstance(parsed, Unrecognized) and row.label:
        parsed = parse_size_label(row.size_key)
    if isinstance(parsed, Unrecognized):
        raise CatalogError(f"{where}: size {row.size_key!r} has no dimensions and an unreadable label")
    if parsed.width_cm <= 0 or parsed.height_cm <= 0:
        raise CatalogError(f"{where}: size {row.size_key!r} has non-positive dimensions")
    return row.model_copy(
        update={
            "width_cm": row.width_cm or parsed.width_cm,
            "height_cm": row.height_cm or parsed.height_cm,
        }
    )


def _shape_entry(key: str, definition: Any) -> ShapeEntry:
    if isinstance(definition, list):
        data: dict[str, Any] = {"sizes": definition}
    elif isinstance(definition, Mapping):
        data = dict(definition)
    else:
        raise CatalogError(f"{key}: expected a list of sizes or an object, got {type(definition).__name__}")

    colors = data.get("colors") or {}
    if not isinstance(colors, Mapping):
        raise CatalogError(f"{key}: 'colors' must be an object")
    data["colors"] = {
        ck: {"color_key": ck, **c} if isinstance(c, Mapping) and "colorKey" not in c else c
        for ck, c in colors.items()
    }
    data["shape_key"] = key
    data.setdefault("label", key)

    try:
        entry = ShapeEntry.model_validate(data)
    except ValidationError as exc:
        raise CatalogError(f"{key}: {exc}") from exc

    sizes = [_with_dims(s, key) for s in entry.sizes]
    colors_out: dict[str, ColorEntry] = {}
    for ck, c in entry.colors.items():
        own = [_with_dims(s, f"{key}/{ck}") for s in c.sizes]
        if not own:
            own = [s.model_copy(update={"variant_id": ""}) for s in sizes]
        colors_out[ck] = c.model_copy(update={"sizes": own, "label": c.label or ck})

    if not colors_out and sizes:
        colors_out = {"white": ColorEntry(color_key="white", label="white", sizes=sizes)}
    if not sizes and entry.default_color_key in colors_out:
        sizes = list(colors_out[entry.default_color_key].sizes)

    return entry.model_copy(update={"sizes": sizes, "colors": colors_out})


def load_catalog(raw: Mapping[str, Any] | str | bytes) -> Catalog:
    """Validate a shape → sizes mapping (or its JSON text) into a ``Catalog``.

    Each shape maps either to a list of size rows or to an object with
    ``sizes`` and optional per-colour ``colors``. Malformed entries raise
    ``CatalogError``.
    """
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise CatalogError(f"Catalog is not valid JSON: {exc}") from exc
    if not isinstance(raw, Mapping):
        raise CatalogError(f"Catalog must be an object, got {type(raw).__name__}")

    shapes: dict[str, ShapeEntry] = {}
    for key_raw, definition in raw.items():
        key = str(key_raw or "").strip().lower()
        if not key:
            raise CatalogError("Catalog has an empty shape key")
        shapes[key] = _shape_entry(key, definition)

    logger.info(
        "Loaded catalog: %d shapes, %d sizes",
        len(shapes),
        sum(len(s.sizes) for s in shapes.values()),
    )
    return Catalog(shapes=shapes)
