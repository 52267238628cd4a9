"""Size catalog models: shapes, colours and the sizes sold for each."""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class SizeOption(BaseModel):
    """One purchasable size. Dimensions may be omitted and read from the label."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    size_key: str = Field(min_length=1, validation_alias=AliasChoices("size_key", "sizeKey", "key"))
    label: str = ""
    width_cm: float | None = Field(
        default=None, gt=0, validation_alias=AliasChoices("width_cm", "widthCm", "wCm")
    )
    height_cm: float | None = Field(
        default=None, gt=0, validation_alias=AliasChoices("height_cm", "heightCm", "hCm")
    )
    variant_id: str = Field(default="", validation_alias=AliasChoices("variant_id", "variantId"))

    @property
    def has_dims(self) -> bool:
        return self.width_cm is not None and self.height_cm is not None


class ColorEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    color_key: str = Field(validation_alias=AliasChoices("color_key", "colorKey"))
    label: str = ""
    sizes: list[SizeOption] = []


class ShapeEntry(BaseModel):
    """Sizes offered for one catalog shape, optionally split by colour."""

    model_config = ConfigDict(populate_by_name=True)

    shape_key: str = Field(min_length=1)
    label: str = ""
    default_color_key: str = Field(
        default="white", validation_alias=AliasChoices("default_color_key", "defaultColorKey")
    )
    sizes: list[SizeOption] = []
    colors: dict[str, ColorEntry] = {}


class Catalog(BaseModel):
    shapes: dict[str, ShapeEntry] = {}

    def sizes_for(self, shape: str, color: str | None = None) -> list[SizeOption]:
        """Sizes for ``shape`` (and ``color`` when it has its own list)."""
        entry = self.shapes.get(str(shape).strip().lower())
        if entry is None:
            return []
        if color is not None:
            c = entry.colors.get(color)
            if c is not None and c.sizes:
                return list(c.sizes)
        return list(entry.sizes)
