"""stickercut: raster mask and cutline engine for die-cut stickers."""

__version__ = "0.1.0"
