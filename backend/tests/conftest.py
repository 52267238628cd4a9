"""Shared test fixtures: synthetic RGBA images and masks built in code."""

from __future__ import annotations

import io

import numpy as np
import pytest
from PIL import Image, ImageDraw

from stickercut.config import Settings
from stickercut.engine.config import EngineConfig


def rgba_canvas(w: int, h: int) -> np.ndarray:
    return np.zeros((h, w, 4), dtype=np.uint8)


def square_rgba(size: int = 100, inset: int = 10, color=(200, 30, 30)) -> np.ndarray:
    """Opaque square of side ``size - 2*inset`` centred on a transparent canvas."""
    arr = rgba_canvas(size, size)
    arr[inset : size - inset, inset : size - inset, :3] = color
    arr[inset : size - inset, inset : size - inset, 3] = 255
    return arr


def ring_image(size: int = 120, outer: int = 50, inner: int = 25) -> Image.Image:
    """Opaque annulus: the transparent hole is enclosed by artwork."""
    img = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    draw = ImageDraw.Draw(img)
    c = size // 2
    draw.ellipse((c - outer, c - outer, c + outer, c + outer), fill=(20, 120, 220, 255))
    draw.ellipse((c - inner, c - inner, c + inner, c + inner), fill=(0, 0, 0, 0))
    return img


def png_bytes(image: Image.Image) -> bytes:
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def opaque_image() -> Image.Image:
    arr = np.full((100, 100, 4), 255, dtype=np.uint8)
    return Image.fromarray(arr)


@pytest.fixture
def centered_square() -> Image.Image:
    return Image.fromarray(square_rgba())


@pytest.fixture
def ring() -> Image.Image:
    return ring_image()


@pytest.fixture
def logo_image() -> Image.Image:
    """1200×800 upload: a wide opaque ellipse with generous transparent padding."""
    img = Image.new("RGBA", (1200, 800), (0, 0, 0, 0))
    ImageDraw.Draw(img).ellipse((200, 200, 1000, 600), fill=(250, 200, 0, 255))
    return img


@pytest.fixture
def logo_png(logo_image) -> bytes:
    return png_bytes(logo_image)


@pytest.fixture
def bar_png() -> bytes:
    """1600×1600 upload holding a 4:1 red bar."""
    img = Image.new("RGBA", (1600, 1600), (0, 0, 0, 0))
    ImageDraw.Draw(img).rectangle((200, 650, 1399, 949), fill=(220, 20, 20, 255))
    return png_bytes(img)


@pytest.fixture
def photo_png() -> bytes:
    """Fully opaque 1200×1200 image, enough pixels for 10 cm at 300 DPI."""
    arr = np.zeros((1200, 1200, 4), dtype=np.uint8)
    arr[..., 0] = np.linspace(0, 255, 1200, dtype=np.uint8)[None, :]
    arr[..., 2] = 128
    arr[..., 3] = 255
    return png_bytes(Image.fromarray(arr))


@pytest.fixture
def small_config() -> EngineConfig:
    """Keeps master surfaces and masks small so tests stay fast."""
    return EngineConfig(master_long_side=200, pad_px=20, max_mask_dim=120, seal_gap_px=1)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(_env_file=None, export_dpi=100, preview_cache_size=4, master_cache_size=2)
