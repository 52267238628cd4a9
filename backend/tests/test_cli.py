"""Tests for the command-line entry point and environment settings."""

import io
import json
import re

import pytest
from PIL import Image

from stickercut import main as cli
from stickercut.config import Settings
from stickercut.engine.service import StickerEngine


@pytest.fixture
def fast_engine(monkeypatch, small_config, test_settings):
    def factory(catalog=None):
        return StickerEngine(config=small_config, settings=test_settings, catalog=catalog)

    monkeypatch.setattr(cli, "StickerEngine", factory)


@pytest.fixture
def logo_file(tmp_path, logo_png):
    path = tmp_path / "logo.png"
    path.write_bytes(logo_png)
    return path


def test_export_writes_png_and_cutline(fast_engine, logo_file, tmp_path, capsys):
    out = tmp_path / "out.png"
    cut = tmp_path / "out.path"
    code = cli.main([str(logo_file), "-o", str(out), "--width-cm", "10", "--height-cm", "5", "--cutline", str(cut)])
    assert code == 0
    img = Image.open(io.BytesIO(out.read_bytes()))
    assert img.mode == "RGBA"
    assert cut.read_text().startswith("M ")
    printed = capsys.readouterr().out
    # rendered size: the long side never exceeds the requested 10 cm
    w_cm = float(re.search(r"(\d+\.\d+)x\d+\.\d+ cm", printed).group(1))
    assert 7 < w_cm <= 10


def test_transparent_skips_cutline(fast_engine, logo_file, tmp_path):
    out = tmp_path / "out.png"
    cut = tmp_path / "out.path"
    code = cli.main([str(logo_file), "-o", str(out), "--transparent", "--cutline", str(cut)])
    assert code == 0
    assert out.exists()
    assert not cut.exists()


def test_low_resolution_exit_code(fast_engine, tmp_path, capsys):
    src = tmp_path / "tiny.png"
    Image.new("RGBA", (100, 100), (255, 0, 0, 255)).save(src)
    out = tmp_path / "out.png"
    code = cli.main([str(src), "-o", str(out), "--shape", "rect", "--width-cm", "10", "--height-cm", "10"])
    assert code == cli.EXIT_RESOLUTION
    assert not out.exists()
    assert "DPI" in capsys.readouterr().err


def test_bad_shape_is_usage_error(fast_engine, logo_file, tmp_path):
    code = cli.main([str(logo_file), "-o", str(tmp_path / "x.png"), "--shape", "hexagon"])
    assert code == cli.EXIT_USAGE


def test_preview(fast_engine, logo_file, tmp_path):
    out = tmp_path / "preview.png"
    code = cli.main([str(logo_file), "-o", str(out), "--preview", "--width-cm", "10", "--height-cm", "5", "--max-px", "600"])
    assert code == 0
    assert max(Image.open(out).size) <= 600


def test_catalog_snap(fast_engine, logo_file, tmp_path, capsys):
    catalog = tmp_path / "catalog.json"
    catalog.write_text(json.dumps({"freeform": [{"sizeKey": "l", "label": "12 x 12 cm"}]}))
    out = tmp_path / "out.png"
    code = cli.main([str(logo_file), "-o", str(out), "--width-cm", "8", "--height-cm", "4", "--catalog", str(catalog)])
    assert code == 0
    # sticker grown to fill the 12x12 billing box, written on the box canvas
    assert Image.open(out).size == (472, 472)
    w_cm = float(re.search(r"(\d+\.\d+)x\d+\.\d+ cm", capsys.readouterr().out).group(1))
    assert 8 < w_cm <= 12


def test_sizes_lists_presets(fast_engine, logo_file, tmp_path, capsys):
    out = tmp_path / "unused.png"
    code = cli.main([str(logo_file), "-o", str(out), "--sizes"])
    assert code == 0
    assert not out.exists()
    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 10
    assert lines[-1].startswith("20.00x")


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("STICKERCUT_EXPORT_DPI", "150")
    monkeypatch.setenv("STICKERCUT_MIN_DPI", "120")
    s = Settings(_env_file=None)
    assert s.export_dpi == 150
    assert s.min_dpi == 120
    assert s.warn_dpi == 240
