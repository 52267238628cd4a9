"""Command-line entry point: local image in, sticker PNG (and cutline) out."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

from stickercut.config import settings
from stickercut.engine.catalog import CatalogError, load_catalog
from stickercut.engine.resolution import ResolutionTooLowError
from stickercut.engine.service import StickerEngine
from stickercut.models.export import ExportRequest

load_dotenv()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)

logger = logging.getLogger(__name__)

EXIT_USAGE = 1
EXIT_RESOLUTION = 2


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="stickercut",
        description="Turn an image into a print-ready die-cut sticker PNG and cutline.",
    )
    p.add_argument("input", type=Path, help="source image (PNG with transparency works best)")
    p.add_argument("-o", "--output", type=Path, required=True, help="PNG to write")
    p.add_argument("--shape", default="freeform", help="freeform, rect, square, round, oval, rounded")
    p.add_argument("--width-cm", type=float, default=4.0)
    p.add_argument("--height-cm", type=float, default=4.0)
    p.add_argument("--billing-width-cm", type=float)
    p.add_argument("--billing-height-cm", type=float)
    p.add_argument("--border-mm", type=float, default=3.0)
    p.add_argument("--bg-color", default="#ffffff")
    p.add_argument("--transparent", action="store_true", help="no background fill, no cutline")
    p.add_argument("--preview", action="store_true", help="fast low-resolution preview instead of export")
    p.add_argument("--max-px", type=int, default=1200, help="preview: longer output side")
    p.add_argument("--catalog", type=Path, help="JSON size catalog for freeform billing snap")
    p.add_argument("--cutline", type=Path, help="write the cutline path data here")
    p.add_argument("--sizes", action="store_true", help="list freeform sizes for this image and exit")
    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        request = ExportRequest(
            shape=args.shape,
            width_cm=args.width_cm,
            height_cm=args.height_cm,
            billing_width_cm=args.billing_width_cm,
            billing_height_cm=args.billing_height_cm,
            bg_mode="transparent" if args.transparent else "color",
            bg_color=args.bg_color,
            border_mm=args.border_mm,
            max_px=args.max_px,
            snap_to_catalog=args.catalog is not None,
        )
        catalog_path = args.catalog or (Path(settings.catalog_path) if settings.catalog_path else None)
        catalog = load_catalog(catalog_path.read_text(encoding="utf-8")) if catalog_path else None
    except (ValidationError, CatalogError) as exc:
        print(f"stickercut: {exc}", file=sys.stderr)
        return EXIT_USAGE

    engine = StickerEngine(catalog=catalog)
    data = args.input.read_bytes()

    if args.sizes:
        for w, h in engine.size_presets(data):
            print(f"{w:.2f}x{h:.2f} cm")
        return 0

    if args.preview:
        args.output.write_bytes(engine.render_preview(data, request))
        logger.info("Preview written to %s", args.output)
        return 0

    try:
        result = engine.export(data, request)
    except ResolutionTooLowError as exc:
        print(f"stickercut: {exc}", file=sys.stderr)
        return EXIT_RESOLUTION

    args.output.write_bytes(result.png)
    if result.resolution.status.value == "warn":
        print(f"stickercut: warning: {result.resolution.message}", file=sys.stderr)
    if args.cutline is not None:
        if result.has_cutline:
            args.cutline.write_text(result.cutline.svg_d + "\n", encoding="utf-8")
        else:
            logger.warning("No cutline available; %s not written", args.cutline)

    print(
        f"{args.output}: {result.width_px}x{result.height_px} px, "
        f"{result.width_cm:.2f}x{result.height_cm:.2f} cm, "
        f"{result.resolution.effective_dpi:.0f} DPI"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
