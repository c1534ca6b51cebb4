"""Command-line front end for the overlay pipeline."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from loguru import logger

from stamper import __version__
from stamper.config import get_config
from stamper.domain.errors import OverlayError
from stamper.pipeline import (
    DEFAULT_BATCH_FONT_SIZE,
    DEFAULT_EDGE_PERCENT,
    OverlayPipeline,
    create_pipeline,
)

EXIT_CODE_FAILURE = 1


def configure_logging(level: str) -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{message}</cyan>",
        level=level,
    )


def _add_overlay_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--text", required=True, help="Overlay text")
    parser.add_argument("--size", type=float, default=24.0, help="Font size in pixels")
    parser.add_argument("--x", type=float, default=0.0, help="Left edge in pixels")
    parser.add_argument("--y", type=float, default=0.0, help="Top edge in pixels")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="stamper")
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Override the configured log level",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", help="List images in a folder")
    list_parser.add_argument("folder")

    dims_parser = subparsers.add_parser("dims", help="Print an image's dimensions")
    dims_parser.add_argument("image")

    stamp_parser = subparsers.add_parser("stamp", help="Stamp one image into a folder")
    stamp_parser.add_argument("image")
    stamp_parser.add_argument(
        "output_dir", nargs="?", default=None, help="Destination folder (configured output_dir if omitted)"
    )
    _add_overlay_arguments(stamp_parser)

    batch_parser = subparsers.add_parser("batch", help="Stamp every image in a folder")
    batch_parser.add_argument("folder")
    batch_parser.add_argument(
        "output_dir", nargs="?", default=None, help="Destination folder (configured output_dir if omitted)"
    )
    batch_parser.add_argument("--text", default=None, help="Overlay text (file stem if omitted)")
    batch_parser.add_argument(
        "--size", type=float, default=DEFAULT_BATCH_FONT_SIZE, help="Font size for a 400x300 image"
    )
    batch_parser.add_argument(
        "--right", type=float, default=DEFAULT_EDGE_PERCENT, help="Right inset in percent"
    )
    batch_parser.add_argument(
        "--bottom", type=float, default=DEFAULT_EDGE_PERCENT, help="Bottom inset in percent"
    )

    preview_parser = subparsers.add_parser("preview", help="Print a preview data URI")
    preview_parser.add_argument("image")
    _add_overlay_arguments(preview_parser)
    preview_parser.add_argument(
        "--lightweight", action="store_true", help="Fast JPEG preview"
    )

    thumb_parser = subparsers.add_parser("thumbnail", help="Print a thumbnail data URI")
    thumb_parser.add_argument("image")

    return parser


def _output_dir(pipeline: OverlayPipeline, args: argparse.Namespace) -> Path:
    if args.output_dir is not None:
        return Path(args.output_dir)
    pipeline.config.ensure_directories()
    return pipeline.config.output_dir


def _run(pipeline: OverlayPipeline, args: argparse.Namespace) -> int:
    if args.command == "list":
        for path in pipeline.list_images(args.folder):
            print(path)
        return 0

    if args.command == "dims":
        dims = pipeline.get_dimensions(args.image)
        print(f"{dims.width}x{dims.height}")
        return 0

    if args.command == "stamp":
        result = pipeline.overlay_and_save(
            args.image, _output_dir(pipeline, args), args.text, args.size, args.x, args.y
        )
        if not result.success:
            print(result.error, file=sys.stderr)
            return EXIT_CODE_FAILURE
        print(result.output_path)
        return 0

    if args.command == "batch":
        report = pipeline.process_folder(
            args.folder,
            _output_dir(pipeline, args),
            text=args.text,
            base_font_size=args.size,
            right_percent=args.right,
            bottom_percent=args.bottom,
        )
        for item in report.items:
            status = "ok" if item.result.success else ("skipped" if item.result.skipped else "failed")
            detail = f" ({item.result.error})" if item.result.error else ""
            print(f"{status}\t{item.source.name}{detail}")
        return EXIT_CODE_FAILURE if report.failed else 0

    if args.command == "preview":
        render = pipeline.preview_lightweight if args.lightweight else pipeline.preview
        print(render(args.image, args.text, args.size, args.x, args.y))
        return 0

    if args.command == "thumbnail":
        print(pipeline.thumbnail(args.image))
        return 0

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config = get_config()
    level = args.log_level or ("DEBUG" if config.debug else config.log_level)
    configure_logging(level)

    pipeline = create_pipeline(config)
    try:
        return _run(pipeline, args)
    except OverlayError as e:
        print(f"{e.kind.value}: {e}", file=sys.stderr)
        return EXIT_CODE_FAILURE


if __name__ == "__main__":
    raise SystemExit(main())
