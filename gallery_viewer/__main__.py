"""Command-line entry point: scan a folder or fetch a single thumbnail.

    python -m gallery_viewer /photos --size 256
    python -m gallery_viewer --thumbnail /photos/a.png --size 128
"""

from __future__ import annotations

import argparse
import json
import os
import signal
import sys
from collections.abc import Sequence
from pathlib import Path

from gallery_viewer.errors import GalleryError
from gallery_viewer.image_engine.scanner import GalleryScanner, ScanProgress
from gallery_viewer.logger import get_logger, setup_logger
from gallery_viewer.path_utils import default_data_dir
from gallery_viewer.settings_manager import SettingsManager

_SETTINGS_FILE = "settings.json"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gallery_viewer", description="Gallery thumbnail cache")
    parser.add_argument("folder", nargs="?", help="Folder to scan (default: last scanned folder)")
    parser.add_argument("--size", type=int, default=None, help="Thumbnail max dimension in pixels")
    parser.add_argument("--data-dir", default=None, help="Directory holding the thumbnail cache DB")
    parser.add_argument("--workers", type=int, default=None, help="Thumbnail worker threads")
    parser.add_argument("--embed", action="store_true", help="Embed thumbnail data URLs in the output")
    parser.add_argument("--thumbnail", metavar="PATH", default=None, help="Print the thumbnail data URL for PATH")
    parser.add_argument("--json", action="store_true", help="Print the scan result as JSON")
    parser.add_argument("--log-level", help="Set log level")
    parser.add_argument("--log-cats", help="Set log categories")
    return parser


def _apply_logging_options(args: argparse.Namespace) -> None:
    if args.log_level:
        os.environ["GALLERY_VIEWER_LOG_LEVEL"] = args.log_level
    if args.log_cats:
        os.environ["GALLERY_VIEWER_LOG_CATS"] = args.log_cats
    setup_logger()


def run(argv: Sequence[str] | None = None) -> int:
    argv = list(sys.argv if argv is None else argv)
    args = _build_parser().parse_args(argv[1:])
    _apply_logging_options(args)
    logger = get_logger("main")

    data_dir = Path(args.data_dir) if args.data_dir else default_data_dir()
    settings = SettingsManager(str(data_dir / _SETTINGS_FILE))
    size = args.size if args.size is not None else settings.thumbnail_size
    scanner = GalleryScanner(data_dir, max_workers=args.workers or settings.worker_count)

    try:
        if args.thumbnail:
            print(scanner.get_thumbnail(args.thumbnail, size))
            return 0

        folder = args.folder or settings.last_folder
        if not folder:
            print("error: no folder given", file=sys.stderr)
            return 2

        def _on_progress(event: ScanProgress) -> None:
            logger.debug("Generating %d/%d: %s", event.current, event.total, event.name)

        # Ctrl+C requests a cooperative stop instead of killing the worker pool.
        previous = signal.signal(signal.SIGINT, lambda *_: scanner.cancel())
        try:
            result = scanner.scan_folder(folder, size, progress=_on_progress, embed_thumbnails=args.embed)
        finally:
            signal.signal(signal.SIGINT, previous)
    except (GalleryError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    settings.set("last_folder", str(Path(folder).absolute()))
    if args.json:
        print(json.dumps(result.to_dict(), ensure_ascii=False))
    else:
        for item in result.items:
            print(item.path)
        print(result.status_text(), file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(run())
