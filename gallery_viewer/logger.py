import logging
import os
import sys


def setup_logger(level: int = logging.INFO, name: str = "gallery_viewer") -> logging.Logger:
    """Create or update the project logger.

    - Respects env overrides GALLERY_VIEWER_LOG_LEVEL/GALLERY_VIEWER_LOG_CATS on every
      call (so late CLI parsing can still take effect).
    - Ensures there is exactly one stderr StreamHandler on the base logger and updates
      its formatter/filters instead of bailing out early.
    """
    logger = logging.getLogger(name)

    env_level = (os.getenv("GALLERY_VIEWER_LOG_LEVEL") or "").strip().lower()
    if env_level:
        level_map = {
            "debug": logging.DEBUG,
            "info": logging.INFO,
            "warning": logging.WARNING,
            "error": logging.ERROR,
            "critical": logging.CRITICAL,
        }
        level = level_map.get(env_level, level)
    logger.setLevel(level)

    # Our handler is tagged so it can be found again after sys.stderr has been
    # swapped (test capture, embedding hosts); it is re-pointed, not duplicated.
    stream_handler: logging.StreamHandler | None = None
    for h in list(logger.handlers):
        if getattr(h, "_gallery_viewer_stderr", False):
            stream_handler = h  # type: ignore[assignment]

    if stream_handler is None:
        stream_handler = logging.StreamHandler(stream=sys.stderr)
        stream_handler._gallery_viewer_stderr = True  # type: ignore[attr-defined]
        logger.addHandler(stream_handler)
    elif stream_handler.stream is not sys.stderr:
        # The previous stream may already be closed; setStream() would flush it.
        stream_handler.stream = sys.stderr

    fmt = logging.Formatter(
        fmt="[%(asctime)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    stream_handler.setFormatter(fmt)

    # Category filter: GALLERY_VIEWER_LOG_CATS=scanner,thumbnail_store
    stream_handler.filters.clear()
    cats = (os.getenv("GALLERY_VIEWER_LOG_CATS") or "").strip()
    if cats:
        allowed = {c.strip() for c in cats.split(",") if c.strip()}

        class _CategoryFilter(logging.Filter):
            def filter(self, record: logging.LogRecord) -> bool:
                # record.name like: gallery_viewer.scanner, gallery_viewer.walker
                parts = (record.name or "").split(".")
                suffix = parts[-1] if parts else record.name
                return suffix in allowed

        stream_handler.addFilter(_CategoryFilter())

    logger.propagate = False
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    base = setup_logger()
    return base if not name else base.getChild(name)
