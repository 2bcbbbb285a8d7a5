"""Error taxonomy for the gallery pipeline.

Structural failures (bad root, store unavailable) propagate to the caller;
per-item failures are raised with the same type and caught by the scanner,
which logs and skips the item. Text is rendered only at the outer boundary
via ``str(err)``.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(Enum):
    INVALID_ROOT = "invalid_root"
    STORE_UNAVAILABLE = "store_unavailable"
    DECODE_FAILED = "decode_failed"
    ENCODE_FAILED = "encode_failed"
    IO_FAILURE = "io_failure"
    NOT_FOUND = "not_found"
    UNSUPPORTED_FORMAT = "unsupported_format"


_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.INVALID_ROOT: "{path} is not a valid directory.",
    ErrorKind.STORE_UNAVAILABLE: "Thumbnail cache unavailable ({path})",
    ErrorKind.DECODE_FAILED: "Failed to open image {path}",
    ErrorKind.ENCODE_FAILED: "Failed to encode thumbnail {path}",
    ErrorKind.IO_FAILURE: "I/O failure for {path}",
    ErrorKind.NOT_FOUND: "{path} is not a file.",
    ErrorKind.UNSUPPORTED_FORMAT: "Unsupported image format: {path}",
}


class GalleryError(Exception):
    """Typed failure with the offending path and an optional detail string."""

    def __init__(self, kind: ErrorKind, path: object = "", detail: str | None = None) -> None:
        self.kind = kind
        self.path = str(path)
        self.detail = detail
        super().__init__(self.message)

    @property
    def message(self) -> str:
        text = _MESSAGES[self.kind].format(path=self.path or "<unknown>")
        if self.detail:
            text = f"{text}: {self.detail}"
        return text

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"GalleryError({self.kind.name}, path={self.path!r}, detail={self.detail!r})"
