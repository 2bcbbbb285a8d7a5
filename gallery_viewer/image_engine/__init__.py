"""Image Engine - folder scanning and the persistent thumbnail cache.

This package provides the core data and processing functionality:
- Supported-format classification (classifier)
- Recursive folder enumeration (walker)
- Thumbnail generation (decoder)
- SQLite thumbnail cache (db)
- Scan orchestration with progress and cancellation (scanner)
- Qt signal wrapper for running scans off the UI thread (engine)

Usage:
    from gallery_viewer.image_engine import GalleryScanner

    scanner = GalleryScanner(data_dir)
    result = scanner.scan_folder("/path/to/images", 256)
"""

from .cancellation import CancellationToken
from .scanner import GalleryItem, GalleryScanner, ScanProgress, ScanResult

__all__ = [
    "CancellationToken",
    "GalleryItem",
    "GalleryScanner",
    "ScanProgress",
    "ScanResult",
]
