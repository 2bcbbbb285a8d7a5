import base64
from pathlib import Path

import pytest

from gallery_viewer.errors import ErrorKind, GalleryError
from gallery_viewer.image_engine.full_image import load_full_image, to_data_url


def test_to_data_url():
    assert to_data_url(b"abc", "image/png") == "data:image/png;base64,YWJj"


def test_load_full_image_returns_original_bytes(tmp_path: Path, make_image):
    src = make_image(tmp_path / "photo.JPG", (20, 10), fmt="JPEG")
    url = load_full_image(src)
    prefix = "data:image/jpeg;base64,"
    assert url.startswith(prefix)
    assert base64.b64decode(url[len(prefix):]) == src.read_bytes()


def test_load_full_image_not_a_file(tmp_path: Path):
    with pytest.raises(GalleryError) as ei:
        load_full_image(tmp_path)
    assert ei.value.kind is ErrorKind.NOT_FOUND
    assert "is not a file" in str(ei.value)


def test_load_full_image_unsupported(tmp_path: Path):
    f = tmp_path / "notes.txt"
    f.write_text("hi")
    with pytest.raises(GalleryError) as ei:
        load_full_image(f)
    assert ei.value.kind is ErrorKind.UNSUPPORTED_FORMAT
    assert str(ei.value) == f"Unsupported image format: {f}"
