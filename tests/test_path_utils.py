from pathlib import Path

import pytest

from gallery_viewer.errors import ErrorKind, GalleryError
from gallery_viewer.path_utils import abs_path, cache_key, default_data_dir, ensure_data_dir


def test_cache_key_is_deterministic():
    assert cache_key("/photos/a.png") == cache_key("/photos/a.png")
    assert cache_key(Path("/photos/a.png")) == cache_key("/photos/a.png")


def test_cache_key_is_sha256_hex():
    key = cache_key("/photos/a.png")
    assert len(key) == 64
    assert all(c in "0123456789abcdef" for c in key)


def test_cache_key_distinguishes_paths():
    paths = [f"/photos/img_{i:04d}.png" for i in range(500)]
    assert len({cache_key(p) for p in paths}) == len(paths)
    assert cache_key("/photos/a.png") != cache_key("/photos/A.png")


def test_cache_key_ignores_file_state(tmp_path: Path):
    f = tmp_path / "a.png"
    before = cache_key(f)
    f.write_bytes(b"content")
    assert cache_key(f) == before


def test_abs_path_does_not_require_existence(tmp_path: Path):
    p = abs_path(tmp_path / "nope" / "x.png")
    assert p.is_absolute()


def test_default_data_dir_env_override(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("GALLERY_VIEWER_DATA_DIR", str(tmp_path / "custom"))
    assert default_data_dir() == (tmp_path / "custom").resolve()


def test_ensure_data_dir_creates(tmp_path: Path):
    target = tmp_path / "a" / "b"
    assert ensure_data_dir(target) == target.resolve()
    assert target.is_dir()


def test_ensure_data_dir_failure(tmp_path: Path):
    blocker = tmp_path / "blocker"
    blocker.write_text("file, not a dir")
    with pytest.raises(GalleryError) as ei:
        ensure_data_dir(blocker / "child")
    assert ei.value.kind is ErrorKind.IO_FAILURE
    assert "app data directory" in str(ei.value)
