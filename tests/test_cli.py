import json
from pathlib import Path

from gallery_viewer.__main__ import run


def test_cli_scan_json(photos: Path, data_dir: Path, capsys):
    rc = run(["gallery_viewer", str(photos), "--data-dir", str(data_dir), "--size", "64", "--json"])
    assert rc == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["cancelled"] is False
    assert [i["name"] for i in payload["items"]] == ["a.png", "b.jpg", "c.png"]
    assert (data_dir / "thumbnail_cache.sqlite").is_file()


def test_cli_remembers_last_folder(photos: Path, data_dir: Path, capsys):
    assert run(["gallery_viewer", str(photos), "--data-dir", str(data_dir)]) == 0
    capsys.readouterr()
    assert run(["gallery_viewer", "--data-dir", str(data_dir)]) == 0
    out = capsys.readouterr()
    assert len(out.out.strip().splitlines()) == 3
    assert "Loaded 3 images." in out.err


def test_cli_thumbnail(photos: Path, data_dir: Path, capsys):
    rc = run(["gallery_viewer", "--thumbnail", str(photos / "a.png"), "--data-dir", str(data_dir)])
    assert rc == 0
    assert capsys.readouterr().out.startswith("data:image/png;base64,")


def test_cli_invalid_folder(tmp_path: Path, data_dir: Path, capsys):
    rc = run(["gallery_viewer", str(tmp_path / "missing"), "--data-dir", str(data_dir)])
    assert rc == 1
    assert "is not a valid directory" in capsys.readouterr().err


def test_cli_no_folder(data_dir: Path, capsys):
    assert run(["gallery_viewer", "--data-dir", str(data_dir)]) == 2
    assert "no folder" in capsys.readouterr().err
