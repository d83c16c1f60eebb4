from __future__ import annotations

from pathlib import Path

import pytest

from photodeck.io.scanner import is_image_file, scan_images


@pytest.mark.parametrize(
    "name, expected",
    [
        ("a.jpg", True),
        ("A.JPEG", True),
        ("b.HEIC", True),
        ("c.webp", True),
        ("d.gif", False),
        ("README", False),
        (".jpg", False),
    ],
)
def test_is_image_file(name: str, expected: bool) -> None:
    assert is_image_file(name) is expected


def test_scan_is_recursive_and_sorted(tmp_path: Path) -> None:
    (tmp_path / "b").mkdir()
    (tmp_path / "a").mkdir()
    for relative in ("z.png", "b/2.jpg", "b/1.jpg", "a/x.heif", "a/skip.mov"):
        (tmp_path / relative).write_bytes(b"12345")

    found = scan_images(tmp_path)

    assert [Path(item.path).relative_to(tmp_path).as_posix() for item in found] == [
        "z.png",
        "a/x.heif",
        "b/1.jpg",
        "b/2.jpg",
    ]
    assert all(item.file_size == 5 for item in found)


def test_scan_rejects_missing_and_file_paths(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        scan_images(tmp_path / "missing")

    file_path = tmp_path / "photo.jpg"
    file_path.write_bytes(b"")
    with pytest.raises(NotADirectoryError):
        scan_images(file_path)
