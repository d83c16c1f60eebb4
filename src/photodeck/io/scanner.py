"""Directory walk that discovers importable image files."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, List

from ..config import SUPPORTED_EXTENSIONS
from ..backend.gateway import ImageFile

logger = logging.getLogger(__name__)


def is_image_file(path: str | Path, extensions: Iterable[str] = SUPPORTED_EXTENSIONS) -> bool:
    suffix = Path(path).suffix.lower().lstrip(".")
    return bool(suffix) and suffix in set(extensions)


def scan_images(folder_path: str | Path, extensions: Iterable[str] = SUPPORTED_EXTENSIONS) -> List[ImageFile]:
    """Return every supported image below *folder_path*.

    Directories and files are visited in sorted order so repeated scans of an
    unchanged tree yield the same sequence.  Files whose size cannot be read
    are skipped with a warning.

    Raises
    ------
    FileNotFoundError
        If *folder_path* does not exist.
    NotADirectoryError
        If *folder_path* is not a directory.
    """

    root = Path(folder_path)
    if not root.exists():
        raise FileNotFoundError(f"Folder does not exist: {folder_path}")
    if not root.is_dir():
        raise NotADirectoryError(f"Path is not a directory: {folder_path}")

    allowed = {ext.lower() for ext in extensions}
    logger.info("Scanning folder: %s", root)
    images: List[ImageFile] = []
    for dirpath, dirnames, filenames in os.walk(root, followlinks=True):
        dirnames.sort()
        for name in sorted(filenames):
            if not is_image_file(name, allowed):
                continue
            candidate = Path(dirpath) / name
            try:
                size = candidate.stat().st_size
            except OSError as exc:
                logger.warning("Failed to read metadata for %s: %s", candidate, exc)
                continue
            if not candidate.is_file():
                continue
            images.append(ImageFile(path=str(candidate), filename=name, file_size=size))

    logger.info("Found %d images in %s", len(images), root)
    return images


__all__ = ["is_image_file", "scan_images"]
