"""Pillow based helpers for dimensions, thumbnails, resizing and the thumbnail cache."""

from __future__ import annotations

import hashlib
import logging
import shutil
from pathlib import Path
from typing import Optional

from PIL import Image, ImageOps, UnidentifiedImageError

from ..backend.gateway import ImageDimensions, ThumbnailResult
from ..config import EXPORT_FORMATS, THUMBNAIL_QUALITY, THUMBNAIL_SIZE
from ..errors import MediaError

logger = logging.getLogger(__name__)


def hash_file_path(path: str | Path) -> str:
    return hashlib.sha256(str(path).encode("utf-8")).hexdigest()


def get_dimensions(path: str | Path) -> ImageDimensions:
    try:
        with Image.open(path) as image:
            width, height = image.size
    except (UnidentifiedImageError, OSError) as exc:
        raise MediaError(f"Failed to open image {path}: {exc}") from exc
    return ImageDimensions(width=width, height=height)


def generate_thumbnail(image_path: str | Path, cache_dir: Path, size: int = THUMBNAIL_SIZE) -> ThumbnailResult:
    """Create (or reuse) a JPEG thumbnail of *image_path* inside *cache_dir*.

    The thumbnail name is derived from a hash of the source path, so a second
    request for the same source returns the cached file untouched.
    """

    cache_dir.mkdir(parents=True, exist_ok=True)
    thumbnail_path = cache_dir / f"{hash_file_path(image_path)}.jpg"

    try:
        if thumbnail_path.exists():
            logger.debug("Using cached thumbnail: %s", thumbnail_path)
            with Image.open(thumbnail_path) as cached:
                width, height = cached.size
            return ThumbnailResult(str(thumbnail_path), width, height)

        with Image.open(image_path) as image:
            thumbnail = ImageOps.exif_transpose(image)
            thumbnail.thumbnail((size, size), Image.Resampling.LANCZOS)
            if thumbnail.mode not in ("RGB", "L"):
                thumbnail = thumbnail.convert("RGB")
            thumbnail.save(thumbnail_path, format="JPEG", quality=THUMBNAIL_QUALITY)
            width, height = thumbnail.size
    except (UnidentifiedImageError, OSError) as exc:
        raise MediaError(f"Failed to generate thumbnail for {image_path}: {exc}") from exc

    logger.debug("Thumbnail saved: %s", thumbnail_path)
    return ThumbnailResult(str(thumbnail_path), width, height)


def image_format_from_path(path: str | Path) -> str:
    suffix = Path(path).suffix.lower().lstrip(".")
    if not suffix:
        raise MediaError(f"No file extension found for {path}")
    try:
        return EXPORT_FORMATS[suffix]
    except KeyError:
        raise MediaError(f"Unsupported image format: {suffix}") from None


def _target_size(original: tuple[int, int], width: Optional[int], height: Optional[int]) -> Optional[tuple[int, int]]:
    src_w, src_h = original
    if width and height:
        return width, height
    if width:
        return width, max(1, int(width * src_h / src_w))
    if height:
        return max(1, int(height * src_w / src_h)), height
    return None


def resize_image(
    source_path: str | Path,
    dest_path: str | Path,
    width: Optional[int] = None,
    height: Optional[int] = None,
    preserve_exif: bool = True,
) -> None:
    """Write a resized copy of *source_path* to *dest_path*.

    Both dimensions resize exactly, a single dimension keeps the aspect ratio
    and no dimension re-encodes at the original size.  The output format is
    chosen from the destination extension.
    """

    fmt = image_format_from_path(dest_path)
    Path(dest_path).parent.mkdir(parents=True, exist_ok=True)
    try:
        with Image.open(source_path) as image:
            exif_bytes = image.info.get("exif") if preserve_exif else None
            target = _target_size(image.size, width, height)
            output = image.resize(target, Image.Resampling.LANCZOS) if target else image.copy()
            if fmt == "JPEG" and output.mode not in ("RGB", "L"):
                output = output.convert("RGB")
            save_kwargs = {}
            if exif_bytes:
                save_kwargs["exif"] = exif_bytes
            elif preserve_exif:
                logger.warning("No EXIF block to preserve for %s", source_path)
            output.save(dest_path, format=fmt, **save_kwargs)
    except (UnidentifiedImageError, OSError) as exc:
        raise MediaError(f"Failed to resize {source_path}: {exc}") from exc
    logger.info("Image resized: %s -> %s", source_path, dest_path)


def clear_cache(cache_dir: Path) -> int:
    """Delete every file in *cache_dir* and return how many were removed."""

    if not cache_dir.exists():
        return 0
    count = 0
    for entry in cache_dir.iterdir():
        if entry.is_file():
            entry.unlink()
            count += 1
        elif entry.is_dir():
            shutil.rmtree(entry)
    logger.info("Cleared %d cached thumbnails", count)
    return count


def cache_size(cache_dir: Path) -> int:
    if not cache_dir.exists():
        return 0
    return sum(entry.stat().st_size for entry in cache_dir.iterdir() if entry.is_file())


__all__ = [
    "cache_size",
    "clear_cache",
    "generate_thumbnail",
    "get_dimensions",
    "hash_file_path",
    "image_format_from_path",
    "resize_image",
]
