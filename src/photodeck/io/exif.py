"""EXIF extraction backed by Pillow."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping, Optional

from PIL import ExifTags, Image, UnidentifiedImageError

from ..backend.gateway import ExifRecord
from ..errors import MediaError

logger = logging.getLogger(__name__)

_EXIF_DATE_FORMATS = ("%Y:%m:%d %H:%M:%S", "%Y-%m-%d %H:%M:%S", "%Y:%m:%d")


def _as_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, tuple) and len(value) == 2:
        numerator, denominator = value
        if not denominator:
            return None
        return float(numerator) / float(denominator)
    try:
        return float(value)
    except (TypeError, ValueError, ZeroDivisionError):
        return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, (tuple, list)):
        value = value[0] if value else None
    number = _as_float(value)
    return int(number) if number is not None else None


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    text = str(value).strip().strip("\x00").strip()
    return text or None


def normalize_capture_date(value: Any) -> Optional[str]:
    """Convert an EXIF ``YYYY:MM:DD HH:MM:SS`` stamp into ISO-8601."""

    text = _as_text(value)
    if text is None:
        return None
    for fmt in _EXIF_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).isoformat()
        except ValueError:
            continue
    logger.debug("Unrecognised EXIF date %r", text)
    return None


def format_shutter_speed(exposure: Any) -> Optional[str]:
    seconds = _as_float(exposure)
    if seconds is None or seconds <= 0:
        return None
    if seconds < 1:
        return f"1/{round(1 / seconds)}"
    return f"{seconds:g}s"


def _gps_degrees(values: Any, ref: Any) -> Optional[float]:
    if not values or len(values) != 3:
        return None
    parts = [_as_float(part) for part in values]
    if any(part is None for part in parts):
        return None
    degrees, minutes, seconds = parts
    decimal = degrees + minutes / 60.0 + seconds / 3600.0
    if _as_text(ref) in ("S", "W"):
        decimal = -decimal
    return decimal


def _record_from_tags(base: Mapping[int, Any], exif_ifd: Mapping[int, Any], gps: Mapping[int, Any]) -> ExifRecord:
    def lookup(tag: int) -> Any:
        if tag in exif_ifd:
            return exif_ifd[tag]
        return base.get(tag)

    capture = normalize_capture_date(lookup(ExifTags.Base.DateTimeOriginal)) or normalize_capture_date(
        base.get(ExifTags.Base.DateTime)
    )
    flash = lookup(ExifTags.Base.Flash)
    altitude = _as_float(gps.get(ExifTags.GPS.GPSAltitude))
    if altitude is not None and _as_int(gps.get(ExifTags.GPS.GPSAltitudeRef)) == 1:
        altitude = -altitude

    return ExifRecord(
        camera_make=_as_text(base.get(ExifTags.Base.Make)),
        camera_model=_as_text(base.get(ExifTags.Base.Model)),
        lens_model=_as_text(lookup(ExifTags.Base.LensModel)),
        focal_length=_as_float(lookup(ExifTags.Base.FocalLength)),
        aperture=_as_float(lookup(ExifTags.Base.FNumber)),
        shutter_speed=format_shutter_speed(lookup(ExifTags.Base.ExposureTime)),
        iso=_as_int(lookup(ExifTags.Base.ISOSpeedRatings)),
        exposure_bias=_as_float(lookup(ExifTags.Base.ExposureBiasValue)),
        flash=str(flash) if flash is not None else None,
        orientation=_as_int(base.get(ExifTags.Base.Orientation)),
        capture_date=capture,
        gps_latitude=_gps_degrees(gps.get(ExifTags.GPS.GPSLatitude), gps.get(ExifTags.GPS.GPSLatitudeRef)),
        gps_longitude=_gps_degrees(gps.get(ExifTags.GPS.GPSLongitude), gps.get(ExifTags.GPS.GPSLongitudeRef)),
        gps_altitude=altitude,
    )


def extract_exif(path: str | Path) -> ExifRecord:
    """Return the EXIF block of *path*.

    An image that carries no EXIF yields an empty :class:`ExifRecord`.  Files
    that cannot be opened as images raise :class:`MediaError`.
    """

    try:
        with Image.open(path) as image:
            exif = image.getexif()
            if not exif:
                logger.debug("No EXIF data found in %s", path)
                return ExifRecord()
            exif_ifd = exif.get_ifd(ExifTags.IFD.Exif)
            gps_ifd = exif.get_ifd(ExifTags.IFD.GPSInfo)
            return _record_from_tags(exif, exif_ifd, gps_ifd)
    except (UnidentifiedImageError, OSError) as exc:
        raise MediaError(f"Failed to read EXIF from {path}: {exc}") from exc


__all__ = ["extract_exif", "format_shutter_speed", "normalize_capture_date"]
