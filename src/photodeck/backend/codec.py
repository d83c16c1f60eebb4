"""Conversions between persisted records and domain models.

This is the only module that knows the tag list travels as JSON text and
that "no rating" is stored as ``0``.  Code on either side of it only ever
sees typed values.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Mapping, Optional

from ..errors import ValidationError
from ..models import METADATA_FIELDS, Collection, ExifData, Photo, PhotoMetadata, normalize_tags
from .gateway import CollectionRecord, ExifRecord, PhotoRecord


def encode_tags(tags: Iterable[str]) -> str:
    return json.dumps(list(normalize_tags(tags)), ensure_ascii=False)


def decode_tags(payload: Optional[str]) -> tuple[str, ...]:
    """Decode the JSON tag column; empty or ``NULL`` columns decode to ``()``."""

    if payload is None or not payload.strip():
        return ()
    try:
        decoded = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Invalid tag payload: {payload!r}") from exc
    if not isinstance(decoded, list) or not all(isinstance(tag, str) for tag in decoded):
        raise ValidationError(f"Tag payload must be a list of strings: {payload!r}")
    return normalize_tags(decoded)


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 (or SQLite ``datetime('now')``) string.

    Naive values are interpreted as UTC.  Unparseable values yield ``None``.
    """

    if not value:
        return None
    normalized = value.strip()
    if normalized.endswith("Z"):
        normalized = f"{normalized[:-1]}+00:00"
    try:
        parsed = datetime.fromisoformat(normalized)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def encode_rating(rating: Optional[int]) -> int:
    return int(rating) if rating is not None else 0


def decode_rating(value: Any) -> Optional[int]:
    if value is None:
        return None
    rating = int(value)
    return rating if rating > 0 else None


def exif_from_record(record: ExifRecord) -> ExifData:
    return ExifData(
        capture_date=parse_timestamp(record.capture_date),
        camera_make=record.camera_make,
        camera_model=record.camera_model,
        lens_model=record.lens_model,
        iso=record.iso,
        aperture=record.aperture,
        shutter_speed=record.shutter_speed,
        focal_length=record.focal_length,
    )


def photo_from_record(record: PhotoRecord, exif: Optional[ExifRecord] = None) -> Photo:
    """Build a :class:`Photo` from a persisted row.

    When the full *exif* record from the extraction stage is available it is
    preferred; otherwise only the persisted capture date is known.
    """

    if record.id is None:
        raise ValidationError(f"Photo record for {record.path} has no id")

    if exif is not None:
        exif_data: Optional[ExifData] = exif_from_record(exif)
    elif record.capture_date:
        exif_data = ExifData(capture_date=parse_timestamp(record.capture_date))
    else:
        exif_data = None

    added_at = parse_timestamp(record.added_at) or datetime.fromtimestamp(0, timezone.utc)
    return Photo(
        id=str(record.id),
        path=record.path,
        filename=record.filename,
        added_at=added_at,
        metadata=PhotoMetadata(
            tags=record.tags,
            rating=decode_rating(record.rating),
            description=record.description or None,
            is_favorite=bool(record.is_favorite),
        ),
        thumbnail_path=record.thumbnail_path or None,
        exif=exif_data,
        file_size=record.file_size,
        width=record.width,
        height=record.height,
    )


def collection_from_record(record: CollectionRecord, photo_ids: Iterable[str]) -> Collection:
    created_at = parse_timestamp(record.created_at) or datetime.fromtimestamp(0, timezone.utc)
    return Collection(
        id=str(record.id),
        name=record.name,
        created_at=created_at,
        photo_ids=tuple(str(pid) for pid in photo_ids),
    )


def encode_metadata_changes(changes: Mapping[str, Any]) -> Dict[str, Any]:
    """Map metadata field changes onto ``photos`` column values."""

    columns: Dict[str, Any] = {}
    for key, value in changes.items():
        if key not in METADATA_FIELDS:
            raise ValidationError(f"Unknown metadata field: {key}")
        if key == "tags":
            columns["tags"] = encode_tags(value or ())
        elif key == "rating":
            columns["rating"] = encode_rating(value)
        elif key == "is_favorite":
            columns["is_favorite"] = 1 if value else 0
        else:
            columns["description"] = value
    return columns


__all__ = [
    "collection_from_record",
    "decode_rating",
    "decode_tags",
    "encode_metadata_changes",
    "encode_rating",
    "encode_tags",
    "exif_from_record",
    "format_timestamp",
    "parse_timestamp",
    "photo_from_record",
]
