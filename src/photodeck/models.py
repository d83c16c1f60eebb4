"""Domain records held by the entity store.

Every record is a frozen dataclass.  The store replaces records wholesale
instead of mutating them, which means a reference obtained from a read is a
stable point-in-time snapshot that later writes can never alter.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterable, Optional, Tuple


def normalize_tags(tags: Iterable[str]) -> Tuple[str, ...]:
    """Return *tags* stripped, without empty entries and without duplicates.

    The first occurrence of a tag wins so the caller's ordering survives.
    """

    seen: dict[str, None] = {}
    for tag in tags:
        cleaned = str(tag).strip()
        if cleaned and cleaned not in seen:
            seen[cleaned] = None
    return tuple(seen)


class ViewMode(str, Enum):
    GRID = "grid"
    DETAIL = "detail"


@dataclass(frozen=True)
class ExifData:
    """Camera metadata extracted at import time.  Every field is optional."""

    capture_date: Optional[datetime] = None
    camera_make: Optional[str] = None
    camera_model: Optional[str] = None
    lens_model: Optional[str] = None
    iso: Optional[int] = None
    aperture: Optional[float] = None
    shutter_speed: Optional[str] = None
    focal_length: Optional[float] = None


@dataclass(frozen=True)
class PhotoMetadata:
    """User-editable metadata attached to a photo."""

    tags: Tuple[str, ...] = ()
    rating: Optional[int] = None
    description: Optional[str] = None
    is_favorite: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "tags", normalize_tags(self.tags))


METADATA_FIELDS = ("tags", "rating", "description", "is_favorite")


@dataclass(frozen=True)
class Photo:
    id: str
    path: str
    filename: str
    added_at: datetime
    metadata: PhotoMetadata = field(default_factory=PhotoMetadata)
    thumbnail_path: Optional[str] = None
    exif: Optional[ExifData] = None
    file_size: int = 0
    width: int = 0
    height: int = 0

    @property
    def capture_date(self) -> Optional[datetime]:
        return self.exif.capture_date if self.exif is not None else None


@dataclass(frozen=True)
class Collection:
    """A named group of photo ids.

    ``photo_ids`` behaves like an ordered set.  Members may reference photos
    that are not loaded in the photo store.
    """

    id: str
    name: str
    created_at: datetime
    photo_ids: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "photo_ids", tuple(dict.fromkeys(self.photo_ids)))

    def with_member(self, photo_id: str) -> "Collection":
        if photo_id in self.photo_ids:
            return self
        return Collection(self.id, self.name, self.created_at, self.photo_ids + (photo_id,))

    def without_member(self, photo_id: str) -> "Collection":
        remaining = tuple(pid for pid in self.photo_ids if pid != photo_id)
        return Collection(self.id, self.name, self.created_at, remaining)


__all__ = [
    "Collection",
    "ExifData",
    "METADATA_FIELDS",
    "Photo",
    "PhotoMetadata",
    "ViewMode",
    "normalize_tags",
]
