"""Asynchronous command surface consumed by the core flows.

The core never talks to SQLite or Pillow directly.  It awaits the methods of
an object satisfying :class:`BackendGateway`; :class:`~photodeck.backend.local.LocalGateway`
is the production implementation and the tests provide scripted fakes.
Every method may raise :class:`~photodeck.errors.BackendError`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Protocol, Tuple


@dataclass(frozen=True)
class ImageFile:
    """A candidate file discovered by a directory scan."""

    path: str
    filename: str
    file_size: int


@dataclass(frozen=True)
class ExifRecord:
    camera_make: Optional[str] = None
    camera_model: Optional[str] = None
    lens_model: Optional[str] = None
    focal_length: Optional[float] = None
    aperture: Optional[float] = None
    shutter_speed: Optional[str] = None
    iso: Optional[int] = None
    exposure_bias: Optional[float] = None
    flash: Optional[str] = None
    orientation: Optional[int] = None
    capture_date: Optional[str] = None
    gps_latitude: Optional[float] = None
    gps_longitude: Optional[float] = None
    gps_altitude: Optional[float] = None


@dataclass(frozen=True)
class ImageDimensions:
    width: int
    height: int


@dataclass(frozen=True)
class ThumbnailResult:
    thumbnail_path: str
    width: int
    height: int


@dataclass(frozen=True)
class PhotoRecord:
    """Persisted photo row.

    ``tags`` is already a typed sequence here; the JSON text representation
    only exists inside :mod:`photodeck.backend.codec` and the database layer.
    """

    path: str
    filename: str
    file_size: int
    width: int
    height: int
    added_at: str
    capture_date: Optional[str] = None
    rating: int = 0
    is_favorite: bool = False
    tags: Tuple[str, ...] = ()
    description: Optional[str] = None
    thumbnail_path: Optional[str] = None
    id: Optional[str] = None


@dataclass(frozen=True)
class CollectionRecord:
    id: str
    name: str
    created_at: str


class BackendGateway(Protocol):
    """Persistence and media-processing operations, all awaitable."""

    async def initialize(self) -> None:
        ...

    async def insert_photo(self, record: PhotoRecord) -> str:
        ...

    async def get_all_photos(self) -> List[PhotoRecord]:
        ...

    async def update_metadata(self, photo_id: str, changes: Mapping[str, Any]) -> None:
        ...

    async def create_collection(self, name: str) -> str:
        ...

    async def get_all_collections(self) -> List[CollectionRecord]:
        ...

    async def delete_collection(self, collection_id: str) -> None:
        ...

    async def add_photo_to_collection(self, photo_id: str, collection_id: str) -> None:
        ...

    async def remove_photo_from_collection(self, photo_id: str, collection_id: str) -> None:
        ...

    async def get_photos_in_collection(self, collection_id: str) -> List[PhotoRecord]:
        ...

    async def export_to_json(self) -> Dict[str, Any]:
        ...

    async def scan_images(self, folder_path: str) -> List[ImageFile]:
        ...

    async def get_exif(self, path: str) -> ExifRecord:
        ...

    async def get_image_dimensions(self, path: str) -> ImageDimensions:
        ...

    async def generate_thumbnail(self, path: str) -> ThumbnailResult:
        ...

    async def resize_image(
        self,
        source_path: str,
        dest_path: str,
        width: Optional[int] = None,
        height: Optional[int] = None,
        preserve_exif: bool = True,
    ) -> None:
        ...

    async def clear_thumbnail_cache(self) -> int:
        ...

    async def get_cache_size(self) -> int:
        ...


__all__ = [
    "BackendGateway",
    "CollectionRecord",
    "ExifRecord",
    "ImageDimensions",
    "ImageFile",
    "PhotoRecord",
    "ThumbnailResult",
]
