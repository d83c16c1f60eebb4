"""Production :class:`~photodeck.backend.gateway.BackendGateway` implementation.

Blocking SQLite and Pillow work is pushed onto worker threads with
:func:`asyncio.to_thread` so the event loop driving the core flows only
suspends at these calls.  Every failure surfaces as
:class:`~photodeck.errors.BackendError`.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from functools import partial
from typing import Any, Callable, Dict, List, Mapping, Optional, TypeVar

from ..config import AppPaths
from ..errors import BackendError
from ..io import exif, images, scanner
from .codec import format_timestamp
from .database import PhotoDatabase
from .gateway import CollectionRecord, ExifRecord, ImageDimensions, ImageFile, PhotoRecord, ThumbnailResult

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LocalGateway:
    """SQLite-backed persistence plus local media processing."""

    def __init__(self, paths: AppPaths) -> None:
        self._paths = paths
        self._db: Optional[PhotoDatabase] = None

    @property
    def paths(self) -> AppPaths:
        return self._paths

    async def _run(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        try:
            return await asyncio.to_thread(partial(func, *args, **kwargs))
        except BackendError:
            raise
        except Exception as exc:
            raise BackendError(f"{getattr(func, '__name__', 'operation')} failed: {exc}") from exc

    def _database(self) -> PhotoDatabase:
        if self._db is None:
            raise BackendError("Database not initialized")
        return self._db

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    async def initialize(self) -> None:
        if self._db is not None:
            return
        database = PhotoDatabase(self._paths.db_path)
        await self._run(database.initialize)
        self._db = database

    async def close(self) -> None:
        if self._db is not None:
            await self._run(self._db.close)
            self._db = None

    async def insert_photo(self, record: PhotoRecord) -> str:
        return await self._run(self._database().insert_photo, record)

    async def get_all_photos(self) -> List[PhotoRecord]:
        return await self._run(self._database().get_all_photos)

    async def update_metadata(self, photo_id: str, changes: Mapping[str, Any]) -> None:
        await self._run(self._database().update_metadata, photo_id, dict(changes))

    async def create_collection(self, name: str) -> str:
        created_at = format_timestamp(datetime.now(timezone.utc))
        return await self._run(self._database().create_collection, name, created_at)

    async def get_all_collections(self) -> List[CollectionRecord]:
        return await self._run(self._database().get_all_collections)

    async def delete_collection(self, collection_id: str) -> None:
        await self._run(self._database().delete_collection, collection_id)

    async def add_photo_to_collection(self, photo_id: str, collection_id: str) -> None:
        await self._run(self._database().add_photo_to_collection, photo_id, collection_id)

    async def remove_photo_from_collection(self, photo_id: str, collection_id: str) -> None:
        await self._run(self._database().remove_photo_from_collection, photo_id, collection_id)

    async def get_photos_in_collection(self, collection_id: str) -> List[PhotoRecord]:
        return await self._run(self._database().get_photos_in_collection, collection_id)

    async def export_to_json(self) -> Dict[str, Any]:
        return await self._run(self._database().export_to_dict)

    # ------------------------------------------------------------------
    # Media
    # ------------------------------------------------------------------
    async def scan_images(self, folder_path: str) -> List[ImageFile]:
        return await self._run(scanner.scan_images, folder_path)

    async def get_exif(self, path: str) -> ExifRecord:
        return await self._run(exif.extract_exif, path)

    async def get_image_dimensions(self, path: str) -> ImageDimensions:
        return await self._run(images.get_dimensions, path)

    async def generate_thumbnail(self, path: str) -> ThumbnailResult:
        return await self._run(images.generate_thumbnail, path, self._paths.thumbnail_dir)

    async def resize_image(
        self,
        source_path: str,
        dest_path: str,
        width: Optional[int] = None,
        height: Optional[int] = None,
        preserve_exif: bool = True,
    ) -> None:
        await self._run(images.resize_image, source_path, dest_path, width, height, preserve_exif)

    async def clear_thumbnail_cache(self) -> int:
        return await self._run(images.clear_cache, self._paths.thumbnail_dir)

    async def get_cache_size(self) -> int:
        return await self._run(images.cache_size, self._paths.thumbnail_dir)


__all__ = ["LocalGateway"]
