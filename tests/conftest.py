from __future__ import annotations

import asyncio
import os
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest

from photodeck.backend.gateway import (
    CollectionRecord,
    ExifRecord,
    ImageDimensions,
    ImageFile,
    PhotoRecord,
    ThumbnailResult,
)
from photodeck.errors import BackendError
from photodeck.models import Collection, ExifData, Photo, PhotoMetadata


@pytest.fixture(scope="session", autouse=True)
def qcore_app():
    from PySide6.QtCore import QCoreApplication

    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    yield app


class FakeGateway:
    """Scriptable in-memory gateway.

    ``failures`` maps a method name to the exception it should raise, either
    for every call or, via ``fail_paths``, only for specific image paths.
    ``delays`` makes a method sleep before answering.  ``on_call`` runs
    before each method returns so tests can inspect the
    stores while a mutation is still awaiting confirmation.
    """

    def __init__(self) -> None:
        self.calls: List[Tuple[str, tuple]] = []
        self.failures: Dict[str, Exception] = {}
        self.fail_paths: Dict[str, Dict[str, Exception]] = {}
        self.on_call: Optional[Callable[[str, tuple], None]] = None
        self.files: List[ImageFile] = []
        self.exif: Dict[str, ExifRecord] = {}
        self.photos: List[PhotoRecord] = []
        self.collections: List[CollectionRecord] = []
        self.members: Dict[str, List[str]] = {}
        self.delays: Dict[str, float] = {}
        self._next_id = 100

    async def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))
        if self.on_call is not None:
            self.on_call(name, args)
        if name in self.delays:
            await asyncio.sleep(self.delays[name])
        if name in self.failures:
            raise self.failures[name]
        if args and isinstance(args[0], str) and args[0] in self.fail_paths.get(name, {}):
            raise self.fail_paths[name][args[0]]

    def called(self, name: str) -> List[tuple]:
        return [args for call, args in self.calls if call == name]

    def _new_id(self) -> str:
        self._next_id += 1
        return str(self._next_id)

    async def initialize(self) -> None:
        await self._record("initialize")

    async def insert_photo(self, record: PhotoRecord) -> str:
        await self._record("insert_photo", record.path, record)
        photo_id = self._new_id()
        self.photos.append(record)
        return photo_id

    async def get_all_photos(self) -> List[PhotoRecord]:
        await self._record("get_all_photos")
        return list(self.photos)

    async def update_metadata(self, photo_id: str, changes) -> None:
        await self._record("update_metadata", photo_id, dict(changes))

    async def create_collection(self, name: str) -> str:
        await self._record("create_collection", name)
        return self._new_id()

    async def get_all_collections(self) -> List[CollectionRecord]:
        await self._record("get_all_collections")
        return list(self.collections)

    async def delete_collection(self, collection_id: str) -> None:
        await self._record("delete_collection", collection_id)

    async def add_photo_to_collection(self, photo_id: str, collection_id: str) -> None:
        await self._record("add_photo_to_collection", photo_id, collection_id)

    async def remove_photo_from_collection(self, photo_id: str, collection_id: str) -> None:
        await self._record("remove_photo_from_collection", photo_id, collection_id)

    async def get_photos_in_collection(self, collection_id: str) -> List[PhotoRecord]:
        await self._record("get_photos_in_collection", collection_id)
        wanted = self.members.get(collection_id, [])
        return [record for record in self.photos if record.id in wanted]

    async def export_to_json(self) -> Dict[str, Any]:
        await self._record("export_to_json")
        return {"photos": [{"id": int(r.id), "path": r.path} for r in self.photos if r.id]}

    async def scan_images(self, folder_path: str) -> List[ImageFile]:
        await self._record("scan_images", folder_path)
        return list(self.files)

    async def get_exif(self, path: str) -> ExifRecord:
        await self._record("get_exif", path)
        return self.exif.get(path, ExifRecord())

    async def get_image_dimensions(self, path: str) -> ImageDimensions:
        await self._record("get_image_dimensions", path)
        return ImageDimensions(640, 480)

    async def generate_thumbnail(self, path: str) -> ThumbnailResult:
        await self._record("generate_thumbnail", path)
        return ThumbnailResult(f"/thumbs/{os.path.basename(path)}.jpg", 200, 150)

    async def resize_image(self, source_path, dest_path, width=None, height=None, preserve_exif=True) -> None:
        await self._record("resize_image", source_path, dest_path, width, height, preserve_exif)

    async def clear_thumbnail_cache(self) -> int:
        await self._record("clear_thumbnail_cache")
        return 3

    async def get_cache_size(self) -> int:
        await self._record("get_cache_size")
        return 4096


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def backend_error() -> BackendError:
    return BackendError("backend rejected the write")


ADDED = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_photo(
    photo_id: str,
    filename: Optional[str] = None,
    *,
    tags: Tuple[str, ...] = (),
    rating: Optional[int] = None,
    description: Optional[str] = None,
    is_favorite: bool = False,
    capture_date: Optional[datetime] = None,
    added_at: datetime = ADDED,
) -> Photo:
    name = filename or f"IMG_{photo_id}.jpg"
    return Photo(
        id=photo_id,
        path=f"/photos/{name}",
        filename=name,
        added_at=added_at,
        metadata=PhotoMetadata(tags=tags, rating=rating, description=description, is_favorite=is_favorite),
        exif=ExifData(capture_date=capture_date) if capture_date is not None else None,
    )


def make_collection(collection_id: str, name: Optional[str] = None, photo_ids: Tuple[str, ...] = ()) -> Collection:
    return Collection(collection_id, name or f"Album {collection_id}", ADDED, photo_ids)


@pytest.fixture
def photo_factory():
    return make_photo


@pytest.fixture
def collection_factory():
    return make_collection
