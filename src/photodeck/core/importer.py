"""Bulk import of a folder of images into the backend and the photo store."""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Awaitable, Callable, List, NamedTuple, Optional, Tuple, Union

from ..backend.codec import format_timestamp, photo_from_record
from ..backend.gateway import BackendGateway, ImageFile, PhotoRecord
from ..cache.entity_store import PhotoStore
from ..models import Photo

logger = logging.getLogger(__name__)

NO_SELECTION_MESSAGE = "No folder selected"


class ImportStage(str, Enum):
    EXTRACT_METADATA = "extract_metadata"
    PROBE_DIMENSIONS = "probe_dimensions"
    DERIVE_THUMBNAIL = "derive_thumbnail"
    PERSIST = "persist"


class ImportOutcome(str, Enum):
    COMPLETED = "completed"
    NO_SELECTION = "no_selection"
    FAILED = "failed"


class ImportProgress(NamedTuple):
    current: int
    total: int
    current_file: str


@dataclass(frozen=True)
class FailedItem:
    path: str
    filename: str
    stage: ImportStage
    reason: str


@dataclass(frozen=True)
class ImportResult:
    """Summary of one pipeline run.

    Item-level failures leave ``success`` untouched; they only show up as
    ``count < total`` and in ``failed``.
    """

    success: bool
    count: int
    total: int = 0
    error: Optional[str] = None
    outcome: ImportOutcome = ImportOutcome.COMPLETED
    failed: Tuple[FailedItem, ...] = ()

    @property
    def partial(self) -> bool:
        return self.success and bool(self.failed)

    @property
    def failed_paths(self) -> List[str]:
        return [item.path for item in self.failed]

    @classmethod
    def no_selection(cls) -> "ImportResult":
        return cls(False, 0, error=NO_SELECTION_MESSAGE, outcome=ImportOutcome.NO_SELECTION)

    @classmethod
    def failure(cls, error: str) -> "ImportResult":
        return cls(False, 0, error=error, outcome=ImportOutcome.FAILED)


ProgressCallback = Callable[[ImportProgress], None]
FolderPicker = Callable[[], Union[Optional[str], Path, Awaitable[Optional[Union[str, Path]]]]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ImportPipeline:
    """Discover images, process each through the import stages, then publish.

    Items are handled strictly in discovery order.  A failure in any stage
    drops only that item; nothing is persisted for it.  Successful photos are
    appended to the store in one batch once every item has been attempted.
    """

    def __init__(
        self,
        gateway: BackendGateway,
        photos: PhotoStore,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._gateway = gateway
        self._photos = photos
        self._clock = clock

    async def load_folder(
        self, picker: FolderPicker, on_progress: Optional[ProgressCallback] = None
    ) -> ImportResult:
        """Prepare persistence, ask *picker* for a folder and import it."""

        try:
            await self._gateway.initialize()
            selection = picker()
            if inspect.isawaitable(selection):
                selection = await selection
        except Exception as exc:
            logger.error("Import aborted before discovery: %s", exc)
            return ImportResult.failure(str(exc) or type(exc).__name__)

        if not selection:
            logger.info("Import cancelled: no folder selected")
            return ImportResult.no_selection()
        return await self.import_folder(selection, on_progress)

    async def import_folder(
        self, folder: Union[str, Path], on_progress: Optional[ProgressCallback] = None
    ) -> ImportResult:
        try:
            files = await self._gateway.scan_images(str(folder))
        except Exception as exc:
            logger.error("Failed to scan %s: %s", folder, exc)
            return ImportResult.failure(str(exc) or type(exc).__name__)

        total = len(files)
        if total == 0:
            return ImportResult(True, 0, 0)

        loaded: List[Photo] = []
        failed: List[FailedItem] = []
        try:
            for index, item in enumerate(files, start=1):
                if on_progress is not None:
                    on_progress(ImportProgress(index, total, item.filename))

                photo, failure = await self._process(item)
                if failure is not None:
                    failed.append(failure)
                else:
                    loaded.append(photo)
        finally:
            # Persisted rows always reach the store, even when a progress
            # callback error or a cancellation stops the run early.
            self._photos.insert_many(loaded)
        logger.info(
            "Imported %d of %d images from %s (%d failed)", len(loaded), total, folder, len(failed)
        )
        return ImportResult(True, len(loaded), total, failed=tuple(failed))

    async def _process(self, item: ImageFile) -> Tuple[Optional[Photo], Optional[FailedItem]]:
        stage = ImportStage.EXTRACT_METADATA
        try:
            exif = await self._gateway.get_exif(item.path)

            stage = ImportStage.PROBE_DIMENSIONS
            dimensions = await self._gateway.get_image_dimensions(item.path)

            stage = ImportStage.DERIVE_THUMBNAIL
            thumbnail = await self._gateway.generate_thumbnail(item.path)

            stage = ImportStage.PERSIST
            record = PhotoRecord(
                path=item.path,
                filename=item.filename,
                file_size=item.file_size,
                width=dimensions.width,
                height=dimensions.height,
                added_at=format_timestamp(self._clock()),
                capture_date=exif.capture_date,
                thumbnail_path=thumbnail.thumbnail_path,
            )
            photo_id = await self._gateway.insert_photo(record)
        except Exception as exc:
            logger.warning("Failed to process %s during %s: %s", item.filename, stage.value, exc)
            return None, FailedItem(item.path, item.filename, stage, str(exc) or type(exc).__name__)

        return photo_from_record(replace(record, id=str(photo_id)), exif), None


__all__ = [
    "FailedItem",
    "FolderPicker",
    "ImportOutcome",
    "ImportPipeline",
    "ImportProgress",
    "ImportResult",
    "ImportStage",
    "ProgressCallback",
]
