"""Session facade wiring the stores, the gateway and the core flows together."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional

from ..backend.codec import collection_from_record, photo_from_record
from ..backend.gateway import BackendGateway
from ..cache.entity_store import CollectionStore, PhotoStore
from ..core.importer import FolderPicker, ImportPipeline, ImportResult, ProgressCallback
from ..core.mutations import MutationCoordinator
from ..core.projection import (
    DEFAULT_SORT_BY,
    DEFAULT_SORT_ORDER,
    FilterCriteria,
    SortBy,
    SortOrder,
    project,
)
from ..errors import BackendError
from ..models import Photo
from ..utils.jsonio import write_json

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExportOptions:
    width: Optional[int] = None
    height: Optional[int] = None
    preserve_exif: bool = True
    format: str = "original"


@dataclass(frozen=True)
class ExportResult:
    exported_count: int
    failed_paths: List[str]


class LibraryManager:
    """Own the session stores and expose the user-facing flows."""

    def __init__(
        self,
        gateway: BackendGateway,
        photos: Optional[PhotoStore] = None,
        collections: Optional[CollectionStore] = None,
    ) -> None:
        self._gateway = gateway
        self.photos = photos if photos is not None else PhotoStore()
        self.collections = collections if collections is not None else CollectionStore()
        self.mutations = MutationCoordinator(gateway, self.photos, self.collections)
        self.importer = ImportPipeline(gateway, self.photos)

    @property
    def gateway(self) -> BackendGateway:
        return self._gateway

    async def open(self) -> None:
        """Initialise persistence and load everything into the stores."""

        await self._gateway.initialize()
        await self.reload_photos()
        await self.load_collections()

    async def reload_photos(self) -> None:
        records = await self._gateway.get_all_photos()
        self.photos.replace_all(photo_from_record(record) for record in records)
        logger.info("Loaded %d photos", len(self.photos))

    async def load_collections(self) -> None:
        collections = []
        for record in await self._gateway.get_all_collections():
            members = await self._gateway.get_photos_in_collection(record.id)
            collections.append(collection_from_record(record, (member.id for member in members)))
        self.collections.replace_all(collections)
        logger.info("Loaded %d collections", len(collections))

    async def load_folder(
        self, picker: FolderPicker, on_progress: Optional[ProgressCallback] = None
    ) -> ImportResult:
        return await self.importer.load_folder(picker, on_progress)

    def view(
        self,
        criteria: Optional[FilterCriteria] = None,
        sort_by: SortBy | str = DEFAULT_SORT_BY,
        order: SortOrder | str = DEFAULT_SORT_ORDER,
    ) -> List[Photo]:
        return project(self.photos.snapshot(), criteria or FilterCriteria(), sort_by, order)

    # ------------------------------------------------------------------
    # Export and maintenance
    # ------------------------------------------------------------------
    async def export_photos(
        self, photo_ids: Iterable[str], destination: Path, options: ExportOptions = ExportOptions()
    ) -> ExportResult:
        """Export each photo into *destination*; one failure does not stop the rest."""

        exported = 0
        failed: List[str] = []
        for photo_id in photo_ids:
            photo = self.photos.by_id(photo_id)
            if photo is None:
                logger.warning("Skipping export of unknown photo %s", photo_id)
                continue
            source = Path(photo.path)
            suffix = source.suffix if options.format == "original" else f".{options.format}"
            target = destination / f"{source.stem}{suffix}"
            try:
                await self._gateway.resize_image(
                    photo.path, str(target), options.width, options.height, options.preserve_exif
                )
            except BackendError as exc:
                logger.warning("Failed to export %s: %s", photo.path, exc)
                failed.append(photo.path)
                continue
            exported += 1
        return ExportResult(exported, failed)

    async def backup(self, path: Path) -> Path:
        """Write the full database dump as JSON to *path*."""

        payload = await self._gateway.export_to_json()
        write_json(path, payload)
        logger.info("Wrote backup to %s", path)
        return path

    async def cache_size(self) -> int:
        return await self._gateway.get_cache_size()

    async def clear_thumbnail_cache(self) -> int:
        return await self._gateway.clear_thumbnail_cache()


__all__ = ["ExportOptions", "ExportResult", "LibraryManager"]
