"""photodeck: an optimistic photo library cache with a batch import pipeline."""

__version__ = "0.1.0"

from .cache import CollectionStore, PhotoStore
from .config import AppPaths
from .core import (
    DateRange,
    FilterCriteria,
    ImportPipeline,
    ImportResult,
    MutationCoordinator,
    MutationResult,
    MutationState,
    SortBy,
    SortOrder,
    filter_photos,
    sort_photos,
)
from .errors import BackendError, MediaError, NotFoundError, PhotoDeckError, ValidationError
from .library import LibraryManager
from .models import Collection, ExifData, Photo, PhotoMetadata, ViewMode

__all__ = [
    "__version__",
    "AppPaths",
    "BackendError",
    "Collection",
    "CollectionStore",
    "DateRange",
    "ExifData",
    "FilterCriteria",
    "ImportPipeline",
    "ImportResult",
    "LibraryManager",
    "MediaError",
    "MutationCoordinator",
    "MutationResult",
    "MutationState",
    "NotFoundError",
    "Photo",
    "PhotoDeckError",
    "PhotoMetadata",
    "PhotoStore",
    "SortBy",
    "SortOrder",
    "ValidationError",
    "ViewMode",
    "filter_photos",
    "sort_photos",
]
