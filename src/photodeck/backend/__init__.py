"""Backend gateway contract, record types and the persistence codec.

The SQLite/Pillow implementation lives in :mod:`photodeck.backend.local`.
"""

from .gateway import (
    BackendGateway,
    CollectionRecord,
    ExifRecord,
    ImageDimensions,
    ImageFile,
    PhotoRecord,
    ThumbnailResult,
)

__all__ = [
    "BackendGateway",
    "CollectionRecord",
    "ExifRecord",
    "ImageDimensions",
    "ImageFile",
    "PhotoRecord",
    "ThumbnailResult",
]
