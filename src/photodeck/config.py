"""Configuration constants and filesystem locations for photodeck."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DB_NAME = "photos.db"
THUMBNAIL_DIR_NAME = "thumbnails"
DATA_DIR_ENV = "PHOTODECK_HOME"
DEFAULT_DATA_DIR = Path.home() / ".photodeck"

SCHEMA_VERSION = 1
THUMBNAIL_SIZE = 200
THUMBNAIL_QUALITY = 85

SUPPORTED_EXTENSIONS = ("jpg", "jpeg", "png", "webp", "heic", "heif")
EXPORT_FORMATS = {"jpg": "JPEG", "jpeg": "JPEG", "png": "PNG", "webp": "WEBP"}

# A rating of 0 is accepted on input but stored and read back as "no rating".
MIN_RATING = 0
MAX_RATING = 5


@dataclass(frozen=True)
class AppPaths:
    """Locations of the on-disk artefacts owned by a photodeck library."""

    data_dir: Path

    @property
    def db_path(self) -> Path:
        return self.data_dir / DB_NAME

    @property
    def thumbnail_dir(self) -> Path:
        return self.data_dir / THUMBNAIL_DIR_NAME

    @classmethod
    def from_env(cls, override: str | Path | None = None) -> "AppPaths":
        """Resolve the data directory from *override*, ``PHOTODECK_HOME`` or the default."""

        if override:
            return cls(Path(override).expanduser())
        env_value = os.environ.get(DATA_DIR_ENV, "").strip()
        if env_value:
            return cls(Path(env_value).expanduser())
        return cls(DEFAULT_DATA_DIR)


__all__ = [
    "AppPaths",
    "DB_NAME",
    "DATA_DIR_ENV",
    "DEFAULT_DATA_DIR",
    "EXPORT_FORMATS",
    "MAX_RATING",
    "MIN_RATING",
    "SCHEMA_VERSION",
    "SUPPORTED_EXTENSIONS",
    "THUMBNAIL_DIR_NAME",
    "THUMBNAIL_QUALITY",
    "THUMBNAIL_SIZE",
]
