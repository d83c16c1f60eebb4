"""SQLite persistence for photos, collections and their memberships."""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Any, Dict, List, Mapping

from ..config import SCHEMA_VERSION
from .codec import decode_tags, encode_metadata_changes, encode_tags
from .connection_pool import ConnectionPool
from .gateway import CollectionRecord, PhotoRecord

logger = logging.getLogger(__name__)

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS app_metadata (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS photos (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        path TEXT NOT NULL UNIQUE,
        filename TEXT NOT NULL,
        file_size INTEGER NOT NULL,
        width INTEGER NOT NULL,
        height INTEGER NOT NULL,
        capture_date TEXT,
        added_at TEXT NOT NULL DEFAULT (datetime('now')),
        rating INTEGER NOT NULL DEFAULT 0,
        is_favorite INTEGER NOT NULL DEFAULT 0,
        tags TEXT NOT NULL DEFAULT '[]',
        description TEXT,
        thumbnail_path TEXT
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_photos_rating ON photos(rating)",
    "CREATE INDEX IF NOT EXISTS idx_photos_capture_date ON photos(capture_date)",
    "CREATE INDEX IF NOT EXISTS idx_photos_added_at ON photos(added_at)",
    "CREATE INDEX IF NOT EXISTS idx_photos_is_favorite ON photos(is_favorite)",
    """
    CREATE TABLE IF NOT EXISTS collections (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL UNIQUE,
        created_at TEXT NOT NULL DEFAULT (datetime('now'))
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS photo_collections (
        photo_id INTEGER NOT NULL,
        collection_id INTEGER NOT NULL,
        PRIMARY KEY (photo_id, collection_id),
        FOREIGN KEY (photo_id) REFERENCES photos(id) ON DELETE CASCADE,
        FOREIGN KEY (collection_id) REFERENCES collections(id) ON DELETE CASCADE
    )
    """,
)

_PHOTO_COLUMNS = (
    "id, path, filename, file_size, width, height, capture_date, added_at, "
    "rating, is_favorite, tags, description, thumbnail_path"
)


def _row_id(value: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid row id: {value!r}") from exc


def _photo_from_row(row: sqlite3.Row) -> PhotoRecord:
    return PhotoRecord(
        id=str(row["id"]),
        path=row["path"],
        filename=row["filename"],
        file_size=int(row["file_size"]),
        width=int(row["width"]),
        height=int(row["height"]),
        capture_date=row["capture_date"],
        added_at=row["added_at"],
        rating=int(row["rating"]),
        is_favorite=bool(row["is_favorite"]),
        tags=decode_tags(row["tags"]),
        description=row["description"],
        thumbnail_path=row["thumbnail_path"],
    )


class PhotoDatabase:
    """Blocking data-access object.  All writes go through this class."""

    def __init__(self, db_path: Path, pool_size: int = 4) -> None:
        self._db_path = Path(db_path)
        self._pool = ConnectionPool(self._db_path, pool_size=pool_size)

    @property
    def db_path(self) -> Path:
        return self._db_path

    def initialize(self) -> None:
        """Create the database file and schema if needed."""

        logger.info("Initializing database at %s", self._db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._pool.execute_transaction([(statement, ()) for statement in _SCHEMA])
        self._pool.execute_write(
            "INSERT OR IGNORE INTO app_metadata (key, value) VALUES ('schema_version', ?)",
            (str(SCHEMA_VERSION),),
        )

    def schema_version(self) -> int:
        rows = self._pool.execute_query(
            "SELECT value FROM app_metadata WHERE key = 'schema_version'"
        )
        return int(rows[0]["value"]) if rows else 0

    def close(self) -> None:
        self._pool.shutdown()

    # ------------------------------------------------------------------
    # Photos
    # ------------------------------------------------------------------
    def insert_photo(self, record: PhotoRecord) -> str:
        row_id, _ = self._pool.execute_write(
            "INSERT INTO photos (path, filename, file_size, width, height, capture_date, "
            "added_at, rating, is_favorite, tags, description, thumbnail_path) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                record.path,
                record.filename,
                record.file_size,
                record.width,
                record.height,
                record.capture_date,
                record.added_at,
                record.rating,
                1 if record.is_favorite else 0,
                encode_tags(record.tags),
                record.description,
                record.thumbnail_path,
            ),
        )
        return str(row_id)

    def get_all_photos(self) -> List[PhotoRecord]:
        rows = self._pool.execute_query(
            f"SELECT {_PHOTO_COLUMNS} FROM photos ORDER BY added_at DESC, id DESC"
        )
        return [_photo_from_row(row) for row in rows]

    def update_metadata(self, photo_id: str, changes: Mapping[str, Any]) -> None:
        """Write the given metadata fields.  An empty change set is a no-op."""

        columns = encode_metadata_changes(changes)
        if not columns:
            return
        assignments = ", ".join(f"{column} = ?" for column in columns)
        params = [*columns.values(), _row_id(photo_id)]
        _, rowcount = self._pool.execute_write(
            f"UPDATE photos SET {assignments} WHERE id = ?", params
        )
        if rowcount == 0:
            raise LookupError(f"Photo {photo_id} does not exist")

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------
    def create_collection(self, name: str, created_at: str) -> str:
        row_id, _ = self._pool.execute_write(
            "INSERT INTO collections (name, created_at) VALUES (?, ?)", (name, created_at)
        )
        return str(row_id)

    def get_all_collections(self) -> List[CollectionRecord]:
        rows = self._pool.execute_query(
            "SELECT id, name, created_at FROM collections ORDER BY created_at DESC, id DESC"
        )
        return [
            CollectionRecord(id=str(row["id"]), name=row["name"], created_at=row["created_at"])
            for row in rows
        ]

    def delete_collection(self, collection_id: str) -> None:
        cid = _row_id(collection_id)
        self._pool.execute_transaction(
            [
                ("DELETE FROM photo_collections WHERE collection_id = ?", (cid,)),
                ("DELETE FROM collections WHERE id = ?", (cid,)),
            ]
        )

    def add_photo_to_collection(self, photo_id: str, collection_id: str) -> None:
        self._pool.execute_write(
            "INSERT OR IGNORE INTO photo_collections (photo_id, collection_id) VALUES (?, ?)",
            (_row_id(photo_id), _row_id(collection_id)),
        )

    def remove_photo_from_collection(self, photo_id: str, collection_id: str) -> None:
        self._pool.execute_write(
            "DELETE FROM photo_collections WHERE photo_id = ? AND collection_id = ?",
            (_row_id(photo_id), _row_id(collection_id)),
        )

    def get_photos_in_collection(self, collection_id: str) -> List[PhotoRecord]:
        columns = ", ".join(f"p.{column.strip()}" for column in _PHOTO_COLUMNS.split(","))
        rows = self._pool.execute_query(
            f"SELECT {columns} FROM photos p "
            "INNER JOIN photo_collections pc ON p.id = pc.photo_id "
            "WHERE pc.collection_id = ? ORDER BY p.added_at DESC, p.id DESC",
            (_row_id(collection_id),),
        )
        return [_photo_from_row(row) for row in rows]

    # ------------------------------------------------------------------
    # Backup
    # ------------------------------------------------------------------
    def export_to_dict(self) -> Dict[str, Any]:
        """Return every table as plain JSON-compatible data."""

        photos = [
            {
                "id": int(record.id) if record.id is not None else None,
                "path": record.path,
                "filename": record.filename,
                "file_size": record.file_size,
                "width": record.width,
                "height": record.height,
                "capture_date": record.capture_date,
                "added_at": record.added_at,
                "rating": record.rating,
                "is_favorite": record.is_favorite,
                "tags": list(record.tags),
                "description": record.description,
                "thumbnail_path": record.thumbnail_path,
            }
            for record in self.get_all_photos()
        ]
        collections = [
            {"id": int(record.id), "name": record.name, "created_at": record.created_at}
            for record in self.get_all_collections()
        ]
        links = [
            {"photo_id": row["photo_id"], "collection_id": row["collection_id"]}
            for row in self._pool.execute_query(
                "SELECT photo_id, collection_id FROM photo_collections "
                "ORDER BY collection_id, photo_id"
            )
        ]
        return {"photos": photos, "collections": collections, "photo_collections": links}


__all__ = ["PhotoDatabase"]
