"""Exception hierarchy shared across photodeck."""

from __future__ import annotations


class PhotoDeckError(Exception):
    """Base class for every error raised by photodeck."""


class NotFoundError(PhotoDeckError):
    """The entity targeted by a mutation is not present in the store."""


class ValidationError(PhotoDeckError):
    """Input was malformed, for example a duplicate id or an invalid rating."""


class BackendError(PhotoDeckError):
    """A gateway operation was rejected or failed while running."""


class MediaError(BackendError):
    """An image could not be decoded, probed or encoded."""


__all__ = [
    "PhotoDeckError",
    "NotFoundError",
    "ValidationError",
    "BackendError",
    "MediaError",
]
