"""Pure filter and sort functions over a snapshot of photos.

Nothing in this module reads or writes a store.  Callers pass a sequence of
:class:`~photodeck.models.Photo` (usually ``PhotoStore.snapshot()``) and get a
new list back.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from ..models import Photo, normalize_tags


class SortBy(str, Enum):
    CAPTURE_DATE = "captureDate"
    FILENAME = "filename"
    RATING = "rating"
    ADDED_DATE = "addedDate"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


DEFAULT_SORT_BY = SortBy.ADDED_DATE
DEFAULT_SORT_ORDER = SortOrder.DESC


def _timestamp(value: Optional[datetime]) -> float:
    """Return a comparable timestamp; missing values sort before everything."""

    if value is None:
        return float("-inf")
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.timestamp()


@dataclass(frozen=True)
class DateRange:
    """Inclusive range over capture dates."""

    start: datetime
    end: datetime

    def contains(self, value: datetime) -> bool:
        return _timestamp(self.start) <= _timestamp(value) <= _timestamp(self.end)


@dataclass(frozen=True)
class FilterCriteria:
    """Filter settings.  Every inactive test passes every photo."""

    tags: Tuple[str, ...] = ()
    min_rating: Optional[int] = None
    date_range: Optional[DateRange] = None
    keyword: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "tags", normalize_tags(self.tags))

    def is_active(self) -> bool:
        return bool(
            self.tags
            or self.min_rating is not None
            or self.date_range is not None
            or self.keyword.strip()
        )

    def with_tag(self, tag: str) -> "FilterCriteria":
        return replace(self, tags=self.tags + (tag,))

    def without_tag(self, tag: str) -> "FilterCriteria":
        return replace(self, tags=tuple(t for t in self.tags if t != tag))

    def cleared(self) -> "FilterCriteria":
        return FilterCriteria()


def _matches_keyword(photo: Photo, needle: str, *, include_tags: bool = False) -> bool:
    if needle in photo.filename.lower():
        return True
    description = photo.metadata.description
    if description and needle in description.lower():
        return True
    if include_tags:
        return any(needle in tag.lower() for tag in photo.metadata.tags)
    return False


def filter_photos(photos: Iterable[Photo], criteria: FilterCriteria) -> List[Photo]:
    """Return the photos passing every active test, in their input order.

    * tags: every required tag must be in the photo's tag set;
    * rating: the photo needs a defined rating of at least ``min_rating``;
    * date range: the photo needs a capture date inside the inclusive range;
    * keyword: case-insensitive substring of the filename or description.
    """

    tests: List[Callable[[Photo], bool]] = []

    if criteria.tags:
        required = criteria.tags
        tests.append(lambda photo: all(tag in photo.metadata.tags for tag in required))

    if criteria.min_rating is not None:
        minimum = criteria.min_rating
        tests.append(
            lambda photo: photo.metadata.rating is not None and photo.metadata.rating >= minimum
        )

    if criteria.date_range is not None:
        date_range = criteria.date_range
        tests.append(
            lambda photo: photo.capture_date is not None and date_range.contains(photo.capture_date)
        )

    needle = criteria.keyword.strip().lower()
    if needle:
        tests.append(lambda photo: _matches_keyword(photo, needle))

    return [photo for photo in photos if all(test(photo) for test in tests)]


_SORT_KEYS: Dict[SortBy, Callable[[Photo], object]] = {
    SortBy.CAPTURE_DATE: lambda photo: _timestamp(photo.capture_date),
    SortBy.FILENAME: lambda photo: photo.filename,
    SortBy.RATING: lambda photo: photo.metadata.rating or 0,
    SortBy.ADDED_DATE: lambda photo: _timestamp(photo.added_at),
}


def sort_photos(
    photos: Iterable[Photo],
    sort_by: SortBy | str = DEFAULT_SORT_BY,
    order: SortOrder | str = DEFAULT_SORT_ORDER,
) -> List[Photo]:
    """Return *photos* sorted by *sort_by*.

    The sort is stable in both directions: ``sorted(..., reverse=True)``
    keeps equal keys in their original relative order.
    """

    key = _SORT_KEYS[SortBy(sort_by)]
    return sorted(photos, key=key, reverse=SortOrder(order) is SortOrder.DESC)


def project(
    photos: Iterable[Photo],
    criteria: FilterCriteria,
    sort_by: SortBy | str = DEFAULT_SORT_BY,
    order: SortOrder | str = DEFAULT_SORT_ORDER,
) -> List[Photo]:
    """Return the filtered view of *photos* in the requested order."""

    return sort_photos(filter_photos(photos, criteria), sort_by, order)


def all_tags(photos: Iterable[Photo]) -> List[str]:
    return sorted({tag for photo in photos for tag in photo.metadata.tags})


def favorite_photos(photos: Iterable[Photo]) -> List[Photo]:
    return [photo for photo in photos if photo.metadata.is_favorite]


def search_photos(photos: Sequence[Photo], keyword: str) -> List[Photo]:
    """Keyword search that also matches inside tags."""

    needle = (keyword or "").strip().lower()
    if not needle:
        return list(photos)
    return [photo for photo in photos if _matches_keyword(photo, needle, include_tags=True)]


def photos_by_rating(
    photos: Iterable[Photo], min_rating: int, max_rating: Optional[int] = None
) -> List[Photo]:
    """Return photos whose rating (missing counts as 0) lies in the range."""

    result = []
    for photo in photos:
        rating = photo.metadata.rating or 0
        if rating < min_rating:
            continue
        if max_rating is not None and rating > max_rating:
            continue
        result.append(photo)
    return result


__all__ = [
    "DEFAULT_SORT_BY",
    "DEFAULT_SORT_ORDER",
    "DateRange",
    "FilterCriteria",
    "SortBy",
    "SortOrder",
    "all_tags",
    "favorite_photos",
    "filter_photos",
    "photos_by_rating",
    "project",
    "search_photos",
    "sort_photos",
]
