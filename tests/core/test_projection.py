from __future__ import annotations

from datetime import datetime, timedelta, timezone

from photodeck.core.projection import (
    DateRange,
    FilterCriteria,
    SortBy,
    SortOrder,
    all_tags,
    favorite_photos,
    filter_photos,
    photos_by_rating,
    project,
    search_photos,
    sort_photos,
)


def _ids(photos):
    return [photo.id for photo in photos]


def test_filter_tags_and_min_rating(photo_factory) -> None:
    photos = [
        photo_factory("1", tags=("sunset", "beach"), rating=5),
        photo_factory("2", tags=("sunset",), rating=2),
        photo_factory("3", tags=("beach",), rating=4),
        photo_factory("4", tags=("sunset",), rating=3),
        photo_factory("5", tags=("sunset",)),
    ]

    result = filter_photos(photos, FilterCriteria(tags=("sunset",), min_rating=3))

    assert _ids(result) == ["1", "4"]


def test_filter_requires_every_tag(photo_factory) -> None:
    photos = [
        photo_factory("1", tags=("a", "b")),
        photo_factory("2", tags=("a",)),
    ]
    assert _ids(filter_photos(photos, FilterCriteria(tags=("a", "b")))) == ["1"]


def test_inactive_criteria_pass_everything(photo_factory) -> None:
    photos = [photo_factory("1"), photo_factory("2", rating=1)]
    criteria = FilterCriteria(keyword="   ")

    assert not criteria.is_active()
    assert _ids(filter_photos(photos, criteria)) == ["1", "2"]


def test_filter_is_idempotent(photo_factory) -> None:
    photos = [photo_factory(str(i), rating=i % 4, tags=("x",) if i % 2 else ()) for i in range(8)]
    criteria = FilterCriteria(tags=("x",), min_rating=1)

    once = filter_photos(photos, criteria)
    assert filter_photos(once, criteria) == once


def test_min_rating_excludes_unrated(photo_factory) -> None:
    photos = [photo_factory("1"), photo_factory("2", rating=0)]
    assert filter_photos(photos, FilterCriteria(min_rating=0)) == [photos[1]]


def test_date_range_is_inclusive_and_needs_capture_date(photo_factory) -> None:
    start = datetime(2024, 5, 1, tzinfo=timezone.utc)
    end = datetime(2024, 5, 31, tzinfo=timezone.utc)
    photos = [
        photo_factory("1", capture_date=start),
        photo_factory("2", capture_date=end),
        photo_factory("3", capture_date=end + timedelta(seconds=1)),
        photo_factory("4"),
        photo_factory("5", capture_date=datetime(2024, 5, 15, 12, 0)),
    ]

    result = filter_photos(photos, FilterCriteria(date_range=DateRange(start, end)))

    assert _ids(result) == ["1", "2", "5"]


def test_keyword_matches_filename_or_description(photo_factory) -> None:
    photos = [
        photo_factory("1", "Beach_Day.JPG"),
        photo_factory("2", "img.jpg", description="At the beach"),
        photo_factory("3", "img2.jpg", tags=("beach",)),
    ]

    assert _ids(filter_photos(photos, FilterCriteria(keyword="  beach "))) == ["1", "2"]
    assert _ids(search_photos(photos, "BEACH")) == ["1", "2", "3"]


def test_sort_by_filename_ascending(photo_factory) -> None:
    photos = [photo_factory("1", "b.jpg"), photo_factory("2", "a.jpg"), photo_factory("3", "c.jpg")]

    result = sort_photos(photos, SortBy.FILENAME, SortOrder.ASC)

    assert [photo.filename for photo in result] == ["a.jpg", "b.jpg", "c.jpg"]


def test_sort_is_stable_in_both_directions(photo_factory) -> None:
    photos = [
        photo_factory("1", rating=3),
        photo_factory("2", rating=5),
        photo_factory("3", rating=3),
        photo_factory("4", rating=5),
    ]

    assert _ids(sort_photos(photos, "rating", "asc")) == ["1", "3", "2", "4"]
    assert _ids(sort_photos(photos, "rating", "desc")) == ["2", "4", "1", "3"]


def test_sort_missing_values_first_ascending(photo_factory) -> None:
    photos = [
        photo_factory("1", rating=2, capture_date=datetime(2023, 1, 1, tzinfo=timezone.utc)),
        photo_factory("2"),
        photo_factory("3", rating=1, capture_date=datetime(2022, 1, 1, tzinfo=timezone.utc)),
    ]

    assert _ids(sort_photos(photos, SortBy.CAPTURE_DATE, SortOrder.ASC)) == ["2", "3", "1"]
    assert _ids(sort_photos(photos, SortBy.CAPTURE_DATE, SortOrder.DESC)) == ["1", "3", "2"]
    assert _ids(sort_photos(photos, SortBy.RATING, SortOrder.ASC)) == ["2", "3", "1"]


def test_default_sort_is_added_date_descending(photo_factory) -> None:
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    photos = [photo_factory(str(i), added_at=base + timedelta(days=i)) for i in range(3)]

    assert _ids(sort_photos(photos)) == ["2", "1", "0"]


def test_project_does_not_mutate_input(photo_factory) -> None:
    photos = [photo_factory("1", "b.jpg", rating=4), photo_factory("2", "a.jpg", rating=5)]
    snapshot = list(photos)

    result = project(photos, FilterCriteria(min_rating=4), SortBy.FILENAME, SortOrder.ASC)

    assert _ids(result) == ["2", "1"]
    assert photos == snapshot


def test_criteria_helpers() -> None:
    criteria = FilterCriteria().with_tag("sunset").with_tag(" sunset ").with_tag("beach")
    assert criteria.tags == ("sunset", "beach")
    assert criteria.without_tag("sunset").tags == ("beach",)
    assert not criteria.cleared().is_active()


def test_tag_and_rating_helpers(photo_factory) -> None:
    photos = [
        photo_factory("1", tags=("b", "a"), rating=5, is_favorite=True),
        photo_factory("2", tags=("c",), rating=2),
        photo_factory("3"),
    ]

    assert all_tags(photos) == ["a", "b", "c"]
    assert _ids(favorite_photos(photos)) == ["1"]
    assert _ids(photos_by_rating(photos, 0, 2)) == ["2", "3"]
    assert _ids(photos_by_rating(photos, 3)) == ["1"]
