from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import pytest

from photodeck.cache.entity_store import CollectionStore, PhotoStore
from photodeck.core.mutations import MutationCoordinator, MutationState
from photodeck.errors import BackendError, NotFoundError, ValidationError


@pytest.fixture
def photos(photo_factory) -> PhotoStore:
    store = PhotoStore()
    store.insert_many(
        [
            photo_factory("5", rating=2, tags=("sunset",), description="old"),
            photo_factory("6"),
        ]
    )
    return store


@pytest.fixture
def collections(collection_factory) -> CollectionStore:
    store = CollectionStore()
    store.insert_many(
        [
            collection_factory("c1", "Trips", ("6",)),
            collection_factory("c2", "Family"),
            collection_factory("c3", "Pets"),
        ]
    )
    return store


@pytest.fixture
def coordinator(gateway, photos, collections) -> MutationCoordinator:
    return MutationCoordinator(
        gateway,
        photos,
        collections,
        clock=lambda: datetime(2024, 6, 1, tzinfo=timezone.utc),
    )


def test_update_metadata_confirmed(coordinator, gateway, photos) -> None:
    result = asyncio.run(coordinator.update_metadata("5", {"rating": 4}))

    assert result.ok
    assert result.state is MutationState.CONFIRMED
    assert photos.by_id("5").metadata.rating == 4
    assert gateway.called("update_metadata") == [("5", {"rating": 4})]


def test_update_metadata_applied_before_confirmation(coordinator, gateway, photos) -> None:
    seen = []
    gateway.on_call = lambda name, args: seen.append(photos.by_id("5").metadata.rating)

    asyncio.run(coordinator.update_metadata("5", {"rating": 4}))

    assert seen == [4]


def test_update_metadata_rolls_back_on_backend_failure(coordinator, gateway, photos, backend_error) -> None:
    gateway.failures["update_metadata"] = backend_error
    before = photos.by_id("5").metadata.rating

    result = asyncio.run(coordinator.update_metadata("5", {"rating": 4}))

    assert photos.by_id("5").metadata.rating == before
    assert result.state is MutationState.ROLLED_BACK
    assert isinstance(result.error, BackendError)
    with pytest.raises(BackendError):
        result.raise_for_error()


def test_rollback_restores_only_touched_fields(coordinator, gateway, photos) -> None:
    gateway.failures["update_metadata"] = RuntimeError("socket closed")

    result = asyncio.run(coordinator.update_metadata("5", {"tags": ["a", " a ", "b"], "description": None}))

    metadata = photos.by_id("5").metadata
    assert metadata.tags == ("sunset",)
    assert metadata.description == "old"
    assert metadata.rating == 2
    assert isinstance(result.error, BackendError)
    assert isinstance(result.error.__cause__, RuntimeError)


def test_update_metadata_unknown_photo_is_not_found(coordinator, gateway) -> None:
    result = asyncio.run(coordinator.update_metadata("404", {"rating": 1}))

    assert isinstance(result.error, NotFoundError)
    assert result.state is MutationState.IDLE
    assert gateway.calls == []


@pytest.mark.parametrize(
    "updates",
    [{"rating": 6}, {"rating": -1}, {"rating": True}, {"tags": "sunset"}, {"colour": "red"}],
)
def test_update_metadata_validation(coordinator, gateway, photos, updates) -> None:
    result = asyncio.run(coordinator.update_metadata("5", updates))

    assert isinstance(result.error, ValidationError)
    assert photos.by_id("5").metadata.rating == 2
    assert gateway.calls == []


def test_update_metadata_normalizes_tags(coordinator, gateway, photos) -> None:
    asyncio.run(coordinator.update_metadata("5", {"tags": [" beach ", "beach", ""]}))

    assert photos.by_id("5").metadata.tags == ("beach",)
    assert gateway.called("update_metadata") == [("5", {"tags": ("beach",)})]


def test_toggle_favorite(coordinator, photos) -> None:
    asyncio.run(coordinator.toggle_favorite("6"))
    assert photos.by_id("6").metadata.is_favorite is True

    asyncio.run(coordinator.toggle_favorite("6"))
    assert photos.by_id("6").metadata.is_favorite is False

    assert isinstance(asyncio.run(coordinator.toggle_favorite("x")).error, NotFoundError)


def test_add_photo_to_collection_confirmed(coordinator, gateway, collections) -> None:
    result = asyncio.run(coordinator.add_photo_to_collection("c1", "5"))

    assert result.ok
    assert collections.by_id("c1").photo_ids == ("6", "5")
    assert gateway.called("add_photo_to_collection") == [("5", "c1")]


def test_add_photo_to_collection_rolls_back(coordinator, gateway, collections, backend_error) -> None:
    gateway.failures["add_photo_to_collection"] = backend_error

    result = asyncio.run(coordinator.add_photo_to_collection("c2", "5"))

    assert "5" not in collections.by_id("c2").photo_ids
    assert isinstance(result.error, BackendError)
    assert result.state is MutationState.ROLLED_BACK


def test_remove_photo_from_collection_rolls_back(coordinator, gateway, collections, backend_error) -> None:
    gateway.failures["remove_photo_from_collection"] = backend_error

    result = asyncio.run(coordinator.remove_photo_from_collection("c1", "6"))

    assert collections.by_id("c1").photo_ids == ("6",)
    assert isinstance(result.error, BackendError)


def test_membership_on_unknown_collection(coordinator, gateway) -> None:
    result = asyncio.run(coordinator.add_photo_to_collection("nope", "5"))

    assert isinstance(result.error, NotFoundError)
    assert gateway.calls == []


def test_delete_collection_confirmed(coordinator, gateway, collections) -> None:
    result = asyncio.run(coordinator.delete_collection("c2"))

    assert result.ok
    assert collections.ids() == ("c1", "c3")
    assert gateway.called("delete_collection") == [("c2",)]


def test_delete_collection_rollback_restores_position_and_selection(
    coordinator, gateway, collections, backend_error
) -> None:
    collections.select("c2")
    gateway.failures["delete_collection"] = backend_error

    result = asyncio.run(coordinator.delete_collection("c2"))

    assert result.state is MutationState.ROLLED_BACK
    assert collections.ids() == ("c1", "c2", "c3")
    assert collections.selected_id == "c2"


def test_create_collection(coordinator, gateway, collections) -> None:
    result = asyncio.run(coordinator.create_collection("  Holidays "))

    assert result.ok
    created = result.value
    assert created.name == "Holidays"
    assert collections.by_id(created.id) == created
    assert gateway.called("create_collection") == [("Holidays",)]


def test_create_collection_rejects_blank_and_duplicate(coordinator, gateway) -> None:
    assert isinstance(asyncio.run(coordinator.create_collection("   ")).error, ValidationError)
    assert isinstance(asyncio.run(coordinator.create_collection("Trips")).error, ValidationError)
    assert gateway.calls == []


def test_create_collection_backend_failure_leaves_store(coordinator, gateway, collections, backend_error) -> None:
    gateway.failures["create_collection"] = backend_error

    result = asyncio.run(coordinator.create_collection("New"))

    assert result.error is backend_error
    assert result.state is MutationState.IDLE
    assert len(collections) == 3


def test_concurrent_mutations_on_disjoint_photos(coordinator, gateway, photos, backend_error) -> None:
    gateway.fail_paths["update_metadata"] = {"6": backend_error}

    async def both():
        return await asyncio.gather(
            coordinator.update_metadata("5", {"rating": 5}),
            coordinator.update_metadata("6", {"rating": 1}),
        )

    first, second = asyncio.run(both())

    assert first.state is MutationState.CONFIRMED
    assert second.state is MutationState.ROLLED_BACK
    assert photos.by_id("5").metadata.rating == 5
    assert photos.by_id("6").metadata.rating is None


def test_cancelled_confirmation_rolls_back(coordinator, gateway, photos) -> None:
    gateway.delays["update_metadata"] = 10

    async def run_with_timeout():
        await asyncio.wait_for(coordinator.update_metadata("5", {"rating": 4}), 0.05)

    with pytest.raises(asyncio.TimeoutError):
        asyncio.run(run_with_timeout())

    assert photos.by_id("5").metadata.rating == 2


def test_cancelled_collection_delete_is_restored(coordinator, gateway, collections) -> None:
    gateway.delays["delete_collection"] = 10

    async def run_with_timeout():
        await asyncio.wait_for(coordinator.delete_collection("c2"), 0.05)

    with pytest.raises(asyncio.TimeoutError):
        asyncio.run(run_with_timeout())

    assert collections.ids() == ("c1", "c2", "c3")


def test_zero_rating_clears_rating(coordinator, gateway, photos) -> None:
    result = asyncio.run(coordinator.update_metadata("5", {"rating": 0}))

    assert result.ok
    assert photos.by_id("5").metadata.rating is None
    assert gateway.called("update_metadata") == [("5", {"rating": None})]
