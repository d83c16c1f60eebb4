"""Optimistic edits against the entity stores.

Every edit follows the same protocol:

1. look the target up and return a ``NotFoundError`` result if it is missing;
2. capture the fields the edit will touch;
3. write the new values into the store (``APPLIED``), which observers see at once;
4. await the gateway confirmation;
5. on success finish in ``CONFIRMED``; on failure write the captured values
   back (``ROLLED_BACK``) and report a :class:`~photodeck.errors.BackendError`.
   A cancelled confirmation is rolled back the same way before the
   cancellation propagates.

Two edits in flight on the same entity each capture their own pre-state.  A
rollback of the earlier one can therefore overwrite a field the later one
changed; edits are not serialised per entity.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

from ..backend.gateway import BackendGateway
from ..cache.entity_store import CollectionStore, PhotoStore
from ..config import MAX_RATING, MIN_RATING
from ..errors import BackendError, NotFoundError, PhotoDeckError, ValidationError
from ..models import METADATA_FIELDS, Collection, normalize_tags

logger = logging.getLogger(__name__)


class MutationState(str, Enum):
    IDLE = "idle"
    APPLIED = "applied"
    CONFIRMED = "confirmed"
    ROLLED_BACK = "rolled_back"


_TRANSITIONS = {
    MutationState.IDLE: {MutationState.APPLIED},
    MutationState.APPLIED: {MutationState.CONFIRMED, MutationState.ROLLED_BACK},
    MutationState.CONFIRMED: set(),
    MutationState.ROLLED_BACK: set(),
}


@dataclass(frozen=True)
class MutationResult:
    """Outcome of one mutation.

    ``error`` is ``None`` on success.  ``NotFoundError`` and
    ``ValidationError`` results never touched the store; a ``BackendError``
    result means the optimistic change was rolled back.
    """

    kind: str
    target_id: str
    state: MutationState
    error: Optional[PhotoDeckError] = None
    value: Any = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> "MutationResult":
        if self.error is not None:
            raise self.error
        return self


class _Mutation:
    """State holder for a single optimistic mutation instance."""

    def __init__(self, kind: str, target_id: str) -> None:
        self.kind = kind
        self.target_id = target_id
        self.state = MutationState.IDLE

    def transition(self, new_state: MutationState) -> None:
        if new_state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal mutation transition {self.state.value} -> {new_state.value}")
        logger.debug("%s(%s): %s -> %s", self.kind, self.target_id, self.state.value, new_state.value)
        self.state = new_state

    def result(self, error: Optional[PhotoDeckError] = None, value: Any = None) -> MutationResult:
        return MutationResult(self.kind, self.target_id, self.state, error, value)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MutationCoordinator:
    """Apply edits optimistically and reconcile them with the gateway."""

    def __init__(
        self,
        gateway: BackendGateway,
        photos: PhotoStore,
        collections: CollectionStore,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._gateway = gateway
        self._photos = photos
        self._collections = collections
        self._clock = clock

    # ------------------------------------------------------------------
    # Protocol
    # ------------------------------------------------------------------
    async def _run(
        self,
        mutation: _Mutation,
        apply: Callable[[], None],
        confirm: Callable[[], Awaitable[None]],
        rollback: Callable[[], None],
    ) -> MutationResult:
        apply()
        mutation.transition(MutationState.APPLIED)
        try:
            await confirm()
        except asyncio.CancelledError:
            rollback()
            mutation.transition(MutationState.ROLLED_BACK)
            logger.warning("%s(%s) rolled back after cancellation", mutation.kind, mutation.target_id)
            raise
        except Exception as exc:
            rollback()
            mutation.transition(MutationState.ROLLED_BACK)
            error = exc if isinstance(exc, BackendError) else BackendError(str(exc))
            if error is not exc:
                error.__cause__ = exc
            logger.warning(
                "%s(%s) rolled back after backend failure: %s", mutation.kind, mutation.target_id, exc
            )
            return mutation.result(error)
        mutation.transition(MutationState.CONFIRMED)
        return mutation.result()

    # ------------------------------------------------------------------
    # Photo metadata
    # ------------------------------------------------------------------
    @staticmethod
    def _validate_metadata(updates: Mapping[str, Any]) -> Dict[str, Any]:
        changes: Dict[str, Any] = {}
        for key, value in updates.items():
            if key not in METADATA_FIELDS:
                raise ValidationError(f"Unknown metadata field: {key}")
            if key == "tags":
                if isinstance(value, str):
                    raise ValidationError("tags must be a sequence of strings")
                changes[key] = normalize_tags(value or ())
            elif key == "rating":
                if value is not None and (
                    isinstance(value, bool)
                    or not isinstance(value, int)
                    or not MIN_RATING <= value <= MAX_RATING
                ):
                    raise ValidationError(
                        f"rating must be an integer between {MIN_RATING} and {MAX_RATING}"
                    )
                # 0 persists as "no rating", so it clears the rating here too.
                changes[key] = value or None
            elif key == "is_favorite":
                changes[key] = bool(value)
            else:
                if value is not None and not isinstance(value, str):
                    raise ValidationError("description must be a string")
                changes[key] = value
        return changes

    async def update_metadata(self, photo_id: str, updates: Mapping[str, Any]) -> MutationResult:
        """Optimistically merge *updates* into a photo's metadata block."""

        mutation = _Mutation("update_metadata", photo_id)
        photo = self._photos.by_id(photo_id)
        if photo is None:
            return mutation.result(NotFoundError(f"Photo {photo_id} not found"))
        try:
            changes = self._validate_metadata(updates)
        except ValidationError as exc:
            return mutation.result(exc)

        before = {key: getattr(photo.metadata, key) for key in changes}

        def apply() -> None:
            self._photos.patch_by_id(photo_id, metadata=replace(photo.metadata, **changes))

        def rollback() -> None:
            current = self._photos.by_id(photo_id)
            if current is not None:
                self._photos.patch_by_id(photo_id, metadata=replace(current.metadata, **before))

        return await self._run(
            mutation, apply, lambda: self._gateway.update_metadata(photo_id, changes), rollback
        )

    async def toggle_favorite(self, photo_id: str) -> MutationResult:
        photo = self._photos.by_id(photo_id)
        if photo is None:
            return _Mutation("update_metadata", photo_id).result(
                NotFoundError(f"Photo {photo_id} not found")
            )
        return await self.update_metadata(photo_id, {"is_favorite": not photo.metadata.is_favorite})

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------
    async def create_collection(self, name: str) -> MutationResult:
        """Create a collection on the backend, then add it to the store.

        Creation is not optimistic: the id is assigned by the backend.
        """

        mutation = _Mutation("create_collection", name)
        cleaned = name.strip()
        if not cleaned:
            return mutation.result(ValidationError("Collection name must not be empty"))
        if any(existing.name == cleaned for existing in self._collections.snapshot()):
            return mutation.result(ValidationError(f"Collection {cleaned!r} already exists"))
        try:
            collection_id = await self._gateway.create_collection(cleaned)
        except Exception as exc:
            logger.error("Failed to create collection %s: %s", cleaned, exc)
            error = exc if isinstance(exc, BackendError) else BackendError(str(exc))
            return mutation.result(error)

        collection = Collection(id=str(collection_id), name=cleaned, created_at=self._clock())
        self._collections.insert(collection)
        mutation.transition(MutationState.APPLIED)
        mutation.transition(MutationState.CONFIRMED)
        return mutation.result(value=collection)

    async def add_photo_to_collection(self, collection_id: str, photo_id: str) -> MutationResult:
        mutation = _Mutation("add_photo_to_collection", collection_id)
        collection = self._collections.by_id(collection_id)
        if collection is None:
            return mutation.result(NotFoundError(f"Collection {collection_id} not found"))
        before = collection.photo_ids

        return await self._run(
            mutation,
            lambda: self._collections.patch_by_id(
                collection_id, photo_ids=collection.with_member(photo_id).photo_ids
            ),
            lambda: self._gateway.add_photo_to_collection(photo_id, collection_id),
            lambda: self._collections.patch_by_id(collection_id, photo_ids=before),
        )

    async def remove_photo_from_collection(self, collection_id: str, photo_id: str) -> MutationResult:
        mutation = _Mutation("remove_photo_from_collection", collection_id)
        collection = self._collections.by_id(collection_id)
        if collection is None:
            return mutation.result(NotFoundError(f"Collection {collection_id} not found"))
        before = collection.photo_ids

        return await self._run(
            mutation,
            lambda: self._collections.patch_by_id(
                collection_id, photo_ids=collection.without_member(photo_id).photo_ids
            ),
            lambda: self._gateway.remove_photo_from_collection(photo_id, collection_id),
            lambda: self._collections.patch_by_id(collection_id, photo_ids=before),
        )

    async def delete_collection(self, collection_id: str) -> MutationResult:
        """Remove a collection; a failed confirmation puts it back where it was."""

        mutation = _Mutation("delete_collection", collection_id)
        collection = self._collections.by_id(collection_id)
        if collection is None:
            return mutation.result(NotFoundError(f"Collection {collection_id} not found"))
        index = self._collections.index_of(collection_id)
        was_selected = self._collections.selected_id == collection_id

        def rollback() -> None:
            self._collections.restore(collection, index if index is not None else len(self._collections))
            if was_selected:
                self._collections.select(collection_id)

        return await self._run(
            mutation,
            lambda: self._collections.remove_by_id(collection_id),
            lambda: self._gateway.delete_collection(collection_id),
            rollback,
        )


__all__ = ["MutationCoordinator", "MutationResult", "MutationState"]
