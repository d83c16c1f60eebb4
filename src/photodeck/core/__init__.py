"""Core flows: projection, optimistic mutations and the import pipeline."""

from .importer import FailedItem, ImportOutcome, ImportPipeline, ImportProgress, ImportResult, ImportStage
from .mutations import MutationCoordinator, MutationResult, MutationState
from .projection import DateRange, FilterCriteria, SortBy, SortOrder, filter_photos, project, sort_photos

__all__ = [
    "DateRange",
    "FailedItem",
    "FilterCriteria",
    "ImportOutcome",
    "ImportPipeline",
    "ImportProgress",
    "ImportResult",
    "ImportStage",
    "MutationCoordinator",
    "MutationResult",
    "MutationState",
    "SortBy",
    "SortOrder",
    "filter_photos",
    "project",
    "sort_photos",
]
