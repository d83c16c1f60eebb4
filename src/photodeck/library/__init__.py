"""Library session management."""

from .manager import ExportOptions, ExportResult, LibraryManager

__all__ = ["ExportOptions", "ExportResult", "LibraryManager"]
