from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models.generation import SectionGenerationResult


class LandingPageError(Exception):
    """Base class for landing page pipeline errors."""


class BackendStructureError(LandingPageError):
    """The generative backend returned no usable structured object."""


class SchemaValidationError(LandingPageError):
    """A returned object failed validation against the page or section schema."""


class StorageError(LandingPageError):
    """Durable storage could not be read or written."""


class UnknownSectionKindError(LandingPageError, ValueError):
    def __init__(self, kind: object) -> None:
        super().__init__(f"Unknown section kind: {kind!r}")
        self.kind = kind


class UnknownSegmentKindError(LandingPageError, ValueError):
    def __init__(self, kind: object) -> None:
        super().__init__(f"Unknown segment kind: {kind!r}")
        self.kind = kind


class SectionGenerationError(LandingPageError):
    """Raised by the section generator; carries the failed result record."""

    def __init__(self, message: str, *, result: "SectionGenerationResult") -> None:
        super().__init__(message)
        self.result = result


__all__ = [
    "LandingPageError",
    "BackendStructureError",
    "SchemaValidationError",
    "StorageError",
    "UnknownSectionKindError",
    "UnknownSegmentKindError",
    "SectionGenerationError",
]
