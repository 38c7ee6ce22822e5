from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Iterable

from pydantic import ValidationError

from .errors import UnknownSegmentKindError
from .models.page import LandingPage, SectionKind, section_attr
from .models.segment import (
    SEGMENT_FILENAMES,
    SEGMENT_MODELS,
    SEGMENT_SECTIONS,
    Segment,
    SegmentKind,
    SegmentStore,
    segment_for_section,
)

logger = logging.getLogger(__name__)


class SegmentCache:
    """Disk-backed cache of landing page segments, one JSON file per segment kind.

    The cache is advisory: read and clear failures are logged and treated as a
    miss, and a failed write leaves the in-memory value in place.
    """

    def __init__(self, *, cache_path: Path) -> None:
        self._cache_path = Path(cache_path)
        self._segments: dict[SegmentKind, Segment] = {}
        self._lock = threading.Lock()
        self._ensure_cache_directory()
        self._load()

    @property
    def cache_path(self) -> Path:
        return self._cache_path

    def save_segment(self, kind: SegmentKind | str, segment: Segment | dict[str, Any]) -> None:
        """Store ``segment`` under ``kind`` in memory and on disk, replacing any prior value."""
        kind = self._resolve_kind(kind)
        model = SEGMENT_MODELS[kind]
        if not isinstance(segment, model):
            segment = model.model_validate(segment)

        file_path = self._file_path(kind)
        with self._lock:
            self._segments[kind] = segment
            try:
                self._write_atomic(file_path, segment.model_dump(mode="json", by_alias=True))
            except OSError:
                logger.error(
                    "Failed to save segment to cache",
                    exc_info=True,
                    extra={"segment": kind.value, "path": str(file_path)},
                )
                return

        logger.debug("Saved segment to cache", extra={"segment": kind.value, "path": str(file_path)})

    def get_segment(self, kind: SegmentKind | str) -> Segment | None:
        kind = self._resolve_kind(kind)
        with self._lock:
            segment = self._segments.get(kind)
        return segment.model_copy(deep=True) if segment is not None else None

    def has_segment(self, kind: SegmentKind | str) -> bool:
        kind = self._resolve_kind(kind)
        with self._lock:
            return kind in self._segments

    def get_all_segments(self) -> SegmentStore:
        with self._lock:
            snapshot = {
                _store_attr(kind): segment.model_copy(deep=True)
                for kind, segment in self._segments.items()
            }
        return SegmentStore(**snapshot)

    def clear_segment(self, kind: SegmentKind | str) -> None:
        kind = self._resolve_kind(kind)
        file_path = self._file_path(kind)
        with self._lock:
            self._segments.pop(kind, None)
            try:
                file_path.unlink(missing_ok=True)
            except OSError:
                logger.error(
                    "Failed to clear segment from cache",
                    exc_info=True,
                    extra={"segment": kind.value, "path": str(file_path)},
                )
                return
        logger.debug("Cleared segment from cache", extra={"segment": kind.value})

    def clear_all_segments(self) -> None:
        with self._lock:
            self._segments.clear()
            for kind in SegmentKind:
                file_path = self._file_path(kind)
                try:
                    file_path.unlink(missing_ok=True)
                except OSError:
                    logger.error(
                        "Failed to clear segment from cache",
                        exc_info=True,
                        extra={"segment": kind.value, "path": str(file_path)},
                    )
        logger.info("Cleared all segments from cache", extra={"path": str(self._cache_path)})

    def save_page_segments(
        self,
        page: LandingPage,
        *,
        exclude: Iterable[SectionKind] = (),
    ) -> list[SegmentKind]:
        """Group the page's generated sections into segments and cache them.

        Sections in ``exclude`` (fallback content) are left out; a segment whose
        mandatory section is excluded is not written at all.
        """
        excluded = set(exclude)
        saved: list[SegmentKind] = []
        for kind, sections in SEGMENT_SECTIONS.items():
            payload: dict[str, Any] = {}
            for section_kind in sections:
                section = page.get_section(section_kind)
                if section is not None and section_kind not in excluded:
                    payload[section_attr(section_kind)] = section
            if kind == SegmentKind.identity:
                payload.update(
                    title=page.title,
                    description=page.description,
                    name=page.name,
                    tagline=page.tagline,
                )
            try:
                segment = SEGMENT_MODELS[kind](**payload)
            except ValidationError:
                logger.debug("Skipping incomplete segment", extra={"segment": kind.value})
                continue
            if not _has_sections(segment, sections):
                continue
            self.save_segment(kind, segment)
            saved.append(kind)
        return saved

    def find_section(self, section_kind: SectionKind) -> dict[str, Any] | None:
        """Cached content for one section, from whichever segment holds it."""
        segment = self.get_segment(segment_for_section(section_kind))
        if segment is None:
            return None
        section = getattr(segment, section_attr(section_kind), None)
        if section is None:
            return None
        return section.model_dump(mode="json", by_alias=True, exclude_none=True)

    def _load(self) -> None:
        for kind in SegmentKind:
            file_path = self._file_path(kind)
            if not file_path.exists():
                continue
            try:
                data = json.loads(file_path.read_text(encoding="utf-8"))
                self._segments[kind] = SEGMENT_MODELS[kind].model_validate(data)
            except (OSError, ValueError):
                # ValidationError and JSONDecodeError are both ValueErrors
                logger.error(
                    "Failed to load cached segment",
                    exc_info=True,
                    extra={"segment": kind.value, "path": str(file_path)},
                )
        logger.debug(
            "Loaded cached landing page segments",
            extra={"segments": [kind.value for kind in self._segments]},
        )

    def _ensure_cache_directory(self) -> None:
        try:
            if not self._cache_path.exists():
                self._cache_path.mkdir(parents=True, exist_ok=True)
                logger.info("Created segment cache directory", extra={"path": str(self._cache_path)})
        except OSError:
            logger.error(
                "Failed to create segment cache directory",
                exc_info=True,
                extra={"path": str(self._cache_path)},
            )

    def _file_path(self, kind: SegmentKind) -> Path:
        return self._cache_path / SEGMENT_FILENAMES[kind]

    @staticmethod
    def _resolve_kind(kind: SegmentKind | str) -> SegmentKind:
        if isinstance(kind, SegmentKind):
            return kind
        try:
            return SegmentKind(kind)
        except ValueError:
            raise UnknownSegmentKindError(kind) from None

    @staticmethod
    def _write_atomic(file_path: Path, data: dict[str, Any]) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=file_path.parent, prefix=f".{file_path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fp:
                json.dump(data, fp, ensure_ascii=False, indent=2)
            os.replace(tmp_name, file_path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise


def _store_attr(kind: SegmentKind) -> str:
    return kind.name


def _has_sections(segment: Segment, sections: Iterable[SectionKind]) -> bool:
    return any(getattr(segment, section_attr(kind), None) is not None for kind in sections)


__all__ = ["SegmentCache"]
