from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol

from pydantic import ValidationError

from .errors import StorageError
from .models.identity import BrandIdentity
from .models.page import LandingPage

logger = logging.getLogger(__name__)

LANDING_PAGE_FILENAME = "landing-page.json"
IDENTITY_FILENAME = "identity.json"


class PageStore(Protocol):
    """Durable storage for a landing page and its brand identity, by page key.

    Reads return ``None`` when the document is missing or unreadable; saves
    return ``False`` when the document could not be persisted.
    """

    async def get_landing_page(self, page_key: str) -> LandingPage | None:
        ...

    async def save_landing_page(self, page_key: str, page: LandingPage) -> bool:
        ...

    async def get_identity(self, page_key: str) -> BrandIdentity | None:
        ...

    async def save_identity(self, page_key: str, identity: BrandIdentity) -> bool:
        ...


class LocalPageStore:
    """JSON files under ``base_path/<page_key>/``."""

    def __init__(self, *, base_path: Path) -> None:
        self._base_path = Path(base_path)

    async def get_landing_page(self, page_key: str) -> LandingPage | None:
        try:
            data = await asyncio.to_thread(self._read_json, page_key, LANDING_PAGE_FILENAME)
            return LandingPage.model_validate(data) if data is not None else None
        except (StorageError, ValidationError):
            logger.error("Failed to load landing page", exc_info=True, extra={"page_key": page_key})
            return None

    async def save_landing_page(self, page_key: str, page: LandingPage) -> bool:
        return await self._save(page_key, LANDING_PAGE_FILENAME, page.to_document())

    async def get_identity(self, page_key: str) -> BrandIdentity | None:
        try:
            data = await asyncio.to_thread(self._read_json, page_key, IDENTITY_FILENAME)
            return BrandIdentity.model_validate(data) if data is not None else None
        except (StorageError, ValidationError):
            logger.error("Failed to load brand identity", exc_info=True, extra={"page_key": page_key})
            return None

    async def save_identity(self, page_key: str, identity: BrandIdentity) -> bool:
        return await self._save(
            page_key,
            IDENTITY_FILENAME,
            identity.model_dump(mode="json", by_alias=True, exclude_none=True),
        )

    async def _save(self, page_key: str, filename: str, data: dict[str, Any]) -> bool:
        try:
            await asyncio.to_thread(self._write_json, page_key, filename, data)
        except StorageError:
            logger.error(
                "Failed to save document",
                exc_info=True,
                extra={"page_key": page_key, "document": filename},
            )
            return False
        logger.info("Saved document", extra={"page_key": page_key, "document": filename})
        return True

    def _file_path(self, page_key: str, filename: str) -> Path:
        return page_directory(self._base_path, page_key) / filename

    def _read_json(self, page_key: str, filename: str) -> Any:
        file_path = self._file_path(page_key, filename)
        if not file_path.exists():
            return None
        try:
            with file_path.open("r", encoding="utf-8") as fp:
                return json.load(fp)
        except (OSError, ValueError) as exc:
            raise StorageError(f"Could not read {file_path}: {exc}") from exc

    def _write_json(self, page_key: str, filename: str, data: dict[str, Any]) -> None:
        file_path = self._file_path(page_key, filename)
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=file_path.parent, prefix=f".{filename}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fp:
                    json.dump(data, fp, ensure_ascii=False, indent=2)
                os.replace(tmp_name, file_path)
            except OSError:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise StorageError(f"Could not write {file_path}: {exc}") from exc


def page_directory(base_path: Path, page_key: str) -> Path:
    """Directory holding the files of one page key under ``base_path``."""
    return Path(base_path) / page_key.replace("/", "-").replace("\\", "-")


__all__ = ["PageStore", "LocalPageStore", "LANDING_PAGE_FILENAME", "IDENTITY_FILENAME", "page_directory"]
