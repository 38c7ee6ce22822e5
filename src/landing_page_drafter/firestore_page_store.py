from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any

from google.api_core import exceptions as gcp_exceptions
from google.cloud import firestore
from pydantic import ValidationError

from .errors import StorageError
from .models.identity import BrandIdentity
from .models.page import LandingPage

logger = logging.getLogger(__name__)


class FirestorePageStore:
    """Firestore-backed page store for production use.

    One document per page key; the landing page and the identity are stored as
    separate fields of that document.
    """

    COLLECTION_NAME = "landing_pages"

    def __init__(self, project_id: str | None = None, *, client: firestore.Client | None = None) -> None:
        self._db = client or firestore.Client(project=project_id)
        self._collection = self._db.collection(self.COLLECTION_NAME)

    async def get_landing_page(self, page_key: str) -> LandingPage | None:
        try:
            data = await asyncio.to_thread(self._get_field, page_key, "landing_page")
            return LandingPage.model_validate(data) if data is not None else None
        except (StorageError, ValidationError):
            logger.error("Failed to load landing page from Firestore", exc_info=True, extra={"page_key": page_key})
            return None

    async def save_landing_page(self, page_key: str, page: LandingPage) -> bool:
        return await self._save(page_key, "landing_page", page.to_document())

    async def get_identity(self, page_key: str) -> BrandIdentity | None:
        try:
            data = await asyncio.to_thread(self._get_field, page_key, "identity")
            return BrandIdentity.model_validate(data) if data is not None else None
        except (StorageError, ValidationError):
            logger.error("Failed to load brand identity from Firestore", exc_info=True, extra={"page_key": page_key})
            return None

    async def save_identity(self, page_key: str, identity: BrandIdentity) -> bool:
        return await self._save(
            page_key,
            "identity",
            identity.model_dump(mode="json", by_alias=True, exclude_none=True),
        )

    async def _save(self, page_key: str, field: str, data: dict[str, Any]) -> bool:
        try:
            await asyncio.to_thread(self._set_field, page_key, field, data)
        except StorageError:
            logger.error(
                "Failed to save document to Firestore",
                exc_info=True,
                extra={"page_key": page_key, "field": field},
            )
            return False

        logger.info("Saved document to Firestore", extra={"page_key": page_key, "field": field})
        return True

    def _get_field(self, page_key: str, field: str) -> Any:
        try:
            doc = self._collection.document(page_key).get()
        except gcp_exceptions.GoogleAPICallError as exc:
            raise StorageError(f"Firestore read failed for {page_key}: {exc}") from exc
        if not doc.exists:
            return None
        return (doc.to_dict() or {}).get(field)

    def _set_field(self, page_key: str, field: str, data: dict[str, Any]) -> None:
        try:
            self._collection.document(page_key).set(
                {field: data, "updated_at": datetime.now(timezone.utc)},
                merge=True,
            )
        except gcp_exceptions.GoogleAPICallError as exc:
            raise StorageError(f"Firestore write failed for {page_key}: {exc}") from exc


__all__ = ["FirestorePageStore"]
