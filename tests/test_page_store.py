import pytest
from google.api_core import exceptions as gcp_exceptions

from landing_page_drafter.firestore_page_store import FirestorePageStore
from landing_page_drafter.page_store import LANDING_PAGE_FILENAME, LocalPageStore


@pytest.mark.asyncio
async def test_local_store_round_trip(tmp_path, landing_page, identity):
    store = LocalPageStore(base_path=tmp_path)

    assert await store.save_landing_page("acme", landing_page)
    assert await store.save_identity("acme", identity)

    assert await store.get_landing_page("acme") == landing_page
    assert await store.get_identity("acme") == identity
    assert (tmp_path / "acme" / LANDING_PAGE_FILENAME).exists()


@pytest.mark.asyncio
async def test_local_store_missing_and_corrupt_documents_read_as_absent(tmp_path):
    store = LocalPageStore(base_path=tmp_path)
    (tmp_path / "broken").mkdir()
    (tmp_path / "broken" / LANDING_PAGE_FILENAME).write_text('{"title": ', encoding="utf-8")

    assert await store.get_landing_page("missing") is None
    assert await store.get_identity("missing") is None
    assert await store.get_landing_page("broken") is None


@pytest.mark.asyncio
async def test_local_store_reports_failed_save(tmp_path, landing_page):
    blocker = tmp_path / "not-a-directory"
    blocker.write_text("", encoding="utf-8")
    store = LocalPageStore(base_path=blocker)

    assert await store.save_landing_page("acme", landing_page) is False


class FakeSnapshot:
    def __init__(self, data):
        self._data = data

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return dict(self._data)


class FakeDocument:
    def __init__(self, documents, key, fail):
        self._documents = documents
        self._key = key
        self._fail = fail

    def get(self):
        if self._fail:
            raise gcp_exceptions.ServiceUnavailable("firestore unavailable")
        return FakeSnapshot(self._documents.get(self._key))

    def set(self, data, merge=False):
        if self._fail:
            raise gcp_exceptions.ServiceUnavailable("firestore unavailable")
        current = self._documents.get(self._key, {}) if merge else {}
        self._documents[self._key] = {**current, **data}


class FakeFirestoreClient:
    def __init__(self, *, fail=False):
        self.documents = {}
        self.fail = fail

    def collection(self, name):
        return self

    def document(self, key):
        return FakeDocument(self.documents, key, self.fail)


@pytest.mark.asyncio
async def test_firestore_store_round_trip(landing_page, identity):
    client = FakeFirestoreClient()
    store = FirestorePageStore(client=client)

    assert await store.get_landing_page("acme") is None
    assert await store.save_landing_page("acme", landing_page)
    assert await store.save_identity("acme", identity)

    assert await store.get_landing_page("acme") == landing_page
    assert await store.get_identity("acme") == identity
    assert set(client.documents["acme"]) == {"landing_page", "identity", "updated_at"}


@pytest.mark.asyncio
async def test_firestore_errors_are_logged_and_converted(landing_page):
    store = FirestorePageStore(client=FakeFirestoreClient(fail=True))

    assert await store.get_landing_page("acme") is None
    assert await store.save_landing_page("acme", landing_page) is False
