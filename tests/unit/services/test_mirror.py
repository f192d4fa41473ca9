"""
Tests unitaires pour RemoteCollectionMirror.

Ces tests verifient:
- L'instantane complet est transmis a l'abonnement puis a chaque changement
- L'ordre par creation decroissante et le dedoublonnage des ID
- Plus aucun callback apres desabonnement
- Une erreur de transport est remontee sans nouvel essai, le dernier
  instantane restant disponible
- Une erreur inattendue du flux est remontee comme TransportError
- Un titre supprime disparait des instantanes suivants
"""

import asyncio
from dataclasses import replace

import httpx
import pytest
import respx

from reelrack.adapters.http.document_store import HTTPDocumentStore
from reelrack.core.entities.record import MediaKind
from reelrack.core.errors import TransportError
from reelrack.core.value_objects.draft import CatalogDraft
from reelrack.core.value_objects.patch import SERVER_TIMESTAMP, RecordPatch
from reelrack.infrastructure.persistence.document_store import SQLModelDocumentStore
from reelrack.services.coordinator import CatalogMutationCoordinator
from reelrack.services.mirror import RemoteCollectionMirror, normalize_snapshot
from reelrack.services.uploader import AssetUploader


class QueueStore:
    """Stockage dont le flux d'instantanes est pilote par le test."""

    def __init__(self) -> None:
        self.queue: asyncio.Queue = asyncio.Queue()
        self.watchers = 0
        self.closed = 0

    async def watch(self):
        self.watchers += 1
        try:
            while True:
                item = await self.queue.get()
                if isinstance(item, Exception):
                    raise item
                yield item
        finally:
            self.closed += 1

    def push(self, item) -> None:
        self.queue.put_nowait(item)


async def wait_until(predicate, timeout: float = 1.0) -> None:
    """Attend qu'une condition soit vraie (echec du test sinon)."""
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition jamais remplie")
        await asyncio.sleep(0.005)


@pytest.fixture
def queue_store() -> QueueStore:
    return QueueStore()


class TestNormalizeSnapshot:
    """Tests pour normalize_snapshot."""

    def test_orders_by_creation_desc(self, make_record) -> None:
        old, new = make_record("Old"), make_record("New")
        assert normalize_snapshot([old, new]) == (new, old)

    def test_dedupes_ids_keeping_first(self, make_record) -> None:
        record = make_record("Dune")
        duplicate = replace(record, title="Dune (copie)")
        assert normalize_snapshot([record, duplicate]) == (record,)

    def test_equal_timestamps_keep_store_order(self, make_record) -> None:
        first = make_record("A")
        second = make_record("B", created_at=first.created_at)
        assert normalize_snapshot([first, second]) == (first, second)

    def test_missing_timestamp_sorts_last(self, make_record) -> None:
        pending = make_record("Pending", created_at=None)
        done = make_record("Done")
        assert normalize_snapshot([pending, done]) == (done, pending)


class TestSubscribe:
    """Tests pour subscribe / unsubscribe."""

    @pytest.mark.asyncio
    async def test_delivers_full_snapshots(self, queue_store, make_record) -> None:
        mirror = RemoteCollectionMirror(queue_store)
        received = []
        unsubscribe = mirror.subscribe(received.append)

        first, second = make_record("Dune"), make_record("Arrival")
        queue_store.push([first])
        await wait_until(lambda: len(received) == 1)
        queue_store.push([first, second])
        await wait_until(lambda: len(received) == 2)

        assert received[0] == (first,)
        assert received[1] == (second, first)
        assert mirror.snapshot == (second, first)
        unsubscribe()
        await mirror.close()

    @pytest.mark.asyncio
    async def test_identical_snapshot_not_redelivered(self, queue_store, make_record) -> None:
        mirror = RemoteCollectionMirror(queue_store)
        received = []
        mirror.subscribe(received.append)
        record = make_record("Dune")

        queue_store.push([record])
        queue_store.push([record])
        queue_store.push([record, make_record("Arrival")])
        await wait_until(lambda: len(received) == 2)
        await asyncio.sleep(0.02)

        assert len(received) == 2
        await mirror.close()

    @pytest.mark.asyncio
    async def test_no_callback_after_unsubscribe(self, queue_store, make_record) -> None:
        mirror = RemoteCollectionMirror(queue_store)
        received = []
        unsubscribe = mirror.subscribe(received.append)

        queue_store.push([make_record("Dune")])
        await wait_until(lambda: len(received) == 1)
        unsubscribe()
        queue_store.push([make_record("Arrival")])
        await asyncio.sleep(0.05)

        assert len(received) == 1
        assert queue_store.closed == 1

    @pytest.mark.asyncio
    async def test_async_callback(self, queue_store, make_record) -> None:
        mirror = RemoteCollectionMirror(queue_store)
        received = []

        async def on_change(snapshot) -> None:
            await asyncio.sleep(0)
            received.append(snapshot)

        mirror.subscribe(on_change)
        queue_store.push([make_record("Dune")])
        await wait_until(lambda: len(received) == 1)
        await mirror.close()

    @pytest.mark.asyncio
    async def test_callback_error_does_not_end_subscription(self, queue_store, make_record) -> None:
        """Une exception du consommateur est journalisee, l'abonnement continue."""
        mirror = RemoteCollectionMirror(queue_store)
        calls = []

        def on_change(snapshot) -> None:
            calls.append(snapshot)
            if len(calls) == 1:
                raise RuntimeError("bug consommateur")

        mirror.subscribe(on_change)
        queue_store.push([make_record("Dune")])
        queue_store.push([make_record("Arrival")])
        await wait_until(lambda: len(calls) == 2)
        await mirror.close()


class TestTransportErrors:
    """Tests pour le canal d'erreur."""

    @pytest.mark.asyncio
    async def test_error_reported_and_last_snapshot_kept(self, queue_store, make_record) -> None:
        mirror = RemoteCollectionMirror(queue_store)
        received, errors = [], []
        mirror.subscribe(received.append, errors.append)
        record = make_record("Dune")

        queue_store.push([record])
        await wait_until(lambda: len(received) == 1)
        queue_store.push(TransportError("permission revoquee"))
        await wait_until(lambda: len(errors) == 1)

        assert str(errors[0]) == "permission revoquee"
        assert mirror.snapshot == (record,)
        # pas de nouvel essai : un seul flux ouvert
        await asyncio.sleep(0.02)
        assert queue_store.watchers == 1

    @pytest.mark.asyncio
    async def test_error_without_handler_is_logged(self, queue_store) -> None:
        mirror = RemoteCollectionMirror(queue_store)
        mirror.subscribe(lambda snapshot: None)
        queue_store.push(TransportError("reseau perdu"))
        await wait_until(lambda: queue_store.closed == 1)

    @pytest.mark.asyncio
    async def test_unexpected_error_is_wrapped(self, queue_store, make_record) -> None:
        mirror = RemoteCollectionMirror(queue_store)
        received, errors = [], []
        mirror.subscribe(received.append, errors.append)
        record = make_record("Dune")

        queue_store.push([record])
        await wait_until(lambda: len(received) == 1)
        queue_store.push(ValueError("corps illisible"))
        await wait_until(lambda: len(errors) == 1)

        assert isinstance(errors[0], TransportError)
        assert isinstance(errors[0].cause, ValueError)
        assert mirror.snapshot == (record,)
        await wait_until(lambda: queue_store.closed == 1)

    @pytest.mark.asyncio
    async def test_non_json_http_body_reaches_error_channel(self, respx_mock: respx.Router) -> None:
        respx_mock.get(host="catalog.test", path="/v1/collections/titles/documents").mock(
            return_value=httpx.Response(200, text="<html>proxy</html>")
        )
        store = HTTPDocumentStore("https://catalog.test/v1", poll_interval=0)
        mirror = RemoteCollectionMirror(store)
        received, errors = [], []

        mirror.subscribe(received.append, errors.append)
        await wait_until(lambda: len(errors) == 1)

        assert isinstance(errors[0], TransportError)
        assert received == []
        await mirror.close()
        await store.close()


class TestFetchOnce:
    """Tests pour fetch_once."""

    @pytest.mark.asyncio
    async def test_returns_first_snapshot(self, queue_store, make_record) -> None:
        mirror = RemoteCollectionMirror(queue_store)
        record = make_record("Dune")
        queue_store.push([record])

        assert await asyncio.wait_for(mirror.fetch_once(), 1) == (record,)
        await wait_until(lambda: queue_store.closed == 1)

    @pytest.mark.asyncio
    async def test_raises_transport_error(self, queue_store) -> None:
        mirror = RemoteCollectionMirror(queue_store)
        queue_store.push(TransportError("hors ligne"))

        with pytest.raises(TransportError):
            await asyncio.wait_for(mirror.fetch_once(), 1)


class TestWithLocalStore:
    """Integration avec le stockage SQLModel : les ecritures locales sont poussees."""

    @pytest.mark.asyncio
    async def test_local_write_triggers_snapshot(self, store) -> None:
        mirror = RemoteCollectionMirror(store)
        received = []
        unsubscribe = mirror.subscribe(received.append)
        await wait_until(lambda: len(received) == 1)
        assert received[0] == ()

        await store.create(
            "dune", RecordPatch(title="Dune", kind=MediaKind.MOVIE, created_at=SERVER_TIMESTAMP)
        )
        await wait_until(lambda: len(received) == 2)

        assert [r.id for r in received[1]] == ["dune"]
        unsubscribe()
        await mirror.close()

    @pytest.mark.asyncio
    async def test_removed_record_stays_gone(self, engine, blob_storage) -> None:
        store = SQLModelDocumentStore(engine, poll_interval=0.02)
        coordinator = CatalogMutationCoordinator(store, AssetUploader(blob_storage))
        mirror = RemoteCollectionMirror(store)
        received = []
        unsubscribe = mirror.subscribe(received.append)

        dune = await coordinator.upsert(CatalogDraft(title="Dune", year=2021))
        await coordinator.upsert(CatalogDraft(title="Arrival", year=2016))
        await wait_until(lambda: received and len(received[-1]) == 2)

        assert await coordinator.remove(dune.id)
        await wait_until(lambda: len(received[-1]) == 1)
        removed_at = len(received) - 1

        # plusieurs relectures periodiques plus tard
        await asyncio.sleep(0.1)
        assert all(dune.id not in {r.id for r in snapshot} for snapshot in received[removed_at:])
        assert [r.title for r in mirror.snapshot] == ["Arrival"]
        unsubscribe()
        await mirror.close()
