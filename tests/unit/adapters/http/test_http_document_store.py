"""
Tests unitaires pour HTTPDocumentStore.

Utilise respx pour simuler l'API REST de documents.
"""

import json
from datetime import datetime, timezone

import httpx
import pytest
import pytest_asyncio
import respx

from reelrack.adapters.http.document_store import HTTPDocumentStore
from reelrack.core.entities.record import MediaKind
from reelrack.core.errors import RecordNotFound, TransportError
from reelrack.core.value_objects.patch import SERVER_TIMESTAMP, RecordPatch

HOST = "catalog.test"
DOCUMENTS = "/v1/collections/titles/documents"

WIRE_DUNE = {
    "id": "dune",
    "title": "Dune",
    "type": "movie",
    "year": 2021,
    "genres": ["Sci-Fi"],
    "posterUrl": "https://cdn.test/posters/dune-dune.jpg",
    "createdBy": "admin-uid",
    "createdAt": "2024-01-01T12:00:00Z",
    "updatedAt": "2024-01-01T12:00:00Z",
}
WIRE_WIRE = {
    "id": "wire",
    "title": "The Wire",
    "type": "tv",
    "year": 2002,
    "createdAt": "2023-06-01T08:00:00Z",
}


@pytest_asyncio.fixture
async def store():
    """Client sur l'API simulee, ferme apres le test."""
    client = HTTPDocumentStore(f"https://{HOST}/v1", token="secret", poll_interval=0)
    yield client
    await client.close()


class TestRead:
    """Tests de lecture."""

    @pytest.mark.asyncio
    async def test_list_records(self, store, respx_mock: respx.Router) -> None:
        route = respx_mock.get(host=HOST, path=DOCUMENTS).mock(
            return_value=httpx.Response(200, json={"documents": [WIRE_DUNE, WIRE_WIRE]})
        )

        records = await store.list_records()

        assert [r.id for r in records] == ["dune", "wire"]
        assert records[0].created_at == datetime(2024, 1, 1, 12, tzinfo=timezone.utc)
        assert records[1].kind is MediaKind.SERIES
        request = route.calls.last.request
        assert request.headers["Authorization"] == "Bearer secret"
        assert request.url.params["orderBy"] == "createdAt"

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, store, respx_mock: respx.Router) -> None:
        respx_mock.get(host=HOST, path=f"{DOCUMENTS}/nope").mock(return_value=httpx.Response(404))
        assert await store.get("nope") is None

    @pytest.mark.asyncio
    async def test_server_error_is_transport_error(self, store, respx_mock: respx.Router) -> None:
        respx_mock.get(host=HOST, path=DOCUMENTS).mock(return_value=httpx.Response(503))
        with pytest.raises(TransportError):
            await store.list_records()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(200, text="<html>proxy</html>"),
            httpx.Response(200, json=["dune"]),
            httpx.Response(200, json={"documents": "dune"}),
            httpx.Response(200, json={"documents": [["dune"]]}),
        ],
    )
    async def test_unreadable_list_body(self, store, respx_mock: respx.Router, response) -> None:
        respx_mock.get(host=HOST, path=DOCUMENTS).mock(return_value=response)
        with pytest.raises(TransportError):
            await store.list_records()

    @pytest.mark.asyncio
    async def test_unreadable_document_body(self, store, respx_mock: respx.Router) -> None:
        respx_mock.get(host=HOST, path=f"{DOCUMENTS}/dune").mock(
            return_value=httpx.Response(200, text="maintenance")
        )
        respx_mock.put(host=HOST, path=f"{DOCUMENTS}/dune").mock(
            return_value=httpx.Response(200, text="maintenance")
        )

        with pytest.raises(TransportError):
            await store.get("dune")
        with pytest.raises(TransportError):
            await store.create("dune", RecordPatch(title="Dune", created_at=SERVER_TIMESTAMP))

    @pytest.mark.asyncio
    async def test_network_error_is_transport_error(self, store, respx_mock: respx.Router) -> None:
        respx_mock.get(host=HOST, path=DOCUMENTS).mock(side_effect=httpx.ConnectError("hors ligne"))
        with pytest.raises(TransportError) as exc_info:
            await store.list_records()
        assert isinstance(exc_info.value.cause, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_malformed_document(self, store, respx_mock: respx.Router) -> None:
        respx_mock.get(host=HOST, path=DOCUMENTS).mock(
            return_value=httpx.Response(200, json={"documents": [{"title": "sans id"}]})
        )
        with pytest.raises(TransportError, match="mal forme"):
            await store.list_records()


class TestWrite:
    """Tests d'ecriture."""

    @pytest.mark.asyncio
    async def test_create_sends_fields_and_server_timestamps(self, store, respx_mock: respx.Router) -> None:
        route = respx_mock.put(host=HOST, path=f"{DOCUMENTS}/dune").mock(
            return_value=httpx.Response(201, json=WIRE_DUNE)
        )
        patch = RecordPatch(
            title="Dune",
            kind=MediaKind.MOVIE,
            year=2021,
            created_at=SERVER_TIMESTAMP,
            updated_at=SERVER_TIMESTAMP,
        )

        record = await store.create("dune", patch)

        assert record.id == "dune"
        body = json.loads(route.calls.last.request.content)
        assert body == {
            "fields": {"title": "Dune", "type": "movie", "year": 2021},
            "serverTimestamps": ["createdAt", "updatedAt"],
        }

    @pytest.mark.asyncio
    async def test_create_conflict(self, store, respx_mock: respx.Router) -> None:
        respx_mock.put(host=HOST, path=f"{DOCUMENTS}/dune").mock(return_value=httpx.Response(409))
        with pytest.raises(TransportError, match="existe deja"):
            await store.create("dune", RecordPatch(title="Dune"))

    @pytest.mark.asyncio
    async def test_merge_update_sends_only_set_fields(self, store, respx_mock: respx.Router) -> None:
        route = respx_mock.patch(host=HOST, path=f"{DOCUMENTS}/dune").mock(
            return_value=httpx.Response(200, json=WIRE_DUNE)
        )

        await store.merge_update("dune", RecordPatch(trailer_url="", updated_at=SERVER_TIMESTAMP))

        body = json.loads(route.calls.last.request.content)
        assert body == {"fields": {"trailerUrl": ""}, "serverTimestamps": ["updatedAt"]}

    @pytest.mark.asyncio
    async def test_merge_update_missing(self, store, respx_mock: respx.Router) -> None:
        respx_mock.patch(host=HOST, path=f"{DOCUMENTS}/gone").mock(return_value=httpx.Response(404))
        with pytest.raises(RecordNotFound) as exc_info:
            await store.merge_update("gone", RecordPatch(title="x"))
        assert exc_info.value.record_id == "gone"

    @pytest.mark.asyncio
    async def test_permission_denied(self, store, respx_mock: respx.Router) -> None:
        respx_mock.patch(host=HOST, path=f"{DOCUMENTS}/dune").mock(return_value=httpx.Response(403))
        with pytest.raises(TransportError):
            await store.merge_update("dune", RecordPatch(title="x"))

    @pytest.mark.asyncio
    async def test_delete(self, store, respx_mock: respx.Router) -> None:
        respx_mock.delete(host=HOST, path=f"{DOCUMENTS}/dune").mock(return_value=httpx.Response(204))
        respx_mock.delete(host=HOST, path=f"{DOCUMENTS}/gone").mock(return_value=httpx.Response(404))

        assert await store.delete("dune") is True
        assert await store.delete("gone") is False


class TestWatch:
    """Tests de l'abonnement par polling."""

    @pytest.mark.asyncio
    async def test_yields_only_on_change(self, store, respx_mock: respx.Router) -> None:
        route = respx_mock.get(host=HOST, path=DOCUMENTS).mock(
            side_effect=[
                httpx.Response(200, json={"documents": [WIRE_DUNE]}),
                httpx.Response(200, json={"documents": [WIRE_DUNE]}),
                httpx.Response(200, json={"documents": [WIRE_DUNE, WIRE_WIRE]}),
            ]
        )
        stream = store.watch()

        first = await stream.__anext__()
        second = await stream.__anext__()
        await stream.aclose()

        assert [r.id for r in first] == ["dune"]
        assert [r.id for r in second] == ["dune", "wire"]
        assert route.call_count == 3

    @pytest.mark.asyncio
    async def test_transport_error_ends_stream(self, store, respx_mock: respx.Router) -> None:
        respx_mock.get(host=HOST, path=DOCUMENTS).mock(
            side_effect=[
                httpx.Response(200, json={"documents": []}),
                httpx.Response(403),
            ]
        )
        stream = store.watch()

        assert await stream.__anext__() == []
        with pytest.raises(TransportError):
            await stream.__anext__()
