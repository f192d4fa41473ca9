"""
Client du stockage de documents distant (API REST JSON).

Implemente IDocumentStore au-dessus d'une API de collections :

    GET    {base}/collections/{c}/documents        -> {"documents": [...]}
    GET    {base}/collections/{c}/documents/{id}   -> document | 404
    PUT    {base}/collections/{c}/documents/{id}   creation (409 si existant)
    PATCH  {base}/collections/{c}/documents/{id}   fusion (404 si absent)
    DELETE {base}/collections/{c}/documents/{id}   suppression (404 si absent)

Les corps d'ecriture ont la forme {"fields": {...}, "serverTimestamps": [...]}.
L'abonnement est realise par polling : un instantane n'est produit que
lorsque le contenu de la collection a change.

Usage:
    store = HTTPDocumentStore("https://catalog.example.com/v1", token="xxx")
    async for snapshot in store.watch():
        ...
    await store.close()
"""

import asyncio
from collections.abc import AsyncIterator
from typing import Any, Optional

import httpx
from loguru import logger

from reelrack.adapters.http.retry import request_with_retry
from reelrack.core.entities.record import CatalogRecord
from reelrack.core.errors import RecordNotFound, TransportError
from reelrack.core.ports.document_store import IDocumentStore
from reelrack.core.value_objects.patch import RecordPatch
from reelrack.utils.constants import DEFAULT_COLLECTION
from reelrack.utils.wire import patch_to_wire, record_from_wire


class HTTPDocumentStore(IDocumentStore):
    """
    Stockage de documents distant via httpx.

    Les erreurs HTTP et reseau sont converties en TransportError ;
    seuls les 429 sont relances (backoff exponentiel).
    """

    def __init__(
        self,
        base_url: str,
        collection: str = DEFAULT_COLLECTION,
        token: Optional[str] = None,
        timeout: float = 30.0,
        poll_interval: float = 2.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """
        Initialise le client.

        Args:
            base_url: URL de base de l'API (sans slash final)
            collection: Nom de la collection des titres
            token: Jeton Bearer optionnel
            timeout: Timeout des requetes en secondes
            poll_interval: Intervalle de polling de watch() en secondes
            client: Client httpx a utiliser (tests), cree a la demande sinon
        """
        self._base_url = base_url.rstrip("/")
        self._collection = collection
        self._token = token
        self._timeout = timeout
        self._poll_interval = poll_interval
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        """Retourne le client HTTP, le cree si necessaire (lazy init)."""
        if self._client is None or self._client.is_closed:
            headers = {"Accept": "application/json"}
            if self._token:
                headers["Authorization"] = f"Bearer {self._token}"
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers=headers,
                timeout=self._timeout,
            )
        return self._client

    def _documents_path(self, record_id: Optional[str] = None) -> str:
        path = f"/collections/{self._collection}/documents"
        if record_id is not None:
            path += f"/{record_id}"
        return path

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Execute une requete ; toute erreur non HTTP devient TransportError."""
        try:
            return await request_with_retry(self._get_client(), method, path, **kwargs)
        except httpx.HTTPStatusError:
            raise
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {path}: {e}", cause=e) from e

    @staticmethod
    def _json_object(response: httpx.Response) -> dict[str, Any]:
        """Corps JSON objet de la reponse ; TransportError sinon (page de proxy...)."""
        try:
            body = response.json()
        except ValueError as e:
            raise TransportError(
                f"Reponse non JSON ({response.status_code}) pour {response.request.url}", cause=e
            ) from e
        if not isinstance(body, dict):
            raise TransportError(f"Objet JSON attendu pour {response.request.url}")
        return body

    @staticmethod
    def _to_record(document: dict[str, Any]) -> CatalogRecord:
        try:
            return record_from_wire(document, str(document["id"]))
        except (KeyError, ValueError, TypeError) as e:
            raise TransportError(f"Document mal forme: {document!r}", cause=e) from e

    async def list_records(self) -> list[CatalogRecord]:
        """Liste les documents dans l'ordre du serveur (creation decroissante)."""
        path = self._documents_path()
        try:
            response = await self._request(
                "GET", path, params={"orderBy": "createdAt", "direction": "desc"}
            )
        except httpx.HTTPStatusError as e:
            raise TransportError(f"Lecture de la collection impossible: {e}", cause=e) from e
        documents = self._json_object(response).get("documents", [])
        if not isinstance(documents, list):
            raise TransportError("Champ documents invalide dans la reponse")
        return [self._to_record(doc) for doc in documents]

    async def get(self, record_id: str) -> Optional[CatalogRecord]:
        path = self._documents_path(record_id)
        try:
            response = await self._request("GET", path)
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                return None
            raise TransportError(f"Lecture de {record_id} impossible: {e}", cause=e) from e
        return self._to_record(self._json_object(response))

    async def create(self, record_id: str, patch: RecordPatch) -> CatalogRecord:
        path = self._documents_path(record_id)
        try:
            response = await self._request("PUT", path, json=patch_to_wire(patch))
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 409:
                raise TransportError(f"Le document {record_id} existe deja", cause=e) from e
            raise TransportError(f"Creation de {record_id} impossible: {e}", cause=e) from e
        logger.debug(f"Document cree: {record_id}")
        return self._to_record(self._json_object(response))

    async def merge_update(self, record_id: str, patch: RecordPatch) -> CatalogRecord:
        path = self._documents_path(record_id)
        try:
            response = await self._request("PATCH", path, json=patch_to_wire(patch))
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                raise RecordNotFound(record_id) from e
            raise TransportError(f"Mise a jour de {record_id} impossible: {e}", cause=e) from e
        logger.debug(f"Document fusionne: {record_id}")
        return self._to_record(self._json_object(response))

    async def delete(self, record_id: str) -> bool:
        path = self._documents_path(record_id)
        try:
            await self._request("DELETE", path)
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                return False
            raise TransportError(f"Suppression de {record_id} impossible: {e}", cause=e) from e
        return True

    async def watch(self) -> AsyncIterator[list[CatalogRecord]]:
        """
        Produit un instantane au demarrage puis a chaque changement detecte.

        Une erreur de transport termine le flux (pas de nouvel essai).
        """
        previous: Optional[list[CatalogRecord]] = None
        while True:
            records = await self.list_records()
            if records != previous:
                previous = records
                yield records
            await asyncio.sleep(self._poll_interval)

    async def close(self) -> None:
        """Ferme le client HTTP (a appeler a la fin)."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
