"""
Client du stockage d'objets distant avec envoi reprenable.

Protocole :
    POST   {base}/o?name={path}       ouvre une session ; URL de session dans Location
           X-Upload-Content-Length / X-Upload-Content-Type
    PUT    {session}                  un morceau, Content-Range: bytes a-b/total
                                      (202 tant que l'objet est incomplet,
                                       200 + {"downloadUrl": ...} au dernier)
    DELETE {session}                  abandon de la session
"""

from typing import Optional

import httpx
from loguru import logger

from reelrack.adapters.http.retry import request_with_retry
from reelrack.core.errors import TransportError
from reelrack.core.ports.blob_storage import IBlobStorage, IUploadSession


def _transport_error(action: str, error: httpx.HTTPError) -> TransportError:
    return TransportError(f"{action}: {error}", cause=error)


class HTTPUploadSession(IUploadSession):
    """Session d'envoi reprenable vers une URL de session."""

    def __init__(self, client: httpx.AsyncClient, session_url: str, total_bytes: int) -> None:
        self._client = client
        self._session_url = session_url
        self._total = total_bytes
        self._download_url: Optional[str] = None

    async def write_chunk(self, chunk: bytes, offset: int) -> None:
        end = offset + len(chunk) - 1
        headers = {"Content-Range": f"bytes {offset}-{end}/{self._total}"}
        response = await self._put(chunk, headers)
        if end + 1 >= self._total:
            self._download_url = self._read_download_url(response)

    async def finalize(self) -> str:
        if self._download_url is None:
            # Objet vide : aucun morceau n'a ete envoye
            response = await self._put(b"", {"Content-Range": f"bytes */{self._total}"})
            self._download_url = self._read_download_url(response)
        return self._download_url

    async def abort(self) -> None:
        try:
            await self._client.delete(self._session_url)
        except httpx.HTTPError as e:
            raise _transport_error("Abandon de session", e) from e

    async def _put(self, content: bytes, headers: dict[str, str]) -> httpx.Response:
        try:
            response = await request_with_retry(
                self._client, "PUT", self._session_url, content=content, headers=headers
            )
        except httpx.HTTPError as e:
            raise _transport_error("Envoi interrompu", e) from e
        return response

    @staticmethod
    def _read_download_url(response: httpx.Response) -> str:
        if response.status_code == 202:
            raise TransportError("Objet incomplet apres le dernier morceau")
        try:
            return response.json()["downloadUrl"]
        except (ValueError, KeyError, TypeError) as e:
            raise TransportError("Reponse de fin d'envoi sans downloadUrl", cause=e) from e


class HTTPBlobStorage(IBlobStorage):
    """
    Stockage d'objets distant via httpx.

    Attributes:
        base_url: URL de base du service (ex: https://storage.example.com/v1/b/reelrack)
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._token = token
        self._timeout = timeout
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        """Retourne le client HTTP, le cree si necessaire (lazy init)."""
        if self._client is None or self._client.is_closed:
            headers = {}
            if self._token:
                headers["Authorization"] = f"Bearer {self._token}"
            self._client = httpx.AsyncClient(
                base_url=self.base_url, headers=headers, timeout=self._timeout
            )
        return self._client

    async def open_session(
        self, path: str, total_bytes: int, content_type: str
    ) -> HTTPUploadSession:
        client = self._get_client()
        try:
            response = await request_with_retry(
                client,
                "POST",
                "/o",
                params={"name": path, "uploadType": "resumable"},
                headers={
                    "X-Upload-Content-Length": str(total_bytes),
                    "X-Upload-Content-Type": content_type,
                },
            )
        except httpx.HTTPError as e:
            raise _transport_error(f"Ouverture de l'envoi {path}", e) from e

        session_url = response.headers.get("Location")
        if not session_url:
            raise TransportError(f"Pas d'URL de session pour {path}")
        logger.debug(f"Session d'envoi ouverte: {path}")
        return HTTPUploadSession(client, session_url, total_bytes)

    async def close(self) -> None:
        """Ferme le client HTTP (a appeler a la fin)."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
