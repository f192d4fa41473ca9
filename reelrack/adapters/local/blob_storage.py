"""
Stockage d'objets sur le systeme de fichiers local.

Chaque envoi ecrit dans un fichier temporaire "<chemin>.part", renomme
atomiquement a la finalisation : un objet n'est visible qu'une fois complet.
Les operations fichiers tournent dans l'executor pour ne pas bloquer la boucle.
"""

import asyncio
import os
from functools import partial
from pathlib import Path, PurePosixPath
from typing import BinaryIO, Optional

from loguru import logger

from reelrack.core.errors import TransportError
from reelrack.core.ports.blob_storage import IBlobStorage, IUploadSession


async def _run(func, *args):
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, partial(func, *args))


class LocalUploadSession(IUploadSession):
    """Session d'envoi vers un fichier local."""

    def __init__(self, target: Path, url: str, total_bytes: int) -> None:
        self._target = target
        self._part = target.with_name(target.name + ".part")
        self._url = url
        self._total = total_bytes
        self._handle: Optional[BinaryIO] = None
        self._written = 0

    async def _open(self) -> None:
        try:
            await _run(partial(self._part.parent.mkdir, parents=True, exist_ok=True))
            self._handle = await _run(self._part.open, "wb")
        except OSError as e:
            raise TransportError(f"Ecriture impossible: {self._part}", cause=e) from e

    async def write_chunk(self, chunk: bytes, offset: int) -> None:
        if offset != self._written:
            raise TransportError(
                f"Morceau hors sequence: offset {offset}, attendu {self._written}"
            )
        try:
            await _run(self._handle.write, chunk)
        except OSError as e:
            raise TransportError(f"Ecriture interrompue: {self._part}", cause=e) from e
        self._written += len(chunk)

    async def finalize(self) -> str:
        if self._written != self._total:
            raise TransportError(
                f"Objet incomplet: {self._written}/{self._total} octets"
            )
        try:
            await _run(self._handle.close)
            await _run(os.replace, self._part, self._target)
        except OSError as e:
            raise TransportError(f"Finalisation impossible: {self._target}", cause=e) from e
        return self._url

    async def abort(self) -> None:
        try:
            if self._handle is not None and not self._handle.closed:
                await _run(self._handle.close)
            await _run(partial(self._part.unlink, missing_ok=True))
        except OSError as e:
            raise TransportError(f"Abandon impossible: {self._part}", cause=e) from e


class LocalBlobStorage(IBlobStorage):
    """
    Stockage d'objets dans un repertoire racine.

    Les URL retournees sont des URI file:// ou, si public_base_url est
    fourni, {public_base_url}/{chemin}.
    """

    def __init__(self, root_dir: Path, public_base_url: Optional[str] = None) -> None:
        self._root = Path(root_dir).expanduser().resolve()
        self._public_base_url = public_base_url.rstrip("/") if public_base_url else None

    def _resolve(self, path: str) -> Path:
        relative = PurePosixPath(path)
        if relative.is_absolute() or ".." in relative.parts or not relative.parts:
            raise TransportError(f"Chemin de stockage invalide: {path}")
        return self._root.joinpath(*relative.parts)

    def url_for(self, path: str) -> str:
        if self._public_base_url:
            return f"{self._public_base_url}/{path}"
        return self._resolve(path).as_uri()

    async def open_session(
        self, path: str, total_bytes: int, content_type: str
    ) -> LocalUploadSession:
        target = self._resolve(path)
        session = LocalUploadSession(target, self.url_for(path), total_bytes)
        await session._open()
        logger.debug(f"Envoi local vers {target} ({content_type})")
        return session
