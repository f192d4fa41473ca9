"""
Fichiers binaires locaux a envoyer avec un titre (affiche, bande-annonce).
"""

import asyncio
import mimetypes
from collections.abc import AsyncIterator
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class LocalAsset:
    """
    Blob local a envoyer vers le stockage.

    Le contenu provient soit d'un fichier (path), soit d'octets deja en memoire
    (data), par exemple un fichier recu par l'API web.

    Attributs:
        filename: Nom de fichier utilise pour le chemin de destination
        path: Fichier local source
        data: Contenu en memoire (prioritaire sur path)
        content_type: Type MIME, devine depuis le nom si absent
    """

    filename: str
    path: Optional[Path] = None
    data: Optional[bytes] = None
    content_type: Optional[str] = None

    def __post_init__(self) -> None:
        if self.path is None and self.data is None:
            raise ValueError("LocalAsset requiert path ou data")

    @classmethod
    def from_path(cls, path: Path, content_type: Optional[str] = None) -> "LocalAsset":
        path = Path(path).expanduser()
        return cls(filename=path.name, path=path, content_type=content_type)

    @property
    def size(self) -> int:
        """Taille totale en octets."""
        if self.data is not None:
            return len(self.data)
        return self.path.stat().st_size

    @property
    def mime_type(self) -> str:
        if self.content_type:
            return self.content_type
        guessed, _ = mimetypes.guess_type(self.filename)
        return guessed or "application/octet-stream"

    async def iter_chunks(self, chunk_size: int) -> AsyncIterator[bytes]:
        """
        Produit le contenu par morceaux de chunk_size octets.

        La lecture fichier se fait dans l'executor pour ne pas bloquer la boucle.
        """
        if self.data is not None:
            for start in range(0, len(self.data), chunk_size):
                yield self.data[start:start + chunk_size]
            return

        loop = asyncio.get_running_loop()
        handle = await loop.run_in_executor(None, self.path.open, "rb")
        try:
            while True:
                chunk = await loop.run_in_executor(None, handle.read, chunk_size)
                if not chunk:
                    break
                yield chunk
        finally:
            handle.close()


@dataclass(frozen=True)
class AssetBundle:
    """Nouveaux fichiers fournis lors d'un enregistrement (chacun optionnel)."""

    poster: Optional[LocalAsset] = None
    trailer: Optional[LocalAsset] = None

    @property
    def is_empty(self) -> bool:
        return self.poster is None and self.trailer is None
