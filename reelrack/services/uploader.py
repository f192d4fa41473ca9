"""
Envoi des fichiers binaires (affiches, bandes-annonces) vers le stockage d'objets.

L'envoi est reprenable par morceaux, rapporte sa progression en pourcentage
entier et se resout en URL de recuperation durable. Aucun nouvel essai
automatique : en cas d'echec la session est abandonnee et l'erreur remonte.
"""

from collections.abc import Callable
from typing import Optional

from loguru import logger

from reelrack.core.errors import TransportError
from reelrack.core.ports.blob_storage import IBlobStorage, IUploadSession
from reelrack.core.value_objects.asset import LocalAsset

ProgressCallback = Callable[[int], None]

DEFAULT_CHUNK_SIZE = 256 * 1024


def progress_percent(sent: int, total: int) -> int:
    """Pourcentage entier arrondi dans [0, 100] ; un blob vide est a 100%."""
    if total <= 0:
        return 100
    return max(0, min(100, round(sent / total * 100)))


class AssetUploader:
    """
    Envoie un blob local vers un chemin du stockage d'objets.

    Sans etat partage entre appels : plusieurs envois peuvent tourner
    en parallele sur la meme instance.

    Example:
        uploader = AssetUploader(storage)
        url = await uploader.upload(
            LocalAsset.from_path(Path("dune.jpg")),
            "posters/abc-dune.jpg",
            on_progress=lambda pct: print(pct),
        )
    """

    def __init__(self, storage: IBlobStorage, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size doit etre positif")
        self._storage = storage
        self._chunk_size = chunk_size

    async def upload(
        self,
        asset: LocalAsset,
        destination_path: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> str:
        """
        Envoie le blob et retourne son URL durable.

        on_progress recoit un entier dans [0, 100] apres chaque morceau,
        et toujours 100 une fois l'objet stocke.

        Raises:
            TransportError: Lecture locale, reseau, quota ou permission en echec
        """
        try:
            total = asset.size
        except OSError as e:
            raise TransportError(f"Fichier illisible: {asset.filename}", cause=e) from e

        logger.info(f"Envoi de {asset.filename} vers {destination_path} ({total} octets)")
        session = await self._storage.open_session(destination_path, total, asset.mime_type)

        last_reported: Optional[int] = None
        try:
            sent = 0
            async for chunk in asset.iter_chunks(self._chunk_size):
                await session.write_chunk(chunk, sent)
                sent += len(chunk)
                pct = progress_percent(sent, total)
                if on_progress is not None and pct != last_reported:
                    on_progress(pct)
                    last_reported = pct
            url = await session.finalize()
        except OSError as e:
            await self._abort(session, destination_path)
            raise TransportError(f"Lecture interrompue: {asset.filename}", cause=e) from e
        except BaseException:
            # erreur de transport, callback en echec ou annulation
            await self._abort(session, destination_path)
            raise

        if on_progress is not None and last_reported != 100:
            on_progress(100)
        logger.info(f"Envoi termine: {destination_path}")
        return url

    async def _abort(self, session: IUploadSession, destination_path: str) -> None:
        try:
            await session.abort()
        except TransportError as e:
            logger.warning(f"Abandon de l'envoi {destination_path} impossible: {e}")
