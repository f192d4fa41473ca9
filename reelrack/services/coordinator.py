"""
Coordinateur des mutations du catalogue (creation, modification, suppression).

Orchestre, pour un enregistrement :
1. La validation de la saisie (aucun appel distant si elle echoue)
2. L'envoi concurrent de la nouvelle affiche et de la nouvelle bande-annonce
3. Une ecriture unique : creation atomique complete, ou fusion partielle

Les ID des nouveaux titres sont generes cote client, ce qui permet de nommer
les fichiers envoyes avant que le document n'existe : aucun document
provisoire n'est jamais visible des autres clients.

Le coordinateur ne verifie pas les droits d'administration ; c'est le role
de l'appelant (voir CatalogService).
"""

import asyncio
from collections.abc import Callable
from pathlib import PurePath
from typing import Optional

from loguru import logger

from reelrack.core.entities.record import CatalogRecord
from reelrack.core.ports.document_store import IDocumentStore
from reelrack.core.value_objects.asset import AssetBundle, LocalAsset
from reelrack.core.value_objects.draft import CatalogDraft
from reelrack.core.value_objects.patch import SERVER_TIMESTAMP, UNSET, RecordPatch
from reelrack.core.value_objects.session import Session
from reelrack.services.uploader import AssetUploader
from reelrack.services.validation import validate_draft
from reelrack.utils.constants import POSTERS_PREFIX, TRAILERS_PREFIX
from reelrack.utils.helpers import new_record_id

# (nom du fichier envoye, pourcentage)
UpsertProgress = Callable[[str, int], None]


def asset_path(prefix: str, record_id: str, filename: str) -> str:
    """Chemin de stockage d'un fichier : {prefix}/{id}-{nom de fichier}."""
    return f"{prefix}/{record_id}-{PurePath(filename).name}"


class CatalogMutationCoordinator:
    """
    Cree, modifie et supprime les titres du catalogue.

    Les ecritures reviennent aux clients par l'abonnement du miroir ;
    aucun cache local n'est invalide ici.
    """

    def __init__(
        self,
        store: IDocumentStore,
        uploader: AssetUploader,
        id_factory: Callable[[], str] = new_record_id,
    ) -> None:
        """
        Initialise le coordinateur.

        Args:
            store: Stockage de documents
            uploader: Service d'envoi des fichiers binaires
            id_factory: Generateur d'ID pour les nouveaux titres
        """
        self._store = store
        self._uploader = uploader
        self._id_factory = id_factory

    async def upsert(
        self,
        draft: CatalogDraft,
        assets: Optional[AssetBundle] = None,
        session: Optional[Session] = None,
        on_progress: Optional[UpsertProgress] = None,
    ) -> CatalogRecord:
        """
        Cree ou modifie un titre, fichiers binaires compris.

        Args:
            draft: Saisie brute ; draft.id absent pour une creation
            assets: Nouvelle affiche et/ou bande-annonce (optionnelles)
            session: Session courante, fournit l'uid du createur
            on_progress: Progression des envois (nom de fichier, pourcentage)

        Returns:
            Le document tel qu'ecrit dans le stockage

        Raises:
            ValidationError: Saisie invalide (aucun appel distant)
            TransportError: Envoi ou ecriture en echec
        """
        record = validate_draft(draft)
        assets = assets or AssetBundle()
        session = session or Session.anonymous()

        existing: Optional[CatalogRecord] = None
        if record.id:
            record_id = record.id
            existing = await self._store.get(record_id)
        else:
            record_id = self._id_factory()

        poster_url, trailer_url = await self._upload_assets(record_id, assets, on_progress)

        fallback = existing or CatalogRecord()
        resolved_poster = poster_url or record.poster_url or fallback.poster_url
        resolved_trailer = trailer_url or record.trailer_url or fallback.trailer_url

        fields = dict(
            title=record.title,
            kind=record.kind,
            year=record.year,
            genres=record.genres,
            cast_summary=record.cast_summary,
            description=record.description,
            poster_url=resolved_poster,
            trailer_url=resolved_trailer,
            updated_at=SERVER_TIMESTAMP,
        )
        creator = record.created_by or session.uid

        if existing is None:
            patch = RecordPatch(**fields, created_by=creator, created_at=SERVER_TIMESTAMP)
            saved = await self._store.create(record_id, patch)
            logger.info(f"Titre ajoute: {saved.title} ({saved.year}) [{record_id}]")
        else:
            patch = RecordPatch(
                **fields,
                created_by=creator if existing.created_by is None else UNSET,
            )
            saved = await self._store.merge_update(record_id, patch)
            logger.info(f"Titre modifie: {saved.title} ({saved.year}) [{record_id}]")
        return saved

    async def find(self, record_id: str) -> Optional[CatalogRecord]:
        """Document stocke pour cet ID, None s'il n'existe pas."""
        return await self._store.get(record_id)

    async def remove(self, record_id: str) -> bool:
        """
        Supprime un titre par ID.

        Les fichiers deja envoyes ne sont pas supprimes du stockage d'objets.

        Returns:
            True si le document existait
        """
        deleted = await self._store.delete(record_id)
        if deleted:
            logger.info(f"Titre supprime: {record_id}")
        else:
            logger.warning(f"Suppression d'un titre absent: {record_id}")
        return deleted

    async def _upload_assets(
        self,
        record_id: str,
        assets: AssetBundle,
        on_progress: Optional[UpsertProgress],
    ) -> tuple[str, str]:
        """
        Envoie affiche et bande-annonce en parallele.

        Attend la fin des deux envois avant de propager la premiere erreur,
        pour qu'aucun envoi ne reste en vol derriere l'appelant.

        Returns:
            (URL affiche, URL bande-annonce), "" pour un fichier non fourni
        """
        jobs: list[tuple[str, LocalAsset]] = []
        if assets.poster is not None:
            jobs.append((POSTERS_PREFIX, assets.poster))
        if assets.trailer is not None:
            jobs.append((TRAILERS_PREFIX, assets.trailer))
        if not jobs:
            return "", ""

        results = await asyncio.gather(
            *(self._upload_one(prefix, record_id, asset, on_progress) for prefix, asset in jobs),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result

        urls = dict(zip((prefix for prefix, _ in jobs), results))
        return urls.get(POSTERS_PREFIX, ""), urls.get(TRAILERS_PREFIX, "")

    async def _upload_one(
        self,
        prefix: str,
        record_id: str,
        asset: LocalAsset,
        on_progress: Optional[UpsertProgress],
    ) -> str:
        callback = None
        if on_progress is not None:
            def callback(pct: int) -> None:
                on_progress(asset.filename, pct)

        return await self._uploader.upload(
            asset, asset_path(prefix, record_id, asset.filename), callback
        )
