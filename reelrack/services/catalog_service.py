"""
Service applicatif du catalogue.

Point d'entree des interfaces (CLI, web) : applique le controle d'acces
administrateur (consultatif) avant de deleguer au coordinateur, derive la
vue filtree et pilote l'export / import en masse.
"""

from collections.abc import Iterable, Mapping
from typing import Any, Optional

from loguru import logger

from reelrack.core.entities.record import CatalogRecord
from reelrack.core.errors import AuthorizationDenial, CatalogError, RecordNotFound
from reelrack.core.value_objects.asset import AssetBundle
from reelrack.core.value_objects.draft import CatalogDraft
from reelrack.core.value_objects.query import CatalogQuery
from reelrack.core.value_objects.session import Session
from reelrack.services.bulk import (
    ImportFailure,
    ImportReport,
    export_catalog,
    parse_import,
)
from reelrack.services.coordinator import CatalogMutationCoordinator, UpsertProgress
from reelrack.services.query_engine import apply_query


def require_admin(session: Session, action: str) -> None:
    """
    Refuse une action d'administration pour une session non admin.

    Raises:
        AuthorizationDenial: Si la session n'a pas la capacite admin
    """
    if not session.is_admin:
        logger.warning(f"Action refusee pour {session.uid or 'anonyme'}: {action}")
        raise AuthorizationDenial(action)


class CatalogService:
    """
    Facade du catalogue pour les interfaces utilisateur.

    Toutes les mutations sont refusees cote client pour une session non
    admin, avant tout appel distant.
    """

    def __init__(self, coordinator: CatalogMutationCoordinator) -> None:
        self._coordinator = coordinator

    @staticmethod
    def view(records: Iterable[CatalogRecord], query: CatalogQuery) -> tuple[CatalogRecord, ...]:
        """Vue derivee de l'instantane pour la requete donnee."""
        return apply_query(records, query)

    async def save(
        self,
        session: Session,
        draft: CatalogDraft,
        assets: Optional[AssetBundle] = None,
        on_progress: Optional[UpsertProgress] = None,
    ) -> CatalogRecord:
        """Cree ou modifie un titre (admin uniquement)."""
        require_admin(session, "save")
        return await self._coordinator.upsert(draft, assets, session, on_progress)

    async def edit(
        self,
        session: Session,
        record_id: str,
        changes: Mapping[str, Any],
        assets: Optional[AssetBundle] = None,
        on_progress: Optional[UpsertProgress] = None,
    ) -> CatalogRecord:
        """
        Modifie un titre existant (admin uniquement).

        Les champs valant None dans `changes` conservent la valeur stockee.

        Raises:
            AuthorizationDenial: Session non admin (aucune lecture distante)
            RecordNotFound: Aucun titre pour cet ID
        """
        require_admin(session, "edit")
        existing = await self._coordinator.find(record_id)
        if existing is None:
            raise RecordNotFound(record_id)
        draft = CatalogDraft.from_record(existing).with_changes(**changes)
        return await self._coordinator.upsert(draft, assets, session, on_progress)

    async def delete(self, session: Session, record_id: str) -> bool:
        """Supprime un titre (admin uniquement)."""
        require_admin(session, "delete")
        return await self._coordinator.remove(record_id)

    @staticmethod
    def export_json(records: Iterable[CatalogRecord], query: Optional[CatalogQuery] = None) -> str:
        """Export JSON de la vue courante (ouvert a tous)."""
        view = apply_query(records, query) if query is not None else tuple(records)
        return export_catalog(view)

    async def import_json(self, session: Session, text: str) -> ImportReport:
        """
        Importe un tableau JSON de titres (admin uniquement).

        Le format complet est verifie avant la premiere ecriture. Les entrees
        sont ensuite ecrites une par une ; l'echec d'une entree est consigne
        dans le rapport sans interrompre les suivantes.

        Raises:
            AuthorizationDenial: Session non admin
            ImportFormatError: Fichier mal forme (aucune ecriture)
        """
        require_admin(session, "import")
        drafts = parse_import(text)
        logger.info(f"Import de {len(drafts)} titres")

        report = ImportReport()
        for index, draft in enumerate(drafts):
            try:
                saved = await self._coordinator.upsert(draft, session=session)
            except CatalogError as e:
                logger.warning(f"Import entree {index} ({draft.title!r}) en echec: {e}")
                report.failures.append(ImportFailure(index, draft.title, str(e)))
            else:
                report.imported.append(saved.id)

        logger.info(
            f"Import termine: {len(report.imported)} ecrits, {len(report.failures)} en echec"
        )
        return report
