"""
Interface port pour le stockage de documents du catalogue.

Une collection logique de documents CatalogRecord, indexee par ID,
ordonnee par horodatage de creation serveur (plus recent d'abord).
Les implementations (adaptateurs) fournissent le stockage concret
(API HTTP distante, SQLite local via SQLModel).
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import Optional

from reelrack.core.entities.record import CatalogRecord
from reelrack.core.value_objects.patch import RecordPatch


class IDocumentStore(ABC):
    """
    Interface du stockage de documents.

    Toutes les erreurs de communication sont levees en TransportError.
    """

    @abstractmethod
    def watch(self) -> AsyncIterator[list[CatalogRecord]]:
        """
        Flux d'instantanes complets de la collection.

        Produit un premier instantane des l'iteration, puis un nouvel
        instantane a chaque modification observee (push ou polling).
        """
        ...

    @abstractmethod
    async def list_records(self) -> list[CatalogRecord]:
        """Liste tous les documents, du plus recemment cree au plus ancien."""
        ...

    @abstractmethod
    async def get(self, record_id: str) -> Optional[CatalogRecord]:
        """Recupere un document par son ID, None si absent."""
        ...

    @abstractmethod
    async def create(self, record_id: str, patch: RecordPatch) -> CatalogRecord:
        """
        Cree un document complet en une seule ecriture atomique.

        Args :
            record_id : ID du nouveau document (genere cote client)
            patch : Tous les champs du document, horodatages serveur inclus

        Retourne :
            Le document tel que stocke

        Raises :
            TransportError : Si l'ID existe deja ou si l'ecriture echoue
        """
        ...

    @abstractmethod
    async def merge_update(self, record_id: str, patch: RecordPatch) -> CatalogRecord:
        """
        Fusionne les champs renseignes du patch dans un document existant.

        Raises :
            RecordNotFound : Si le document n'existe pas
        """
        ...

    @abstractmethod
    async def delete(self, record_id: str) -> bool:
        """Supprime un document par ID. Retourne True si supprime."""
        ...
