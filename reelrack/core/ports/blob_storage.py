"""
Interface port pour le stockage d'objets binaires (affiches, bandes-annonces).

Stockage hierarchique adresse par chemin, avec envoi reprenable par morceaux
et URL de recuperation durable par objet.
"""

from abc import ABC, abstractmethod


class IUploadSession(ABC):
    """Session d'envoi reprenable d'un objet unique."""

    @abstractmethod
    async def write_chunk(self, chunk: bytes, offset: int) -> None:
        """Envoie un morceau commencant a l'octet offset."""
        ...

    @abstractmethod
    async def finalize(self) -> str:
        """Termine l'envoi et retourne l'URL de recuperation durable."""
        ...

    @abstractmethod
    async def abort(self) -> None:
        """Abandonne l'envoi ; aucun objet partiel ne reste referencable."""
        ...


class IBlobStorage(ABC):
    """Interface du stockage d'objets."""

    @abstractmethod
    async def open_session(
        self, path: str, total_bytes: int, content_type: str
    ) -> IUploadSession:
        """
        Ouvre une session d'envoi.

        Args :
            path : Chemin de destination (ex: "posters/abc-dune.jpg")
            total_bytes : Taille totale annoncee
            content_type : Type MIME de l'objet
        """
        ...
