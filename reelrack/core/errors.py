"""
Taxonomie des erreurs du catalogue.

- ValidationError : saisie utilisateur invalide (titre, annee) - aucun appel distant
- TransportError : echec d'abonnement, d'ecriture ou d'envoi - jamais relance
- RecordNotFound : document disparu entre lecture et ecriture
- AuthorizationDenial : action d'administration demandee sans droit admin
- ImportFormatError : fichier d'import JSON mal forme - aucune ecriture
"""

from typing import Optional


class CatalogError(Exception):
    """Erreur de base du catalogue."""


class ValidationError(CatalogError):
    """
    Saisie invalide detectee avant tout appel distant.

    Attributes:
        field: Nom du champ en faute (ex: "title", "year")
    """

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(message)


class TransportError(CatalogError):
    """
    Echec de communication avec le stockage distant.

    Attributes:
        cause: Exception d'origine (httpx, SQLAlchemy, OSError...), si connue
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        self.cause = cause
        super().__init__(message)


class RecordNotFound(TransportError):
    """Le document vise n'existe pas (ou plus) dans le stockage."""

    def __init__(self, record_id: str) -> None:
        self.record_id = record_id
        super().__init__(f"Document introuvable: {record_id}")


class AuthorizationDenial(CatalogError):
    """Action reservee a l'administrateur."""

    def __init__(self, action: str) -> None:
        self.action = action
        super().__init__(f"Action reservee a l'administrateur: {action}")


class ImportFormatError(CatalogError):
    """Le fichier d'import n'est pas un tableau JSON d'objets."""
