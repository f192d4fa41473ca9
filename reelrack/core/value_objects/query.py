"""
Objets valeur decrivant une requete sur le catalogue.

Une CatalogQuery regroupe les criteres locaux (texte, type, genre, tri)
appliques par le moteur de requete sur l'instantane du miroir.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from reelrack.core.entities.record import MediaKind
from reelrack.utils.constants import GENRES

ALL = "all"


class SortKey(Enum):
    """Cle de tri de la vue derivee.

    Valeurs:
        YEAR_DESC: Annee la plus recente d'abord
        YEAR_ASC: Annee la plus ancienne d'abord
        TITLE_ASC: Titre A -> Z
        TITLE_DESC: Titre Z -> A
    """

    YEAR_DESC = "year-desc"
    YEAR_ASC = "year-asc"
    TITLE_ASC = "title-asc"
    TITLE_DESC = "title-desc"

    @classmethod
    def parse(cls, value: "str | SortKey") -> "SortKey":
        """Parse une cle de tri, y compris les anciens identifiants (newest, a-z...)."""
        if isinstance(value, SortKey):
            return value
        normalized = str(value).strip().lower()
        return cls(_SORT_ALIASES.get(normalized, normalized))

    @property
    def by_year(self) -> bool:
        return self in (SortKey.YEAR_DESC, SortKey.YEAR_ASC)

    @property
    def descending(self) -> bool:
        return self in (SortKey.YEAR_DESC, SortKey.TITLE_DESC)


_SORT_ALIASES = {
    "newest": "year-desc",
    "oldest": "year-asc",
    "a-z": "title-asc",
    "z-a": "title-desc",
}


@dataclass(frozen=True)
class CatalogQuery:
    """
    Criteres de filtrage et de tri de la vue du catalogue.

    Attributs:
        text: Texte recherche dans titre, casting et description ("" = pas de filtre)
        kind: Type de media retenu, None pour tous
        genre: Genre retenu, None pour tous
        sort_key: Ordre de la vue derivee
    """

    text: str = ""
    kind: Optional[MediaKind] = None
    genre: Optional[str] = None
    sort_key: SortKey = SortKey.YEAR_DESC

    @classmethod
    def from_params(
        cls,
        text: Optional[str] = None,
        kind: Optional[str] = None,
        genre: Optional[str] = None,
        sort: Optional[str] = None,
    ) -> "CatalogQuery":
        """
        Construit une requete depuis des parametres textuels (CLI, query string).

        "all" ou une valeur vide desactivent le filtre correspondant.

        Raises:
            ValueError: Si le type, le genre ou la cle de tri est inconnu
        """
        parsed_kind = None
        if kind and kind.strip().lower() != ALL:
            parsed_kind = MediaKind.parse(kind)

        parsed_genre = None
        if genre and genre.strip().lower() != ALL:
            parsed_genre = genre.strip()
            if parsed_genre not in GENRES:
                raise ValueError(f"Genre inconnu: {parsed_genre}")

        return cls(
            text=text or "",
            kind=parsed_kind,
            genre=parsed_genre,
            sort_key=SortKey.parse(sort) if sort else SortKey.YEAR_DESC,
        )
