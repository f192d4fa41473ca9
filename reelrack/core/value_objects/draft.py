"""
Brouillon de saisie d'un titre du catalogue.

Un CatalogDraft transporte la saisie brute (formulaire, ligne de commande,
entree d'import JSON) avant validation : l'annee peut encore etre une chaine,
le type une valeur textuelle. La validation le transforme en CatalogRecord.
"""

from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional, Sequence

from reelrack.core.entities.record import CatalogRecord, MediaKind


@dataclass(frozen=True)
class CatalogDraft:
    """
    Saisie brute d'un titre a creer ou modifier.

    Attributs:
        id: ID du document a modifier, None pour une creation
        title: Titre saisi (espaces superflus toleres)
        kind: Type saisi ("movie", "series", "tv" ou MediaKind)
        year: Annee saisie (int ou chaine numerique)
        genres: Genres coches
        cast_summary: Casting principal
        description: Synopsis
        poster_url: URL d'affiche deja connue (conservee si aucun nouvel envoi)
        trailer_url: URL de bande-annonce deja connue
        created_by: Createur connu du document edite
    """

    id: Optional[str] = None
    title: str = ""
    kind: Any = MediaKind.MOVIE
    year: Any = None
    genres: Sequence[str] = ()
    cast_summary: Optional[str] = ""
    description: Optional[str] = ""
    poster_url: Optional[str] = ""
    trailer_url: Optional[str] = ""
    created_by: Optional[str] = None

    @classmethod
    def from_record(cls, record: CatalogRecord) -> "CatalogDraft":
        """Brouillon pre-rempli pour l'edition d'un enregistrement existant."""
        return cls(
            id=record.id,
            title=record.title,
            kind=record.kind,
            year=record.year,
            genres=record.genres,
            cast_summary=record.cast_summary,
            description=record.description,
            poster_url=record.poster_url,
            trailer_url=record.trailer_url,
            created_by=record.created_by,
        )

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> "CatalogDraft":
        """
        Brouillon depuis un objet JSON au format d'echange (cles camelCase).

        Le createur eventuellement present dans l'objet est ignore :
        il est determine par la session qui ecrit.
        Un champ "genres" qui n'est ni une liste ni une chaine est transmis
        tel quel : la validation le rejette pour cette seule entree.
        """
        genres = data.get("genres") or ()
        if isinstance(genres, str):
            genres = (genres,)
        elif isinstance(genres, list):
            genres = tuple(genres)
        raw_id = data.get("id")
        return cls(
            id=str(raw_id) if raw_id else None,
            title=data.get("title") or "",
            kind=data.get("type") or data.get("kind") or MediaKind.MOVIE,
            year=data.get("year"),
            genres=genres,
            cast_summary=data.get("cast") or "",
            description=data.get("description") or "",
            poster_url=data.get("posterUrl") or "",
            trailer_url=data.get("trailerUrl") or "",
        )

    def with_changes(self, **changes: Any) -> "CatalogDraft":
        """Copie du brouillon ou seules les valeurs non None remplacent l'existant."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})
