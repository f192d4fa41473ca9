"""
Validation des saisies avant toute ecriture.

Les regles sont verifiees sans aucun appel distant ; une violation leve
ValidationError avec un message destine a l'utilisateur.
"""

from typing import Any

from reelrack.core.entities.record import CatalogRecord, MediaKind
from reelrack.core.errors import ValidationError
from reelrack.core.value_objects.draft import CatalogDraft
from reelrack.utils.constants import GENRES
from reelrack.utils.helpers import clean_text


def parse_year(value: Any) -> int:
    """
    Convertit une annee saisie en entier.

    Accepte un int, un float entier ou une chaine numerique de valeur entiere
    ("2021", " 2021 ", "2021.0", "2e3").

    Raises:
        ValidationError: Si l'annee est absente ou non numerique
    """
    if value is None or isinstance(value, bool):
        raise ValidationError("year", "Enter a valid year")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise ValidationError("year", "Enter a valid year")
    text = clean_text(value)
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        raise ValidationError("year", "Enter a valid year") from None
    if not number.is_integer():
        raise ValidationError("year", "Enter a valid year")
    return int(number)


def normalize_genres(genres: Any) -> tuple[str, ...]:
    """Dedoublonne les genres (premiere occurrence gardee) et refuse les genres inconnus."""
    if genres is None:
        return ()
    if not isinstance(genres, (list, tuple)):
        raise ValidationError("genres", "Genres must be a list")
    result: list[str] = []
    for genre in genres:
        tag = clean_text(genre)
        if tag not in GENRES:
            raise ValidationError("genres", f"Unknown genre: {tag}")
        if tag not in result:
            result.append(tag)
    return tuple(result)


def validate_draft(draft: CatalogDraft) -> CatalogRecord:
    """
    Valide et normalise un brouillon.

    Retourne un CatalogRecord non persiste (horodatages absents) dont
    l'id est celui du brouillon.

    Raises:
        ValidationError: Titre vide, annee invalide, type ou genre inconnu
    """
    title = clean_text(draft.title)
    if not title:
        raise ValidationError("title", "Title is required")

    year = parse_year(draft.year)

    try:
        kind = MediaKind.parse(draft.kind)
    except ValueError:
        raise ValidationError("kind", f"Unknown type: {draft.kind}") from None

    return CatalogRecord(
        id=draft.id or None,
        title=title,
        kind=kind,
        year=year,
        genres=normalize_genres(draft.genres),
        cast_summary=clean_text(draft.cast_summary),
        description=clean_text(draft.description),
        poster_url=clean_text(draft.poster_url),
        trailer_url=clean_text(draft.trailer_url),
        created_by=draft.created_by,
    )
