"""
Moteur de requete du catalogue.

Fonction pure : (instantane, requete) -> nouvelle vue ordonnee.
Aucun effet de bord, aucun appel externe ; l'instantane n'est jamais modifie.

Etapes, dans cet ordre :
1. Filtre texte (titre, casting, description), ignore si le texte est vide
2. Filtre par type de media
3. Filtre par genre
4. Tri stable par annee ou par titre
"""

from collections.abc import Iterable

from reelrack.core.entities.record import CatalogRecord
from reelrack.core.value_objects.query import CatalogQuery
from reelrack.utils.helpers import title_sort_key


def _matches_text(record: CatalogRecord, needle: str) -> bool:
    return any(
        needle in (value or "").lower()
        for value in (record.title, record.cast_summary, record.description)
    )


def apply_query(
    records: Iterable[CatalogRecord], query: CatalogQuery
) -> tuple[CatalogRecord, ...]:
    """
    Derive la vue filtree et triee du catalogue.

    Args:
        records: Instantane du miroir (ordre de creation decroissant)
        query: Criteres de filtrage et de tri

    Returns:
        Nouveau tuple, sous-sequence de l'entree satisfaisant tous les filtres
    """
    result = list(records)

    needle = query.text.strip().lower()
    if needle:
        result = [r for r in result if _matches_text(r, needle)]

    if query.kind is not None:
        result = [r for r in result if r.kind == query.kind]

    if query.genre is not None:
        result = [r for r in result if query.genre in r.genres]

    # sorted() est stable, reverse=True aussi : les egalites gardent l'ordre du miroir
    sort_key = query.sort_key
    if sort_key.by_year:
        result = sorted(result, key=lambda r: r.year or 0, reverse=sort_key.descending)
    else:
        result = sorted(
            result, key=lambda r: title_sort_key(r.title), reverse=sort_key.descending
        )

    return tuple(result)
