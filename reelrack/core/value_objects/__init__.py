"""
Objets valeur immutables du domaine.

- CatalogQuery, SortKey : criteres de la vue derivee
- RecordPatch, UNSET, SERVER_TIMESTAMP : mise a jour partielle typee
- CatalogDraft : saisie brute avant validation
- Session, Identity : contexte utilisateur explicite
- LocalAsset, AssetBundle : fichiers binaires a envoyer
"""

from reelrack.core.value_objects.asset import AssetBundle, LocalAsset
from reelrack.core.value_objects.draft import CatalogDraft
from reelrack.core.value_objects.patch import SERVER_TIMESTAMP, UNSET, RecordPatch
from reelrack.core.value_objects.query import ALL, CatalogQuery, SortKey
from reelrack.core.value_objects.session import Identity, Session

__all__ = [
    "ALL",
    "AssetBundle",
    "CatalogDraft",
    "CatalogQuery",
    "Identity",
    "LocalAsset",
    "RecordPatch",
    "SERVER_TIMESTAMP",
    "Session",
    "SortKey",
    "UNSET",
]
