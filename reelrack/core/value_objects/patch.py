"""
Mise a jour partielle typee d'un document du catalogue.

Chaque champ d'un RecordPatch vaut soit UNSET (absent : la valeur stockee
est conservee), soit une valeur concrete a ecrire. Une chaine vide est une
valeur comme une autre : absent et "vider" ne se confondent jamais.

SERVER_TIMESTAMP peut etre place dans created_at / updated_at : le stockage
le remplace par sa propre horloge au moment de l'ecriture.
"""

from dataclasses import dataclass, fields, replace
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union

from reelrack.core.entities.record import CatalogRecord, MediaKind


class _Unset(Enum):
    UNSET = "UNSET"

    def __repr__(self) -> str:
        return "UNSET"


class _ServerTimestamp(Enum):
    SERVER_TIMESTAMP = "SERVER_TIMESTAMP"

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


UNSET = _Unset.UNSET
SERVER_TIMESTAMP = _ServerTimestamp.SERVER_TIMESTAMP

Timestamp = Union[datetime, _ServerTimestamp]


@dataclass(frozen=True)
class RecordPatch:
    """
    Ensemble de champs a fusionner dans un document.

    Les noms de champs sont ceux de CatalogRecord (hors id).
    """

    title: Union[str, _Unset] = UNSET
    kind: Union[MediaKind, _Unset] = UNSET
    year: Union[int, _Unset] = UNSET
    genres: Union[tuple[str, ...], _Unset] = UNSET
    cast_summary: Union[str, _Unset] = UNSET
    description: Union[str, _Unset] = UNSET
    poster_url: Union[str, _Unset] = UNSET
    trailer_url: Union[str, _Unset] = UNSET
    created_by: Union[Optional[str], _Unset] = UNSET
    created_at: Union[Timestamp, _Unset] = UNSET
    updated_at: Union[Timestamp, _Unset] = UNSET

    def set_fields(self) -> dict[str, Any]:
        """Retourne les champs renseignes (nom -> valeur), dans l'ordre de declaration."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not UNSET
        }

    @property
    def is_empty(self) -> bool:
        return not self.set_fields()

    def server_timestamp_fields(self) -> list[str]:
        """Noms des champs a horodater par le stockage."""
        return [
            name for name, value in self.set_fields().items()
            if value is SERVER_TIMESTAMP
        ]

    def apply_to(self, record: CatalogRecord, now: datetime) -> CatalogRecord:
        """
        Fusionne le patch dans un enregistrement.

        Les champs absents sont conserves ; SERVER_TIMESTAMP est remplace par now.
        """
        changes = {
            name: now if value is SERVER_TIMESTAMP else value
            for name, value in self.set_fields().items()
        }
        return replace(record, **changes)
