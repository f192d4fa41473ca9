"""
Export et import en masse du catalogue au format JSON.

- Export : la vue derivee courante serialisee en tableau JSON indente
- Import : un tableau JSON d'objets, chaque entree passee a upsert sequentiellement
"""

import json
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional

from reelrack.core.entities.record import CatalogRecord
from reelrack.core.errors import ImportFormatError
from reelrack.core.value_objects.draft import CatalogDraft
from reelrack.utils.wire import record_to_wire


def export_catalog(records: Iterable[CatalogRecord]) -> str:
    """Serialise les enregistrements en tableau JSON (lecture seule, aucun appel distant)."""
    return json.dumps([record_to_wire(r) for r in records], indent=2, ensure_ascii=False)


def export_filename(today: Optional[date] = None) -> str:
    """Nom de fichier d'export par defaut : catalog-export-AAAA-MM-JJ.json"""
    today = today or date.today()
    return f"catalog-export-{today.isoformat()}.json"


def parse_import(text: str) -> list[CatalogDraft]:
    """
    Parse un fichier d'import en brouillons.

    Tout le fichier est verifie avant de retourner : aucune ecriture ne
    peut avoir lieu si le format est invalide.

    Raises:
        ImportFormatError: JSON invalide, pas un tableau, ou entree non objet
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ImportFormatError(f"JSON invalide: {e.msg} (ligne {e.lineno})") from e

    if not isinstance(data, list):
        raise ImportFormatError("Le fichier doit contenir un tableau JSON")

    drafts = []
    for index, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise ImportFormatError(f"Entree {index}: objet JSON attendu")
        drafts.append(CatalogDraft.from_wire(entry))
    return drafts


@dataclass
class ImportFailure:
    """Entree d'import rejetee."""

    index: int
    title: str
    message: str


@dataclass
class ImportReport:
    """Bilan d'un import : IDs ecrits et entrees en echec."""

    imported: list[str] = field(default_factory=list)
    failures: list[ImportFailure] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.imported) + len(self.failures)

    @property
    def ok(self) -> bool:
        return not self.failures
