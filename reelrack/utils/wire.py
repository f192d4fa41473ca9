"""
Format d'echange JSON des documents du catalogue.

Les documents circulent en objets JSON a cles camelCase (title, type, year,
genres, cast, description, posterUrl, trailerUrl, createdBy, createdAt,
updatedAt). C'est le format de l'API distante, de l'export et de l'import.
Le type "series" s'ecrit "tv" sur le fil.
"""

from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from reelrack.core.entities.record import CatalogRecord, MediaKind
from reelrack.core.value_objects.patch import SERVER_TIMESTAMP, RecordPatch

# Nom d'attribut CatalogRecord -> cle JSON
WIRE_FIELDS = {
    "title": "title",
    "kind": "type",
    "year": "year",
    "genres": "genres",
    "cast_summary": "cast",
    "description": "description",
    "poster_url": "posterUrl",
    "trailer_url": "trailerUrl",
    "created_by": "createdBy",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
}

_KIND_TO_WIRE = {MediaKind.MOVIE: "movie", MediaKind.SERIES: "tv"}


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse un horodatage ISO-8601 (suffixe Z accepte), toujours en UTC aware."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.astimezone(timezone.utc).isoformat()


def _encode_value(name: str, value: Any) -> Any:
    if name == "kind":
        return _KIND_TO_WIRE[value]
    if name == "genres":
        return list(value)
    if name in ("created_at", "updated_at"):
        return format_timestamp(value)
    return value


def record_to_wire(record: CatalogRecord, include_id: bool = True) -> dict[str, Any]:
    """Serialise un enregistrement en objet JSON d'echange."""
    data: dict[str, Any] = {"id": record.id} if include_id else {}
    for name, key in WIRE_FIELDS.items():
        data[key] = _encode_value(name, getattr(record, name))
    return data


def record_from_wire(
    data: Mapping[str, Any], record_id: Optional[str] = None
) -> CatalogRecord:
    """
    Reconstruit un enregistrement depuis un objet JSON d'echange.

    Tolerant : les champs absents prennent leur valeur par defaut, une annee
    non numerique vaut 0.

    Raises:
        ValueError: Si le type de media est inconnu
    """
    try:
        year = int(data.get("year") or 0)
    except (TypeError, ValueError):
        year = 0
    return CatalogRecord(
        id=record_id if record_id is not None else data.get("id"),
        title=data.get("title") or "",
        kind=MediaKind.parse(data.get("type") or "movie"),
        year=year,
        genres=tuple(data.get("genres") or ()),
        cast_summary=data.get("cast") or "",
        description=data.get("description") or "",
        poster_url=data.get("posterUrl") or "",
        trailer_url=data.get("trailerUrl") or "",
        created_by=data.get("createdBy"),
        created_at=parse_timestamp(data.get("createdAt")),
        updated_at=parse_timestamp(data.get("updatedAt")),
    )


def patch_to_wire(patch: RecordPatch) -> dict[str, Any]:
    """
    Serialise un patch en corps de requete d'ecriture.

    Retourne {"fields": {...}, "serverTimestamps": [...]} : les champs
    SERVER_TIMESTAMP sont listes a part pour etre horodates par le serveur.
    """
    fields: dict[str, Any] = {}
    server_timestamps: list[str] = []
    for name, value in patch.set_fields().items():
        key = WIRE_FIELDS[name]
        if value is SERVER_TIMESTAMP:
            server_timestamps.append(key)
        else:
            fields[key] = _encode_value(name, value)
    return {"fields": fields, "serverTimestamps": server_timestamps}
