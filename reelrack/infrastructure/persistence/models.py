"""
Modele SQLModel du stockage local des titres.

Ce modele represente la table SQLite ; il est distinct de l'entite de
domaine CatalogRecord (dataclass dans core/entities/). La conversion entre
les deux se fait dans SQLModelDocumentStore.

Les horodatages sont stockes en UTC naif (SQLite n'a pas de fuseau).
"""

from __future__ import annotations

import json
from datetime import datetime

from sqlmodel import Field, SQLModel


class CatalogRecordModel(SQLModel, table=True):
    """
    Document du catalogue dans la base locale.

    genres_json stocke la liste des genres serialisee en JSON.
    """

    __tablename__ = "titles"

    id: str = Field(primary_key=True)
    title: str = Field(index=True)
    kind: str = Field(default="movie", index=True)
    year: int = 0
    genres_json: str | None = None  # JSON: ["Sci-Fi", "Drama"]
    cast: str = ""
    description: str = ""
    poster_url: str = ""
    trailer_url: str = ""
    created_by: str | None = None
    created_at: datetime | None = Field(default=None, index=True)
    updated_at: datetime | None = None

    @property
    def genres(self) -> list[str]:
        """Retourne les genres deserialises."""
        if self.genres_json:
            return json.loads(self.genres_json)
        return []
