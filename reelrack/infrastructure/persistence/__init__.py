"""
Module de persistance SQLite du stockage local.

- database.py : Engine SQLite et initialisation des tables
- models.py : Modele SQLModel de la table des titres
- document_store.py : Implementation SQLModel de IDocumentStore

Usage:
    from reelrack.infrastructure.persistence import build_engine, init_db
    from reelrack.infrastructure.persistence import SQLModelDocumentStore

    engine = init_db(build_engine("sqlite:///reelrack.db"))
    store = SQLModelDocumentStore(engine)
"""

from reelrack.infrastructure.persistence.database import build_engine, init_db
from reelrack.infrastructure.persistence.document_store import SQLModelDocumentStore
from reelrack.infrastructure.persistence.models import CatalogRecordModel

__all__ = [
    "CatalogRecordModel",
    "SQLModelDocumentStore",
    "build_engine",
    "init_db",
]
