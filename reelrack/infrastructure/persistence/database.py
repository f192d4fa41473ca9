"""
Configuration de la base de donnees SQLite du stockage local.

Ce module fournit :
- Engine SQLite configure pour un acces depuis les threads de l'executor
- Fonction d'initialisation des tables

La base de donnees est configuree via REELRACK_DATABASE_URL (defaut: sqlite:///reelrack.db).
"""

from pathlib import Path

from sqlalchemy import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine


def build_engine(database_url: str) -> Engine:
    """
    Cree l'engine SQLAlchemy pour l'URL donnee.

    Cree le repertoire parent des fichiers SQLite. Une base en memoire
    partage une connexion unique entre threads (StaticPool).
    """
    connect_args = {}
    kwargs = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        if ":memory:" in database_url or database_url == "sqlite://":
            kwargs["poolclass"] = StaticPool
        elif database_url.startswith("sqlite:///"):
            db_path = Path(database_url.replace("sqlite:///", "", 1))
            db_path.parent.mkdir(exist_ok=True, parents=True)

    return create_engine(database_url, echo=False, connect_args=connect_args, **kwargs)


def init_db(engine: Engine) -> Engine:
    """
    Initialise la base de donnees en creant les tables manquantes.

    Doit etre appelee une fois au demarrage de l'application.
    """
    # Import des modeles pour enregistrer leurs metadonnees
    from reelrack.infrastructure.persistence import models  # noqa: F401

    SQLModel.metadata.create_all(engine)
    return engine
