"""
ReelRack - Catalogue partagé de films et séries.

Ce package fournit le coeur de synchronisation et de mutation du catalogue :
miroir en direct de la collection distante, projection filtrée/triée,
envoi des affiches et bandes-annonces, écritures fusionnées.

Architecture : Hexagonale (Ports et Adaptateurs)
- core/ : Couche domaine (entités, ports, objets valeur, erreurs)
- services/ : Couche application (miroir, requêtes, envois, mutations)
- adapters/ : Couche infrastructure (HTTP, stockage local, CLI)
- infrastructure/ : Persistance SQLite locale (SQLModel)
- web/ : API JSON FastAPI
"""

__version__ = "0.1.0"
