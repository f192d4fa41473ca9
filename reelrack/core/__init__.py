"""
Couche domaine (core).

Contient les entités métier, ports (interfaces abstraites), objets valeur
et la taxonomie d'erreurs. Cette couche n'a AUCUNE dépendance vers
l'infrastructure (adapters, frameworks, BDD).

Sous-packages :
- entities/ : Entités métier (CatalogRecord, MediaKind)
- ports/ : Interfaces abstraites (IDocumentStore, IBlobStorage)
- value_objects/ : Objets valeur immutables (CatalogQuery, RecordPatch, Session...)
"""
