"""
Adaptateurs : implementations concretes des ports et interface CLI.

- http/ : stockage de documents et d'objets distants via httpx
- local/ : stockage d'objets sur le systeme de fichiers
- cli/ : commandes Typer
"""
