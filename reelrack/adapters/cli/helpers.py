"""
Utilitaires partages pour les commandes CLI de ReelRack.

Ce module fournit :
- console : instance Rich Console partagee
- suppress_loguru : context manager pour desactiver/reactiver les logs loguru
- with_container : decorateur injectant un container initialise
- build_session : session utilisateur depuis l'uid fourni
- render_records : tableau Rich d'une vue du catalogue
"""

from contextlib import contextmanager
from functools import wraps
from typing import Iterable, Optional

from loguru import logger as loguru_logger
from rich.console import Console
from rich.table import Table

from reelrack.container import Container
from reelrack.core.entities.record import CatalogRecord, MediaKind
from reelrack.core.value_objects.session import Identity, Session
from reelrack.config import Settings

console = Console()


@contextmanager
def suppress_loguru():
    """
    Context manager pour desactiver les logs loguru pendant l'affichage Rich.

    Usage:
        with suppress_loguru():
            console.print(...)
    """
    loguru_logger.disable("reelrack")
    try:
        yield
    finally:
        loguru_logger.enable("reelrack")


async def _close_clients(container: Container) -> None:
    """Ferme les clients HTTP crees pendant la commande."""
    if container.config().backend != "http":
        return
    await container.http_store().close()
    await container.http_blob_storage().close()


def with_container():
    """
    Decorateur qui injecte un container initialise en premier argument.

    Initialise la base locale si le backend est "local" et ferme
    les clients HTTP a la sortie.

    Usage:
        @with_container()
        async def my_command(container, ...):
            config = container.config()
    """
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            container = Container()
            if container.config().backend == "local":
                container.database.init()
            try:
                return await func(container, *args, **kwargs)
            finally:
                await _close_clients(container)
        return wrapper
    return decorator


def build_session(settings: Settings, uid: Optional[str]) -> Session:
    """Session de la commande : uid explicite, sinon REELRACK_USER_UID."""
    uid = uid or settings.user_uid
    identity = Identity(uid) if uid else None
    return Session.for_identity(identity, settings.admin_uid)


def render_records(records: Iterable[CatalogRecord], title: str = "Catalogue") -> Table:
    """Construit le tableau Rich d'une vue du catalogue."""
    table = Table(title=title)
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Titre", style="bold")
    table.add_column("Type")
    table.add_column("Annee", justify="right")
    table.add_column("Genres")
    table.add_column("Affiche", justify="center")
    table.add_column("B.-A.", justify="center")

    for record in records:
        table.add_row(
            (record.id or "")[:8],
            record.title,
            "Film" if record.kind is MediaKind.MOVIE else "Serie",
            str(record.year) if record.year else "",
            ", ".join(record.genres),
            "[green]oui[/green]" if record.has_poster else "-",
            "[green]oui[/green]" if record.has_trailer else "-",
        )
    return table
