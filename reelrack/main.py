"""
Point d'entrée CLI de ReelRack.

Initialise le container DI, configure le logging et fournit les commandes CLI.
"""

from typing import Annotated

import typer
from loguru import logger

from . import __version__
from .adapters.cli.commands import (
    add,
    delete,
    edit,
    export,
    import_catalog,
    list_titles,
    watch,
)
from .config import Settings
from .container import Container
from .logging_config import configure_logging

app = typer.Typer(
    name="reelrack",
    help="Catalogue partagé de films et séries",
)
container = Container()

# Consultation
app.command(name="list")(list_titles)
app.command()(watch)

# Administration
app.command()(add)
app.command()(edit)
app.command()(delete)

# Export / import
app.command()(export)
# Note: "import" est un mot reserve Python, donc on utilise name= explicitement
app.command(name="import")(import_catalog)


def get_config() -> Settings:
    """Récupère les paramètres de l'application depuis le container DI."""
    return container.config()


@app.command()
def info() -> None:
    """Affiche la configuration actuelle."""
    config = get_config()
    logger.info("Configuration ReelRack")
    typer.echo(f"Backend : {config.backend}")
    if config.backend == "local":
        typer.echo(f"Base de données : {config.database_url}")
        typer.echo(f"Fichiers : {config.blob_dir}")
    else:
        typer.echo(f"Documents : {config.store_url}")
        typer.echo(f"Stockage : {config.storage_url}")
    typer.echo(f"Collection : {config.collection}")
    typer.echo(f"Administrateur : {'configuré' if config.admin_enabled else 'aucun'}")
    typer.echo(f"Niveau de log : {config.log_level}")


@app.command()
def version() -> None:
    """Affiche les informations de version."""
    typer.echo(f"ReelRack v{__version__}")


@app.command()
def serve(
    host: Annotated[str, typer.Option(help="Adresse d'écoute")] = "127.0.0.1",
    port: Annotated[int, typer.Option(help="Port d'écoute")] = 8000,
    reload: Annotated[bool, typer.Option(help="Rechargement automatique")] = False,
) -> None:
    """Lance l'API web ReelRack."""
    import uvicorn

    typer.echo(f"Démarrage du serveur sur {host}:{port}")
    # log_config=None : uvicorn garde la redirection vers loguru
    uvicorn.run("reelrack.web.app:app", host=host, port=port, reload=reload, log_config=None)


def main() -> None:
    """Point d'entrée de l'application."""
    settings = container.config()
    configure_logging(settings)

    logger.info(f"Démarrage de ReelRack v{__version__} (backend {settings.backend})")

    app()


if __name__ == "__main__":
    main()
