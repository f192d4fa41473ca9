"""
Commandes CLI du catalogue (list, watch, add, edit, delete, export, import).

Chaque commande synchrone lance son implementation async via asyncio.run().
Les erreurs du catalogue sont affichees en rouge et terminent la commande
avec le code 1.
"""

import asyncio
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn

from reelrack.adapters.cli.helpers import (
    build_session,
    console,
    render_records,
    suppress_loguru,
    with_container,
)
from reelrack.core.errors import (
    AuthorizationDenial,
    CatalogError,
    ImportFormatError,
    ValidationError,
)
from reelrack.core.value_objects.asset import AssetBundle, LocalAsset
from reelrack.core.value_objects.draft import CatalogDraft
from reelrack.core.value_objects.query import CatalogQuery
from reelrack.services.bulk import export_filename

UidOption = Annotated[
    Optional[str],
    typer.Option("--as-uid", help="uid de l'utilisateur connecte (defaut: REELRACK_USER_UID)"),
]
TextOption = Annotated[Optional[str], typer.Option("--query", "-q", help="Texte recherche")]
KindOption = Annotated[str, typer.Option("--kind", help="all, movie ou series")]
GenreOption = Annotated[str, typer.Option("--genre", help="all ou un genre")]
SortOption = Annotated[
    str, typer.Option("--sort", help="year-desc, year-asc, title-asc, title-desc")
]


def _fail(error: Exception) -> None:
    """Affiche une erreur du catalogue et termine la commande."""
    if isinstance(error, ValidationError):
        console.print(f"[red]Saisie invalide ({error.field}):[/red] {error}")
    elif isinstance(error, AuthorizationDenial):
        console.print(f"[red]Refuse:[/red] {error}")
    elif isinstance(error, ImportFormatError):
        console.print(f"[red]Import impossible:[/red] {error}")
    else:
        console.print(f"[red]Erreur:[/red] {error}")
    raise typer.Exit(code=1)


def _build_query(q, kind, genre, sort) -> CatalogQuery:
    try:
        return CatalogQuery.from_params(text=q, kind=kind, genre=genre, sort=sort)
    except ValueError as e:
        console.print(f"[red]Requete invalide:[/red] {e}")
        raise typer.Exit(code=1)


def _build_assets(poster: Optional[Path], trailer: Optional[Path]) -> AssetBundle:
    for path in (poster, trailer):
        if path is not None and not path.expanduser().is_file():
            console.print(f"[red]Erreur:[/red] Fichier introuvable: {path}")
            raise typer.Exit(code=1)
    return AssetBundle(
        poster=LocalAsset.from_path(poster) if poster else None,
        trailer=LocalAsset.from_path(trailer) if trailer else None,
    )


# ============================================================================
# Consultation
# ============================================================================


def list_titles(
    q: TextOption = None,
    kind: KindOption = "all",
    genre: GenreOption = "all",
    sort: SortOption = "year-desc",
) -> None:
    """Affiche la vue filtree et triee du catalogue."""
    query = _build_query(q, kind, genre, sort)
    asyncio.run(_list_titles_async(query))


@with_container()
async def _list_titles_async(container, query: CatalogQuery) -> None:
    """Implementation async de la commande list."""
    mirror = container.mirror()
    try:
        snapshot = await mirror.fetch_once()
    except CatalogError as e:
        _fail(e)

    view = container.catalog_service().view(snapshot, query)
    with suppress_loguru():
        if not view:
            console.print("[dim]Aucun titre.[/dim]")
            return
        console.print(render_records(view, title=f"Catalogue ({len(view)}/{len(snapshot)})"))


def watch(
    q: TextOption = None,
    kind: KindOption = "all",
    genre: GenreOption = "all",
    sort: SortOption = "year-desc",
) -> None:
    """Affiche la vue du catalogue et la rafraichit a chaque modification distante."""
    query = _build_query(q, kind, genre, sort)
    try:
        asyncio.run(_watch_async(query))
    except KeyboardInterrupt:
        console.print("\n[dim]Fin de la synchronisation.[/dim]")


@with_container()
async def _watch_async(container, query: CatalogQuery) -> None:
    """Implementation async de la commande watch."""
    mirror = container.mirror()
    catalog = container.catalog_service()
    stopped = asyncio.Event()
    failure: list[CatalogError] = []

    def on_change(snapshot) -> None:
        view = catalog.view(snapshot, query)
        console.clear()
        console.print(render_records(view, title=f"Catalogue ({len(view)}/{len(snapshot)})"))

    def on_error(error: CatalogError) -> None:
        failure.append(error)
        stopped.set()

    unsubscribe = mirror.subscribe(on_change, on_error)
    try:
        await stopped.wait()
    finally:
        unsubscribe()

    if failure:
        _fail(failure[0])


# ============================================================================
# Administration
# ============================================================================


async def _with_upload_progress(action):
    """Execute action(on_progress) en affichant la progression des envois."""
    with Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
        transient=True,
    ) as progress:
        tasks: dict[str, int] = {}

        def on_progress(filename: str, pct: int) -> None:
            if filename not in tasks:
                tasks[filename] = progress.add_task(f"[cyan]Envoi de {filename}", total=100)
            progress.update(tasks[filename], completed=pct)

        return await action(on_progress)


def add(
    title: Annotated[str, typer.Option("--title", help="Titre")],
    year: Annotated[str, typer.Option("--year", help="Annee de sortie")],
    kind: Annotated[str, typer.Option("--kind", help="movie ou series")] = "movie",
    genres: Annotated[
        Optional[list[str]], typer.Option("--genre", help="Genre (option repetable)")
    ] = None,
    cast: Annotated[str, typer.Option("--cast", help="Casting principal")] = "",
    description: Annotated[str, typer.Option("--description", help="Synopsis")] = "",
    poster: Annotated[Optional[Path], typer.Option("--poster", help="Image d'affiche")] = None,
    trailer: Annotated[
        Optional[Path], typer.Option("--trailer", help="Video de bande-annonce")
    ] = None,
    as_uid: UidOption = None,
) -> None:
    """Ajoute un titre au catalogue (admin)."""
    draft = CatalogDraft(
        title=title,
        kind=kind,
        year=year,
        genres=tuple(genres or ()),
        cast_summary=cast,
        description=description,
    )
    asyncio.run(_add_async(draft, _build_assets(poster, trailer), as_uid))


@with_container()
async def _add_async(container, draft: CatalogDraft, assets: AssetBundle, as_uid) -> None:
    """Implementation async de la commande add."""
    session = build_session(container.config(), as_uid)
    catalog = container.catalog_service()
    try:
        saved = await _with_upload_progress(
            lambda on_progress: catalog.save(session, draft, assets, on_progress)
        )
    except CatalogError as e:
        _fail(e)
    console.print(f"[green]Ajoute au catalogue:[/green] {saved.title} ({saved.year}) [dim]{saved.id}[/dim]")


def edit(
    record_id: Annotated[str, typer.Argument(help="ID du titre")],
    title: Annotated[Optional[str], typer.Option("--title")] = None,
    year: Annotated[Optional[str], typer.Option("--year")] = None,
    kind: Annotated[Optional[str], typer.Option("--kind")] = None,
    genres: Annotated[
        Optional[list[str]], typer.Option("--genre", help="Remplace les genres (repetable)")
    ] = None,
    cast: Annotated[Optional[str], typer.Option("--cast")] = None,
    description: Annotated[Optional[str], typer.Option("--description")] = None,
    poster: Annotated[Optional[Path], typer.Option("--poster")] = None,
    trailer: Annotated[Optional[Path], typer.Option("--trailer")] = None,
    as_uid: UidOption = None,
) -> None:
    """Modifie un titre ; les champs non fournis sont conserves (admin)."""
    changes = dict(
        title=title,
        year=year,
        kind=kind,
        genres=tuple(genres) if genres else None,
        cast_summary=cast,
        description=description,
    )
    asyncio.run(_edit_async(record_id, changes, _build_assets(poster, trailer), as_uid))


@with_container()
async def _edit_async(container, record_id: str, changes: dict, assets, as_uid) -> None:
    """Implementation async de la commande edit."""
    session = build_session(container.config(), as_uid)
    catalog = container.catalog_service()
    try:
        saved = await _with_upload_progress(
            lambda on_progress: catalog.edit(session, record_id, changes, assets, on_progress)
        )
    except CatalogError as e:
        _fail(e)
    console.print(f"[green]Modifications enregistrees:[/green] {saved.title} ({saved.year})")


def delete(
    record_id: Annotated[str, typer.Argument(help="ID du titre")],
    as_uid: UidOption = None,
) -> None:
    """Supprime un titre du catalogue (admin)."""
    asyncio.run(_delete_async(record_id, as_uid))


@with_container()
async def _delete_async(container, record_id: str, as_uid) -> None:
    """Implementation async de la commande delete."""
    session = build_session(container.config(), as_uid)
    try:
        deleted = await container.catalog_service().delete(session, record_id)
    except CatalogError as e:
        _fail(e)
    if deleted:
        console.print(f"[green]Supprime:[/green] {record_id}")
    else:
        console.print(f"[yellow]Titre deja absent:[/yellow] {record_id}")


# ============================================================================
# Export / import JSON
# ============================================================================


def export(
    output: Annotated[
        Optional[Path], typer.Option("--output", "-o", help="Fichier de sortie")
    ] = None,
    q: TextOption = None,
    kind: KindOption = "all",
    genre: GenreOption = "all",
    sort: SortOption = "year-desc",
) -> None:
    """Exporte la vue courante en JSON."""
    query = _build_query(q, kind, genre, sort)
    asyncio.run(_export_async(output or Path(export_filename()), query))


@with_container()
async def _export_async(container, output: Path, query: CatalogQuery) -> None:
    """Implementation async de la commande export."""
    try:
        snapshot = await container.mirror().fetch_once()
    except CatalogError as e:
        _fail(e)
    payload = container.catalog_service().export_json(snapshot, query)
    output.write_text(payload, encoding="utf-8")
    console.print(f"[green]Export ecrit:[/green] {output}")


def import_catalog(
    source: Annotated[Path, typer.Argument(help="Fichier JSON (tableau de titres)")],
    as_uid: UidOption = None,
) -> None:
    """Importe un tableau JSON de titres (admin)."""
    if not source.is_file():
        console.print(f"[red]Erreur:[/red] Fichier introuvable: {source}")
        raise typer.Exit(code=1)
    asyncio.run(_import_async(source.read_text(encoding="utf-8"), as_uid))


@with_container()
async def _import_async(container, text: str, as_uid) -> None:
    """Implementation async de la commande import."""
    session = build_session(container.config(), as_uid)
    try:
        report = await container.catalog_service().import_json(session, text)
    except CatalogError as e:
        _fail(e)

    console.print(f"[green]Importes:[/green] {len(report.imported)}/{report.total}")
    for failure in report.failures:
        console.print(f"  [red]#{failure.index}[/red] {failure.title or '?'}: {failure.message}")
    if not report.ok:
        raise typer.Exit(code=1)
