"""
Routes JSON du catalogue : consultation (ouverte) et mutations (admin).

La consultation est servie depuis l'instantane du miroir maintenu par
l'application ; les mutations passent par CatalogService.
"""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import Response

from ...core.value_objects.asset import AssetBundle, LocalAsset
from ...core.value_objects.draft import CatalogDraft
from ...core.value_objects.query import CatalogQuery
from ...core.value_objects.session import Session
from ...services.catalog_service import CatalogService
from ...services.mirror import RemoteCollectionMirror
from ...utils.wire import record_to_wire
from ..deps import get_catalog, get_mirror, get_session

router = APIRouter(prefix="/api/titles")


def parse_query(
    q: Optional[str] = None,
    kind: str = "all",
    genre: str = "all",
    sort: str = "year-desc",
) -> CatalogQuery:
    """Requete de consultation depuis les parametres d'URL (400 si invalide)."""
    try:
        return CatalogQuery.from_params(text=q, kind=kind, genre=genre, sort=sort)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


async def _to_asset(upload: Optional[UploadFile]) -> Optional[LocalAsset]:
    """Fichier recu -> LocalAsset en memoire ; None si aucun fichier envoye."""
    if upload is None or not upload.filename:
        return None
    data = await upload.read()
    return LocalAsset(filename=upload.filename, data=data, content_type=upload.content_type)


@router.get("")
async def list_titles(
    request: Request,
    mirror: Annotated[RemoteCollectionMirror, Depends(get_mirror)],
    query: Annotated[CatalogQuery, Depends(parse_query)],
):
    """Vue filtree et triee du dernier instantane du catalogue."""
    snapshot = mirror.snapshot
    view = CatalogService.view(snapshot, query)
    return {
        "count": len(view),
        "total": len(snapshot),
        "syncError": request.app.state.sync_error,
        "titles": [record_to_wire(r) for r in view],
    }


@router.get("/{record_id}")
async def get_title(
    record_id: str,
    mirror: Annotated[RemoteCollectionMirror, Depends(get_mirror)],
):
    for record in mirror.snapshot:
        if record.id == record_id:
            return record_to_wire(record)
    raise HTTPException(status_code=404, detail=f"Titre introuvable: {record_id}")


@router.post("", status_code=201)
async def create_title(
    catalog: Annotated[CatalogService, Depends(get_catalog)],
    session: Annotated[Session, Depends(get_session)],
    title: Annotated[str, Form()] = "",
    year: Annotated[str, Form()] = "",
    kind: Annotated[str, Form()] = "movie",
    genres: Annotated[Optional[list[str]], Form()] = None,
    cast: Annotated[str, Form()] = "",
    description: Annotated[str, Form()] = "",
    poster: Annotated[Optional[UploadFile], File()] = None,
    trailer: Annotated[Optional[UploadFile], File()] = None,
):
    """Cree un titre, avec affiche et bande-annonce optionnelles."""
    draft = CatalogDraft(
        title=title,
        kind=kind,
        year=year,
        genres=tuple(genres or ()),
        cast_summary=cast,
        description=description,
    )
    assets = AssetBundle(poster=await _to_asset(poster), trailer=await _to_asset(trailer))
    saved = await catalog.save(session, draft, assets)
    return record_to_wire(saved)


@router.patch("/{record_id}")
async def update_title(
    record_id: str,
    catalog: Annotated[CatalogService, Depends(get_catalog)],
    session: Annotated[Session, Depends(get_session)],
    title: Annotated[Optional[str], Form()] = None,
    year: Annotated[Optional[str], Form()] = None,
    kind: Annotated[Optional[str], Form()] = None,
    genres: Annotated[Optional[list[str]], Form()] = None,
    cast: Annotated[Optional[str], Form()] = None,
    description: Annotated[Optional[str], Form()] = None,
    poster: Annotated[Optional[UploadFile], File()] = None,
    trailer: Annotated[Optional[UploadFile], File()] = None,
):
    """Modifie un titre ; les champs absents du formulaire sont conserves."""
    changes = dict(
        title=title,
        year=year,
        kind=kind,
        genres=tuple(genres) if genres else None,
        cast_summary=cast,
        description=description,
    )
    assets = AssetBundle(poster=await _to_asset(poster), trailer=await _to_asset(trailer))
    saved = await catalog.edit(session, record_id, changes, assets)
    return record_to_wire(saved)


@router.delete("/{record_id}", status_code=204)
async def delete_title(
    record_id: str,
    catalog: Annotated[CatalogService, Depends(get_catalog)],
    session: Annotated[Session, Depends(get_session)],
):
    if not await catalog.delete(session, record_id):
        raise HTTPException(status_code=404, detail=f"Titre introuvable: {record_id}")
    return Response(status_code=204)
