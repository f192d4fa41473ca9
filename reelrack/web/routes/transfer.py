"""
Routes d'export et d'import JSON du catalogue.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from ...core.errors import ImportFormatError
from ...core.value_objects.query import CatalogQuery
from ...core.value_objects.session import Session
from ...services.bulk import export_filename
from ...services.catalog_service import CatalogService
from ...services.mirror import RemoteCollectionMirror
from ..deps import get_catalog, get_mirror, get_session
from .titles import parse_query

router = APIRouter(prefix="/api")


@router.get("/export")
async def export_titles(
    mirror: Annotated[RemoteCollectionMirror, Depends(get_mirror)],
    query: Annotated[CatalogQuery, Depends(parse_query)],
):
    """Telecharge la vue courante en fichier JSON."""
    payload = CatalogService.export_json(mirror.snapshot, query)
    return Response(
        content=payload,
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
    )


@router.post("/import")
async def import_titles(
    request: Request,
    catalog: Annotated[CatalogService, Depends(get_catalog)],
    session: Annotated[Session, Depends(get_session)],
):
    """
    Importe le tableau JSON envoye en corps de requete.

    Repond 200 avec le bilan, meme si certaines entrees ont echoue.
    """
    try:
        text = (await request.body()).decode("utf-8")
    except UnicodeDecodeError as e:
        raise ImportFormatError("Le fichier doit etre encode en UTF-8") from e
    report = await catalog.import_json(session, text)
    return {
        "imported": report.imported,
        "total": report.total,
        "failures": [
            {"index": f.index, "title": f.title, "message": f.message}
            for f in report.failures
        ],
    }
