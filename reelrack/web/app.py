"""
Application FastAPI de ReelRack.

Initialise le Container DI, maintient un abonnement unique au catalogue
pendant toute la vie du processus et monte les routes de l'API JSON.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger

from .. import __version__
from ..container import Container
from ..core.errors import (
    AuthorizationDenial,
    CatalogError,
    ImportFormatError,
    RecordNotFound,
    TransportError,
    ValidationError,
)
from .routes.titles import router as titles_router
from .routes.transfer import router as transfer_router

# Attente maximale du premier instantane au demarrage
STARTUP_SNAPSHOT_TIMEOUT = 10.0

_STATUS_BY_ERROR = (
    (ValidationError, 422),
    (AuthorizationDenial, 403),
    (ImportFormatError, 400),
    (RecordNotFound, 404),
    (TransportError, 502),
)


def create_app(container: Optional[Container] = None) -> FastAPI:
    """Construit l'application ; un container peut etre fourni (tests)."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Ouvre l'abonnement au catalogue au demarrage et le ferme a l'arret."""
        app_container = container or Container()
        if app_container.config().backend == "local":
            app_container.database.init()

        mirror = app_container.mirror()
        ready = asyncio.Event()

        def on_change(snapshot) -> None:
            ready.set()

        def on_error(error: TransportError) -> None:
            logger.error(f"Synchronisation du catalogue interrompue: {error}")
            app.state.sync_error = str(error)
            ready.set()

        app.state.container = app_container
        app.state.mirror = mirror
        app.state.sync_error = None
        unsubscribe = mirror.subscribe(on_change, on_error)
        try:
            await asyncio.wait_for(ready.wait(), timeout=STARTUP_SNAPSHOT_TIMEOUT)
        except asyncio.TimeoutError:
            logger.warning("Premier instantane du catalogue non recu au demarrage")

        yield

        unsubscribe()
        await mirror.close()
        if app_container.config().backend == "http":
            await app_container.http_store().close()
            await app_container.http_blob_storage().close()

    app = FastAPI(title="ReelRack", version=__version__, lifespan=lifespan)

    @app.exception_handler(CatalogError)
    async def catalog_error_handler(request: Request, exc: CatalogError) -> JSONResponse:
        status = 500
        for error_type, code in _STATUS_BY_ERROR:
            if isinstance(exc, error_type):
                status = code
                break
        body = {"error": type(exc).__name__, "detail": str(exc)}
        if isinstance(exc, ValidationError):
            body["field"] = exc.field
        return JSONResponse(status_code=status, content=body)

    app.include_router(titles_router)
    app.include_router(transfer_router)
    return app


app = create_app()
