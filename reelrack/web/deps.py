"""
Dépendances partagées de l'API web.

L'identité de l'appelant est lue dans l'en-tête X-User-Id, posé par le
fournisseur d'identité en amont ; l'API lui fait confiance.
"""

from typing import Annotated, Optional

from fastapi import Depends, Header, Request

from ..container import Container
from ..core.value_objects.session import Identity, Session
from ..services.catalog_service import CatalogService
from ..services.mirror import RemoteCollectionMirror


def get_container(request: Request) -> Container:
    return request.app.state.container


def get_mirror(request: Request) -> RemoteCollectionMirror:
    return request.app.state.mirror


def get_catalog(container: Annotated[Container, Depends(get_container)]) -> CatalogService:
    return container.catalog_service()


def get_session(
    container: Annotated[Container, Depends(get_container)],
    x_user_id: Annotated[Optional[str], Header()] = None,
) -> Session:
    """Session de la requête, reconstruite à chaque appel depuis l'identité fournie."""
    identity = Identity(x_user_id) if x_user_id else None
    return Session.for_identity(identity, container.config().admin_uid)
