"""
Container d'injection de dependances via dependency-injector.

Fournit une gestion centralisee des dependances pour les interfaces CLI et Web.
Le backend de stockage (local SQLite ou HTTP distant) est choisi par
la configuration REELRACK_BACKEND.
"""

from dependency_injector import containers, providers

from .adapters.http.blob_storage import HTTPBlobStorage
from .adapters.http.document_store import HTTPDocumentStore
from .adapters.local.blob_storage import LocalBlobStorage
from .config import Settings
from .infrastructure.persistence.database import build_engine, init_db
from .infrastructure.persistence.document_store import SQLModelDocumentStore
from .services.catalog_service import CatalogService
from .services.coordinator import CatalogMutationCoordinator
from .services.mirror import RemoteCollectionMirror
from .services.uploader import AssetUploader


class Container(containers.DeclarativeContainer):
    """Container DI de l'application.

    Utilisation :
        container = Container()
        container.database.init()  # Backend local : cree les tables une fois
        mirror = container.mirror()
        catalog = container.catalog_service()
    """

    # Configuration - singleton charge une seule fois
    config = providers.Singleton(Settings)

    # Backend local - engine partage, initialisation unique des tables
    engine = providers.Singleton(build_engine, database_url=config.provided.database_url)
    database = providers.Resource(init_db, engine=engine)

    local_store = providers.Singleton(
        SQLModelDocumentStore,
        engine=engine,
        poll_interval=config.provided.poll_interval_seconds,
    )
    local_blob_storage = providers.Singleton(
        LocalBlobStorage,
        root_dir=config.provided.blob_dir,
        public_base_url=config.provided.public_blob_url,
    )

    # Backend HTTP - clients httpx partages (Singleton)
    http_store = providers.Singleton(
        HTTPDocumentStore,
        base_url=config.provided.store_url,
        collection=config.provided.collection,
        token=config.provided.api_token,
        timeout=config.provided.http_timeout_seconds,
        poll_interval=config.provided.poll_interval_seconds,
    )
    http_blob_storage = providers.Singleton(
        HTTPBlobStorage,
        base_url=config.provided.storage_url,
        token=config.provided.api_token,
        timeout=config.provided.http_timeout_seconds,
    )

    # Ports - implementation selon REELRACK_BACKEND
    document_store = providers.Selector(
        config.provided.backend,
        local=local_store,
        http=http_store,
    )
    blob_storage = providers.Selector(
        config.provided.backend,
        local=local_blob_storage,
        http=http_blob_storage,
    )

    # Services
    uploader = providers.Factory(
        AssetUploader,
        storage=blob_storage,
        chunk_size=config.provided.upload_chunk_size,
    )
    coordinator = providers.Factory(
        CatalogMutationCoordinator,
        store=document_store,
        uploader=uploader,
    )
    mirror = providers.Factory(RemoteCollectionMirror, store=document_store)
    catalog_service = providers.Factory(CatalogService, coordinator=coordinator)
