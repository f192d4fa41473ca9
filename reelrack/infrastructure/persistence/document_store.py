"""
Implementation SQLModel du stockage de documents.

Implemente IDocumentStore sur une base SQLite locale. Les operations
synchrones SQLModel sont executees dans l'executor ; watch() pousse un
instantane apres chaque ecriture faite par cette instance et interroge
la base periodiquement pour les ecritures d'autres processus.
"""

import asyncio
import json
from collections.abc import AsyncIterator, Callable
from datetime import datetime, timezone
from functools import partial
from typing import Any, Optional

from loguru import logger
from sqlalchemy import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from reelrack.core.entities.record import CatalogRecord, MediaKind
from reelrack.core.errors import RecordNotFound, TransportError
from reelrack.core.ports.document_store import IDocumentStore
from reelrack.core.value_objects.patch import SERVER_TIMESTAMP, RecordPatch
from reelrack.infrastructure.persistence.models import CatalogRecordModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _to_naive_utc(value: datetime) -> datetime:
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _to_aware(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    return value.replace(tzinfo=timezone.utc)


class SQLModelDocumentStore(IDocumentStore):
    """
    Stockage de documents SQLModel.

    Implemente IDocumentStore avec conversion bidirectionnelle
    entre l'entite CatalogRecord (domaine) et CatalogRecordModel (persistance).
    """

    def __init__(
        self,
        engine: Engine,
        poll_interval: float = 2.0,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """
        Initialise le stockage.

        Args :
            engine : Engine SQLAlchemy (tables deja creees par init_db)
            poll_interval : Intervalle de relecture de watch() en secondes
            clock : Horloge "serveur" des horodatages (UTC aware)
        """
        self._engine = engine
        self._poll_interval = poll_interval
        self._clock = clock
        self._listeners: set[asyncio.Queue] = set()

    def _to_entity(self, model: CatalogRecordModel) -> CatalogRecord:
        """Convertit un modele DB en entite domaine."""
        return CatalogRecord(
            id=model.id,
            title=model.title,
            kind=MediaKind.parse(model.kind),
            year=model.year,
            genres=tuple(model.genres),
            cast_summary=model.cast,
            description=model.description,
            poster_url=model.poster_url,
            trailer_url=model.trailer_url,
            created_by=model.created_by,
            created_at=_to_aware(model.created_at),
            updated_at=_to_aware(model.updated_at),
        )

    def _apply_patch(self, model: CatalogRecordModel, patch: RecordPatch) -> None:
        """Ecrit les champs renseignes du patch dans le modele."""
        now = _to_naive_utc(self._clock())
        for name, value in patch.set_fields().items():
            if name == "created_at" and model.created_at is not None:
                continue  # immuable apres creation
            if value is SERVER_TIMESTAMP:
                value = now
            elif isinstance(value, datetime):
                value = _to_naive_utc(value)

            if name == "kind":
                model.kind = value.value
            elif name == "genres":
                model.genres_json = json.dumps(list(value))
            elif name == "cast_summary":
                model.cast = value
            else:
                setattr(model, name, value)

    # Operations synchrones (executor)

    def _list_sync(self) -> list[CatalogRecord]:
        with Session(self._engine) as session:
            statement = select(CatalogRecordModel).order_by(
                CatalogRecordModel.created_at.desc(), CatalogRecordModel.id
            )
            return [self._to_entity(m) for m in session.exec(statement).all()]

    def _get_sync(self, record_id: str) -> Optional[CatalogRecord]:
        with Session(self._engine) as session:
            model = session.get(CatalogRecordModel, record_id)
            return self._to_entity(model) if model else None

    def _create_sync(self, record_id: str, patch: RecordPatch) -> CatalogRecord:
        with Session(self._engine) as session:
            if session.get(CatalogRecordModel, record_id) is not None:
                raise TransportError(f"Le document {record_id} existe deja")
            model = CatalogRecordModel(id=record_id, title="")
            self._apply_patch(model, patch)
            session.add(model)
            session.commit()
            session.refresh(model)
            return self._to_entity(model)

    def _merge_sync(self, record_id: str, patch: RecordPatch) -> CatalogRecord:
        with Session(self._engine) as session:
            model = session.get(CatalogRecordModel, record_id)
            if model is None:
                raise RecordNotFound(record_id)
            self._apply_patch(model, patch)
            session.add(model)
            session.commit()
            session.refresh(model)
            return self._to_entity(model)

    def _delete_sync(self, record_id: str) -> bool:
        with Session(self._engine) as session:
            model = session.get(CatalogRecordModel, record_id)
            if model is None:
                return False
            session.delete(model)
            session.commit()
            return True

    async def _run(self, func, *args) -> Any:
        """Execute une operation synchrone dans l'executor ; erreurs SQL -> TransportError."""
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, partial(func, *args))
        except SQLAlchemyError as e:
            raise TransportError(f"Erreur de la base locale: {e}", cause=e) from e

    def _notify(self) -> None:
        for queue in self._listeners:
            queue.put_nowait(None)

    # IDocumentStore

    async def list_records(self) -> list[CatalogRecord]:
        return await self._run(self._list_sync)

    async def get(self, record_id: str) -> Optional[CatalogRecord]:
        return await self._run(self._get_sync, record_id)

    async def create(self, record_id: str, patch: RecordPatch) -> CatalogRecord:
        record = await self._run(self._create_sync, record_id, patch)
        self._notify()
        return record

    async def merge_update(self, record_id: str, patch: RecordPatch) -> CatalogRecord:
        record = await self._run(self._merge_sync, record_id, patch)
        self._notify()
        return record

    async def delete(self, record_id: str) -> bool:
        deleted = await self._run(self._delete_sync, record_id)
        if deleted:
            self._notify()
        return deleted

    async def watch(self) -> AsyncIterator[list[CatalogRecord]]:
        """
        Produit un instantane au demarrage, apres chaque ecriture locale
        et a chaque intervalle de polling.
        """
        queue: asyncio.Queue = asyncio.Queue()
        self._listeners.add(queue)
        logger.debug("Abonnement au stockage local")
        try:
            while True:
                yield await self.list_records()
                try:
                    await asyncio.wait_for(queue.get(), timeout=self._poll_interval)
                except asyncio.TimeoutError:
                    pass
                # Regrouper les notifications arrivees entre-temps
                while not queue.empty():
                    queue.get_nowait()
        finally:
            self._listeners.discard(queue)
