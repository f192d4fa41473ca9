"""
Fixtures pytest partagees pour les tests ReelRack.

Ce module contient les fixtures communes utilisees dans les tests:
- Settings de test avec chemins temporaires
- Stockage de documents SQLModel en memoire (horloge deterministe)
- Stockage d'objets en memoire instrumente (concurrence, echecs, abandons)
- Sessions administrateur / visiteur et fabrique d'enregistrements
"""

import asyncio
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Optional

import pytest

from reelrack.config import Settings
from reelrack.core.entities.record import CatalogRecord, MediaKind
from reelrack.core.errors import TransportError
from reelrack.core.ports.blob_storage import IBlobStorage, IUploadSession
from reelrack.core.value_objects.patch import RecordPatch
from reelrack.core.value_objects.session import Identity, Session
from reelrack.infrastructure.persistence.database import build_engine, init_db
from reelrack.infrastructure.persistence.document_store import SQLModelDocumentStore

ADMIN_UID = "admin-uid"
T0 = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


class StepClock:
    """Horloge deterministe : chaque appel avance d'une minute."""

    def __init__(self, start: datetime = T0) -> None:
        self.current = start - timedelta(minutes=1)

    def __call__(self) -> datetime:
        self.current += timedelta(minutes=1)
        return self.current


class CountingStore(SQLModelDocumentStore):
    """Stockage SQLModel qui compte les ecritures."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.creates: list[tuple[str, RecordPatch]] = []
        self.merges: list[tuple[str, RecordPatch]] = []
        self.gets: list[str] = []

    async def get(self, record_id: str) -> Optional[CatalogRecord]:
        self.gets.append(record_id)
        return await super().get(record_id)

    async def create(self, record_id: str, patch: RecordPatch) -> CatalogRecord:
        self.creates.append((record_id, patch))
        return await super().create(record_id, patch)

    async def merge_update(self, record_id: str, patch: RecordPatch) -> CatalogRecord:
        self.merges.append((record_id, patch))
        return await super().merge_update(record_id, patch)


class MemoryUploadSession(IUploadSession):
    """Session d'envoi en memoire."""

    def __init__(self, storage: "MemoryBlobStorage", path: str, total: int) -> None:
        self._storage = storage
        self.path = path
        self.total = total
        self.buffer = bytearray()

    async def write_chunk(self, chunk: bytes, offset: int) -> None:
        storage = self._storage
        storage.in_flight += 1
        storage.max_in_flight = max(storage.max_in_flight, storage.in_flight)
        try:
            await asyncio.sleep(0.01)
            if any(self.path.startswith(prefix) for prefix in storage.fail_on):
                raise TransportError(f"quota depasse pour {self.path}")
            self.buffer.extend(chunk)
        finally:
            storage.in_flight -= 1

    async def finalize(self) -> str:
        self._storage.objects[self.path] = bytes(self.buffer)
        return f"memory://{self.path}"

    async def abort(self) -> None:
        self._storage.aborted.append(self.path)


class MemoryBlobStorage(IBlobStorage):
    """
    Stockage d'objets en memoire.

    fail_on : prefixes de chemin dont l'envoi echoue au premier morceau
    max_in_flight : nombre maximal de morceaux envoyes simultanement
    """

    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}
        self.opened: list[str] = []
        self.aborted: list[str] = []
        self.fail_on: set[str] = set()
        self.in_flight = 0
        self.max_in_flight = 0

    async def open_session(
        self, path: str, total_bytes: int, content_type: str
    ) -> MemoryUploadSession:
        self.opened.append(path)
        return MemoryUploadSession(self, path, total_bytes)


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """
    Settings de test avec chemins temporaires.

    Utilise tmp_path de pytest pour isoler base SQLite, fichiers et logs.
    """
    return Settings(
        backend="local",
        database_url=f"sqlite:///{tmp_path / 'data' / 'reelrack.db'}",
        blob_dir=tmp_path / "blobs",
        admin_uid=ADMIN_UID,
        poll_interval_seconds=0.05,
        upload_chunk_size=1024,
        log_file=tmp_path / "logs" / "reelrack.log",
    )


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def engine():
    """Engine SQLite en memoire avec tables creees."""
    return init_db(build_engine("sqlite://"))


@pytest.fixture
def store(engine, clock) -> CountingStore:
    """Stockage de documents en memoire, horloge deterministe."""
    return CountingStore(engine, poll_interval=10.0, clock=clock)


@pytest.fixture
def blob_storage() -> MemoryBlobStorage:
    return MemoryBlobStorage()


@pytest.fixture
def admin_session() -> Session:
    return Session(identity=Identity(ADMIN_UID), is_admin=True)


@pytest.fixture
def viewer_session() -> Session:
    return Session(identity=Identity("viewer-uid"), is_admin=False)


@pytest.fixture
def make_record() -> Callable[..., CatalogRecord]:
    """
    Fabrique d'enregistrements de test.

    Usage:
        record = make_record("Dune", year=2021, genres=("Sci-Fi",))
    """
    counter = iter(range(1, 10_000))

    def factory(title: str, **overrides) -> CatalogRecord:
        index = next(counter)
        values = dict(
            id=f"rec-{index}",
            title=title,
            kind=MediaKind.MOVIE,
            year=2000,
            created_at=T0 + timedelta(minutes=index),
        )
        values.update(overrides)
        return CatalogRecord(**values)

    return factory


@pytest.fixture
def container(test_settings):
    """Container DI reel (backend local) configure avec les settings de test."""
    from dependency_injector import providers

    from reelrack.container import Container

    app_container = Container()
    app_container.config.override(providers.Object(test_settings))
    yield app_container
    app_container.config.reset_override()
