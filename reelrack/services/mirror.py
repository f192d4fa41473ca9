"""
Miroir local de la collection distante.

Le miroir s'abonne au flux d'instantanes du stockage de documents et
transmet a chaque abonne la sequence complete et ordonnee des
enregistrements, immediatement puis a chaque modification distante.

Usage:
    mirror = RemoteCollectionMirror(store)
    unsubscribe = mirror.subscribe(on_change, on_error)
    ...
    unsubscribe()  # une seule fois, a la fermeture
"""

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Optional, Union

from loguru import logger

from reelrack.core.entities.record import CatalogRecord
from reelrack.core.errors import TransportError
from reelrack.core.ports.document_store import IDocumentStore

Snapshot = tuple[CatalogRecord, ...]
OnChange = Callable[[Snapshot], Union[None, Awaitable[None]]]
OnError = Callable[[TransportError], Union[None, Awaitable[None]]]
Unsubscribe = Callable[[], None]

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def normalize_snapshot(records: list[CatalogRecord]) -> Snapshot:
    """
    Ordonne un instantane par creation decroissante et retire les doublons d'ID.

    Le tri est stable : a horodatage egal, l'ordre du stockage est conserve.
    En cas d'ID duplique, la premiere occurrence est gardee.
    """
    seen: set[str] = set()
    unique = []
    for record in records:
        if record.id in seen:
            continue
        seen.add(record.id)
        unique.append(record)
    unique.sort(key=lambda r: r.created_at or _EPOCH, reverse=True)
    return tuple(unique)


async def _call(callback: Callable, *args) -> None:
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


class _Subscription:
    """Etat d'un abonnement : callbacks, tache de lecture, drapeau actif."""

    def __init__(self, on_change: OnChange, on_error: Optional[OnError]) -> None:
        self.on_change = on_change
        self.on_error = on_error
        self.active = True
        self.task: Optional[asyncio.Task] = None
        self.last: Optional[Snapshot] = None

    def cancel(self) -> None:
        if not self.active:
            return
        self.active = False
        if self.task is not None and not self.task.done():
            self.task.cancel()


class RemoteCollectionMirror:
    """
    Miroir de la collection du catalogue.

    Modele a instantane complet : chaque notification porte la totalite
    des enregistrements, jamais un diff. Le dernier instantane recu reste
    disponible via snapshot, y compris apres une erreur de transport.

    Les erreurs de transport sont remontees au canal d'erreur de l'abonne
    et terminent l'abonnement : c'est a l'application de se reabonner.
    """

    def __init__(self, store: IDocumentStore) -> None:
        """
        Initialise le miroir.

        Args:
            store: Stockage de documents fournissant le flux d'instantanes
        """
        self._store = store
        self._snapshot: Snapshot = ()
        self._subscriptions: list[_Subscription] = []

    @property
    def snapshot(self) -> Snapshot:
        """Dernier instantane connu (vide tant qu'aucun n'a ete recu)."""
        return self._snapshot

    def subscribe(
        self, on_change: OnChange, on_error: Optional[OnError] = None
    ) -> Unsubscribe:
        """
        S'abonne aux instantanes de la collection.

        Doit etre appele depuis une boucle asyncio en cours d'execution.

        Args:
            on_change: Appele avec l'instantane complet (fonction ou coroutine)
            on_error: Canal d'erreur de transport (journalise si absent)

        Returns:
            Fonction de desabonnement ; apres son appel plus aucun callback n'est emis
        """
        subscription = _Subscription(on_change, on_error)
        loop = asyncio.get_running_loop()
        subscription.task = loop.create_task(self._run(subscription))
        self._subscriptions.append(subscription)

        def unsubscribe() -> None:
            subscription.cancel()
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)
            logger.debug("Desabonnement du miroir")

        return unsubscribe

    async def fetch_once(self) -> Snapshot:
        """
        Attend le premier instantane puis se desabonne.

        Raises:
            TransportError: Si le flux echoue avant le premier instantane
        """
        loop = asyncio.get_running_loop()
        first: asyncio.Future = loop.create_future()

        def on_change(snapshot: Snapshot) -> None:
            if not first.done():
                first.set_result(snapshot)

        def on_error(error: TransportError) -> None:
            if not first.done():
                first.set_exception(error)

        unsubscribe = self.subscribe(on_change, on_error)
        try:
            return await first
        finally:
            unsubscribe()

    async def close(self) -> None:
        """Termine tous les abonnements encore actifs."""
        subscriptions = list(self._subscriptions)
        self._subscriptions.clear()
        for subscription in subscriptions:
            subscription.cancel()
        tasks = [s.task for s in subscriptions if s.task is not None]
        await asyncio.gather(*tasks, return_exceptions=True)

    @staticmethod
    async def _report(subscription: _Subscription, error: TransportError) -> None:
        """Transmet l'erreur qui termine l'abonnement a son canal d'erreur."""
        logger.warning(f"Abonnement interrompu: {error}")
        if subscription.active and subscription.on_error is not None:
            try:
                await _call(subscription.on_error, error)
            except Exception:
                logger.exception("Erreur dans le callback d'erreur du miroir")

    async def _run(self, subscription: _Subscription) -> None:
        """Boucle de lecture du flux pour un abonnement."""
        stream = self._store.watch()
        try:
            async for records in stream:
                if not subscription.active:
                    break
                snapshot = normalize_snapshot(records)
                if snapshot == subscription.last:
                    continue
                subscription.last = snapshot
                self._snapshot = snapshot
                logger.debug(f"Instantane du catalogue: {len(snapshot)} titres")
                try:
                    await _call(subscription.on_change, snapshot)
                except Exception:
                    logger.exception("Erreur dans le callback d'abonnement du miroir")
        except TransportError as error:
            await self._report(subscription, error)
        except Exception as e:
            await self._report(subscription, TransportError(f"Flux du catalogue en echec: {e!r}", cause=e))
        finally:
            subscription.active = False
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()
