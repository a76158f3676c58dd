"""
Suscripciones Realtime de Supabase con cierre explícito.

Cada evento de cambio (INSERT/UPDATE/DELETE) dispara una recarga completa de
la colección y el ReadModelCache se reemplaza entero: cada snapshot es el
conjunto completo de registros que cumplen el filtro.

El cache es eventualmente consistente: tras una escritura propia no hay
garantía de verla hasta el siguiente evento.
"""

import asyncio
import logging
import threading
import time
from typing import Any, AsyncIterator, Callable, Dict, List, Optional
from uuid import uuid4

from supabase import AsyncClient

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[List[Dict[str, Any]]], None]


class ReadModelCache:
    """Copia local de una colección. Nunca se modifica parcialmente."""

    eventually_consistent = True

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: tuple = ()
        self._version = 0
        self._updated_at: Optional[float] = None

    def replace(self, records: List[Dict[str, Any]]) -> None:
        with self._lock:
            self._records = tuple(dict(r) for r in records)
            self._version += 1
            self._updated_at = time.monotonic()

    def snapshot(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [dict(r) for r in self._records]

    @property
    def version(self) -> int:
        return self._version

    @property
    def is_ready(self) -> bool:
        """True tras recibir al menos un snapshot."""
        return self._version > 0

    def age_seconds(self) -> Optional[float]:
        if self._updated_at is None:
            return None
        return time.monotonic() - self._updated_at


class Subscription:
    """
    Handle de una suscripción a una colección.

    Uso:
        async with subscribe(client, "bids", app_id, filters={"tender_id": tid}) as sub:
            async for records in sub.snapshots():
                ...

    Al salir del bloque se elimina el canal aunque haya excepción.
    """

    def __init__(
        self,
        client: AsyncClient,
        collection: str,
        app_id: str,
        filters: Optional[Dict[str, Any]] = None,
        cache: Optional[ReadModelCache] = None,
        on_snapshot: Optional[SnapshotListener] = None,
        order_by: str = "created_at",
    ) -> None:
        self._client = client
        self._collection = collection
        self._app_id = str(app_id)
        self._filters = dict(filters or {})
        self.cache = cache or ReadModelCache()
        self._on_snapshot = on_snapshot
        self._order_by = order_by
        self._channel = None
        self._refresh_task: Optional[asyncio.Task] = None
        self._dirty = False
        self._queue: "asyncio.Queue[List[Dict[str, Any]]]" = asyncio.Queue(maxsize=1)
        self._closed = False

    @property
    def collection(self) -> str:
        return self._collection

    @property
    def is_open(self) -> bool:
        return self._channel is not None and not self._closed

    def _realtime_filter(self) -> str:
        # postgres_changes admite un único filtro; el resto se aplica al recargar.
        if self._filters:
            key, value = next(iter(self._filters.items()))
            return f"{key}=eq.{value}"
        return f"app_id=eq.{self._app_id}"

    async def open(self) -> "Subscription":
        await self._refresh()
        channel = self._client.channel(f"{self._collection}-{self._app_id}-{uuid4().hex[:8]}")
        channel.on_postgres_changes(
            "*",
            schema="public",
            table=self._collection,
            filter=self._realtime_filter(),
            callback=self._on_change,
        )
        self._channel = channel
        await channel.subscribe()
        logger.info("Suscripción abierta a %s (%s)", self._collection, self._realtime_filter())
        return self

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._refresh_task is not None and not self._refresh_task.done():
            self._refresh_task.cancel()
        if self._channel is not None:
            channel, self._channel = self._channel, None
            await self._client.remove_channel(channel)
            logger.info("Suscripción cerrada a %s", self._collection)

    async def __aenter__(self) -> "Subscription":
        try:
            return await self.open()
        except BaseException:
            await self.close()
            raise

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _on_change(self, _payload: Dict[str, Any]) -> None:
        """Callback de Realtime: agrupa ráfagas en una sola recarga."""
        if self._closed:
            return
        if self._refresh_task is not None and not self._refresh_task.done():
            self._dirty = True
            return
        self._refresh_task = asyncio.ensure_future(self._refresh_until_clean())

    async def _refresh_until_clean(self) -> None:
        while True:
            self._dirty = False
            try:
                await self._refresh()
            except Exception:
                logger.error("Error recargando %s tras evento Realtime", self._collection, exc_info=True)
                return
            if not self._dirty or self._closed:
                return

    async def _refresh(self) -> None:
        query = self._client.table(self._collection).select("*").eq("app_id", self._app_id)
        for key, value in self._filters.items():
            query = query.eq(key, value)
        if self._order_by:
            query = query.order(self._order_by)
        response = await query.execute()
        records = list(response.data or [])
        self.cache.replace(records)
        self._publish(records)
        if self._on_snapshot is not None:
            self._on_snapshot(records)

    def _publish(self, records: List[Dict[str, Any]]) -> None:
        # Cada snapshot es completo: si el consumidor va atrasado solo importa el último.
        if self._queue.full():
            self._queue.get_nowait()
        self._queue.put_nowait(records)

    async def snapshots(self) -> AsyncIterator[List[Dict[str, Any]]]:
        """Flujo de snapshots completos hasta que se cierre la suscripción."""
        while not self._closed:
            yield await self._queue.get()


def subscribe(
    client: AsyncClient,
    collection: str,
    app_id: str,
    filters: Optional[Dict[str, Any]] = None,
    cache: Optional[ReadModelCache] = None,
    on_snapshot: Optional[SnapshotListener] = None,
) -> Subscription:
    """Crea el handle (sin abrir). Úsalo con `async with`."""
    return Subscription(client, collection, app_id, filters=filters, cache=cache, on_snapshot=on_snapshot)
