"""
Feed en vivo para la UI.

Streamlit es síncrono: las suscripciones Realtime (async) viven en un hilo
propio con su bucle asyncio. Las vistas leen los ReadModelCache; mientras no
hayan recibido el primer snapshot, leen directamente del servicio.
"""

import asyncio
import logging
import threading
from typing import List, Optional

from backend.config import Settings
from backend.database import close_async_supabase_client, create_async_supabase_client
from backend.models import Bid, ChatMessage, TenderStatus, TenderSummary
from backend.realtime import ReadModelCache, Subscription, subscribe
from backend.services.ranking import rank_bids
from backend.services.tenders_service import summarize_tenders

logger = logging.getLogger(__name__)


class LiveFeed:
    """
    Suscripciones de una sesión: tenders y bids siempre, y el chat de la
    licitación abierta en el detalle (una a la vez). Parada explícita con stop().
    """

    def __init__(
        self,
        settings: Settings,
        access_token: Optional[str] = None,
        refresh_token: Optional[str] = None,
    ) -> None:
        self._settings = settings
        self._access_token = access_token
        self._refresh_token = refresh_token
        self.tenders = ReadModelCache()
        self.bids = ReadModelCache()
        self.chat = ReadModelCache()
        self.error: Optional[BaseException] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._stop_event: Optional[asyncio.Event] = None
        self._chat_changed: Optional[asyncio.Event] = None
        self._thread: Optional[threading.Thread] = None
        self._client = None
        # Licitación cuyo chat se quiere (hilo de la UI) y la que está suscrita (bucle)
        self._chat_tender_id: Optional[str] = None
        self._chat_subscription: Optional[Subscription] = None
        self._chat_subscribed_to: Optional[str] = None

    @property
    def is_ready(self) -> bool:
        return self.error is None and self.tenders.is_ready and self.bids.is_ready

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> "LiveFeed":
        if self.is_running:
            return self
        self._thread = threading.Thread(target=self._run, name="tenderbid-live", daemon=True)
        self._thread.start()
        return self

    def stop(self, timeout: float = 5.0) -> None:
        if self._loop is not None and self._stop_event is not None:
            self._loop.call_soon_threadsafe(self._stop_event.set)
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None

    # ----- Chat de la licitación en pantalla -----

    def watch_chat(self, tender_id: str) -> None:
        """Suscribe el chat de esta licitación y suelta el de la anterior."""
        tender_id = str(tender_id)
        if tender_id == self._chat_tender_id:
            return
        self.chat = ReadModelCache()
        self._chat_tender_id = tender_id
        self._notify_chat_change()

    def unwatch_chat(self) -> None:
        if self._chat_tender_id is None:
            return
        self._chat_tender_id = None
        self._notify_chat_change()

    def _notify_chat_change(self) -> None:
        # Sin bucle todavía: _main sincroniza el chat al arrancar
        if self._loop is not None and self._chat_changed is not None:
            self._loop.call_soon_threadsafe(self._chat_changed.set)

    def chat_messages(self, tender_id: str) -> Optional[List[ChatMessage]]:
        """Mensajes desde el cache, o None si ese chat aún no tiene snapshot."""
        cache = self.chat
        if self.error is not None or self._chat_tender_id != str(tender_id) or not cache.is_ready:
            return None
        messages = [ChatMessage.model_validate(r) for r in cache.snapshot()]
        return sorted(messages, key=lambda m: m.created_at)

    async def _sync_chat(self) -> None:
        wanted, cache = self._chat_tender_id, self.chat
        if wanted == self._chat_subscribed_to:
            return
        await self._close_chat()
        if wanted is None:
            return
        subscription = subscribe(
            self._client,
            "chat_messages",
            self._settings.app_id,
            filters={"tender_id": wanted},
            cache=cache,
        )
        try:
            await subscription.open()
        except Exception:
            await subscription.close()
            logger.error("No se pudo suscribir el chat de %s; se leerá del servicio", wanted, exc_info=True)
            return
        self._chat_subscription = subscription
        self._chat_subscribed_to = wanted

    async def _close_chat(self) -> None:
        subscription, self._chat_subscription = self._chat_subscription, None
        self._chat_subscribed_to = None
        if subscription is not None:
            await subscription.close()

    async def _chat_worker(self) -> None:
        while True:
            await self._sync_chat()
            await self._chat_changed.wait()
            self._chat_changed.clear()

    # ----- Bucle del hilo -----

    def _run(self) -> None:
        try:
            asyncio.run(self._main())
        except Exception as e:
            self.error = e
            logger.error("Feed en vivo detenido por error", exc_info=True)

    async def _main(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._stop_event = asyncio.Event()
        self._chat_changed = asyncio.Event()
        self._client = client = await create_async_supabase_client(self._settings)
        try:
            if self._access_token:
                await client.auth.set_session(self._access_token, self._refresh_token or "")
            app_id = self._settings.app_id
            async with subscribe(client, "tenders", app_id, cache=self.tenders):
                async with subscribe(client, "bids", app_id, cache=self.bids):
                    chat_task = asyncio.ensure_future(self._chat_worker())
                    try:
                        await self._stop_event.wait()
                    finally:
                        chat_task.cancel()
                        await asyncio.gather(chat_task, return_exceptions=True)
                        await self._close_chat()
        finally:
            await close_async_supabase_client(client)

    # ----- Lecturas sobre el cache (eventualmente consistentes) -----

    def tender_summaries(
        self,
        status: Optional[TenderStatus] = None,
        client_id: Optional[str] = None,
    ) -> List[TenderSummary]:
        return summarize_tenders(self.tenders.snapshot(), self.bids.snapshot(), status=status, client_id=client_id)

    def ranked_bids(self, tender_id: str, pending_only: bool = False) -> List[Bid]:
        bids = [Bid.model_validate(r) for r in self.bids.snapshot()]
        bids.sort(key=lambda b: b.created_at)
        return rank_bids(bids, tender_id, pending_only=pending_only)
