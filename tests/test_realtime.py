"""Suscripciones Realtime con un AsyncClient simulado; cada test corre su propio bucle."""

import asyncio
import time
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from backend.config import Settings
from backend.realtime import ReadModelCache, subscribe
from src.logic.live import LiveFeed


def async_client(rows):
    """Cliente cuya consulta devuelve en cada execute() el contenido actual de `rows`."""
    client = MagicMock()
    query = MagicMock()
    for method in ("select", "eq", "order"):
        getattr(query, method).return_value = query
    query.execute = AsyncMock(side_effect=lambda: SimpleNamespace(data=list(rows)))
    client.table.return_value = query
    channel = MagicMock()
    channel.subscribe = AsyncMock()
    client.channel.return_value = channel
    client.remove_channel = AsyncMock()
    client.realtime.close = AsyncMock()
    client.realtime.set_auth = AsyncMock()
    client.auth.set_session = AsyncMock()
    return client, query, channel


class TestReadModelCache:
    def test_reemplazo_completo(self):
        cache = ReadModelCache()
        assert not cache.is_ready
        assert cache.age_seconds() is None

        cache.replace([{"id": 1}, {"id": 2}])
        cache.replace([{"id": 3}])
        assert cache.snapshot() == [{"id": 3}]
        assert cache.version == 2
        assert cache.is_ready
        assert ReadModelCache.eventually_consistent

    def test_snapshot_es_copia(self):
        cache = ReadModelCache()
        cache.replace([{"id": 1}])
        cache.snapshot()[0]["id"] = 99
        assert cache.snapshot() == [{"id": 1}]


class TestSubscription:
    def test_snapshot_inicial_y_cierre(self):
        rows = [{"id": "t1"}]
        client, query, channel = async_client(rows)
        seen = []

        async def run():
            async with subscribe(client, "tenders", "app-1", on_snapshot=seen.append) as sub:
                assert sub.is_open
                first = await sub.snapshots().__anext__()
                assert first == [{"id": "t1"}]
                return sub

        sub = asyncio.run(run())

        assert seen == [[{"id": "t1"}]]
        assert sub.cache.snapshot() == [{"id": "t1"}]
        assert not sub.is_open
        query.eq.assert_any_call("app_id", "app-1")
        kwargs = channel.on_postgres_changes.call_args.kwargs
        assert kwargs["table"] == "tenders"
        assert kwargs["filter"] == "app_id=eq.app-1"
        client.remove_channel.assert_awaited_once_with(channel)

    def test_evento_recarga_la_coleccion_completa(self):
        rows = [{"id": "b1"}]
        client, query, channel = async_client(rows)
        cache = ReadModelCache()

        async def run():
            async with subscribe(client, "bids", "app-1", filters={"tender_id": "t1"}, cache=cache) as sub:
                callback = channel.on_postgres_changes.call_args.kwargs["callback"]
                rows.append({"id": "b2"})
                # Ráfaga de eventos: una sola recarga
                callback({"eventType": "INSERT"})
                callback({"eventType": "INSERT"})
                callback({"eventType": "UPDATE"})
                await sub._refresh_task

        asyncio.run(run())

        assert cache.snapshot() == [{"id": "b1"}, {"id": "b2"}]
        assert query.execute.await_count == 2
        assert channel.on_postgres_changes.call_args.kwargs["filter"] == "tender_id=eq.t1"
        query.eq.assert_any_call("tender_id", "t1")

    def test_fallo_al_suscribir_libera_el_canal(self):
        client, _, channel = async_client([])
        channel.subscribe.side_effect = RuntimeError("socket closed")

        async def run():
            async with subscribe(client, "tenders", "app-1"):
                pass

        with pytest.raises(RuntimeError):
            asyncio.run(run())
        client.remove_channel.assert_awaited_once_with(channel)


class TestLiveFeed:
    def test_lecturas_desde_el_cache(self):
        feed = LiveFeed(Settings())
        assert not feed.is_ready

        feed.tenders.replace(
            [
                {
                    "id": "t1",
                    "client_id": "c1",
                    "title": "Roof repair",
                    "status": "Open",
                    "created_at": "2026-01-01T00:00:00+00:00",
                    "deadline": "2026-01-08T00:00:00+00:00",
                }
            ]
        )
        feed.bids.replace(
            [
                {
                    "id": f"b{i}",
                    "tender_id": "t1",
                    "contractor_id": f"k{i}",
                    "amount": amount,
                    "duration_days": 3,
                    "platform_fee": "0",
                    "net_earnings": amount,
                    "status": "pending",
                    "created_at": f"2026-01-0{i + 2}T00:00:00+00:00",
                }
                for i, amount in enumerate(["500", "300", "300"])
            ]
        )

        assert feed.is_ready
        summary = feed.tender_summaries()[0]
        assert summary.lowest_bid.id == "b1"
        assert summary.bid_count == 3
        assert [b.id for b in feed.ranked_bids("t1")] == ["b1", "b2", "b0"]

    def test_chat_filtrado_por_licitacion(self):
        rows = [
            {
                "id": "m1",
                "tender_id": "t1",
                "sender_id": "k1",
                "sender_name": "Ravi Builders",
                "text": "¿Incluye materiales?",
                "created_at": "2026-01-02T10:00:00+00:00",
            }
        ]
        client, query, channel = async_client(rows)
        feed = LiveFeed(Settings(app_id="app-1"))
        feed._client = client

        feed.watch_chat("t1")
        assert feed.chat_messages("t1") is None

        async def run():
            await feed._sync_chat()
            mensajes = feed.chat_messages("t1")
            assert [m.text for m in mensajes] == ["¿Incluye materiales?"]
            assert feed.chat_messages("t2") is None

            feed.unwatch_chat()
            await feed._sync_chat()

        asyncio.run(run())

        kwargs = channel.on_postgres_changes.call_args.kwargs
        assert kwargs["table"] == "chat_messages"
        assert kwargs["filter"] == "tender_id=eq.t1"
        client.table.assert_called_with("chat_messages")
        query.eq.assert_any_call("app_id", "app-1")
        query.eq.assert_any_call("tender_id", "t1")
        client.remove_channel.assert_awaited_once_with(channel)
        assert feed.chat_messages("t1") is None

    def test_cambiar_de_licitacion_suelta_el_chat_anterior(self):
        client, query, channel = async_client([])
        feed = LiveFeed(Settings(app_id="app-1"))
        feed._client = client

        async def run():
            feed.watch_chat("t1")
            await feed._sync_chat()
            feed.watch_chat("t2")
            await feed._sync_chat()

        asyncio.run(run())

        assert channel.on_postgres_changes.call_args.kwargs["filter"] == "tender_id=eq.t2"
        client.remove_channel.assert_awaited_once_with(channel)

    def test_stop_cierra_suscripciones_y_cliente(self, monkeypatch):
        client, _, channel = async_client([])
        monkeypatch.setattr("src.logic.live.create_async_supabase_client", AsyncMock(return_value=client))

        feed = LiveFeed(Settings(app_id="app-1")).start()
        feed.watch_chat("t1")
        assert wait_until(lambda: feed.is_ready and feed.chat.is_ready)

        feed.stop()

        assert not feed.is_running
        assert feed.error is None
        filtros = [c.kwargs["filter"] for c in channel.on_postgres_changes.call_args_list]
        assert "tender_id=eq.t1" in filtros
        # tenders, bids y chat
        assert client.remove_channel.await_count == 3
        client.realtime.close.assert_awaited_once()


def wait_until(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False
