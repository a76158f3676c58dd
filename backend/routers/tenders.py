"""
Licitaciones, ofertas y ciclo de vida (Open → Awarded → Paid).

Todas las operaciones van por TenderService; este módulo solo traduce
excepciones de dominio a HTTP. Adjudicación y pago son escrituras atómicas
condicionadas al estado: un 409 indica que otra operación llegó antes.
"""

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, WebSocket, WebSocketDisconnect, status

from backend.database import (
    close_async_supabase_client,
    create_async_supabase_client,
    get_settings,
    get_supabase_client,
)
from backend.deps import CurrentUserDep, TenderServiceDep, resolve_user
from backend.models import AwardRequest, Bid, BidCreate, Tender, TenderCreate, TenderDetail, TenderStatus, TenderSummary
from backend.realtime import subscribe
from backend.utils import http_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tenders", tags=["tenders"])


@router.get("", response_model=List[TenderSummary])
def list_tenders(
    current_user: CurrentUserDep,
    service: TenderServiceDep,
    status_filter: Optional[TenderStatus] = Query(None, alias="status", description="Open, Awarded o Paid."),
    mine: bool = Query(False, description="Solo licitaciones publicadas por el usuario."),
) -> List[TenderSummary]:
    """
    Lista licitaciones (más recientes primero) con la oferta más baja de cada una.

    GET /tenders?status=Open&mine=true
    """
    try:
        return service.list_tenders(
            status=status_filter,
            client_id=current_user.user_id if mine else None,
        )
    except Exception as e:
        raise http_error(e, "listando licitaciones") from e


@router.post("", response_model=Tender, status_code=status.HTTP_201_CREATED)
def create_tender(payload: TenderCreate, current_user: CurrentUserDep, service: TenderServiceDep) -> Tender:
    """
    Publica una licitación (requiere aceptar el aviso de responsabilidad).

    POST /tenders
    """
    try:
        return service.create_tender(current_user, payload)
    except Exception as e:
        raise http_error(e, "creando licitación") from e


@router.get("/{tender_id}", response_model=TenderDetail)
def get_tender(tender_id: str, current_user: CurrentUserDep, service: TenderServiceDep) -> TenderDetail:
    """Detalle con ofertas ordenadas por importe y oferta más baja."""
    try:
        return service.get_tender_detail(tender_id)
    except Exception as e:
        raise http_error(e, "obteniendo licitación") from e


@router.get("/{tender_id}/bids", response_model=List[Bid])
def list_bids(
    tender_id: str,
    current_user: CurrentUserDep,
    service: TenderServiceDep,
    pending_only: bool = Query(False, description="Solo ofertas pendientes (selección para adjudicar)."),
) -> List[Bid]:
    try:
        service.get_tender(tender_id)
        return service.list_bids(tender_id, pending_only=pending_only)
    except Exception as e:
        raise http_error(e, "listando ofertas") from e


@router.post("/{tender_id}/bids", response_model=Bid, status_code=status.HTTP_201_CREATED)
def place_bid(tender_id: str, payload: BidCreate, current_user: CurrentUserDep, service: TenderServiceDep) -> Bid:
    """
    Presenta una oferta. Solo con la licitación en Open.

    POST /tenders/{id}/bids
    Body: { "amount": 10000, "duration_days": 5 }
    """
    try:
        return service.place_bid(current_user, tender_id, payload)
    except Exception as e:
        raise http_error(e, "enviando oferta") from e


@router.post("/{tender_id}/award", response_model=Tender)
def award_bid(tender_id: str, payload: AwardRequest, current_user: CurrentUserDep, service: TenderServiceDep) -> Tender:
    """
    Adjudica una oferta pendiente (solo el cliente propietario).

    POST /tenders/{id}/award
    Body: { "bid_id": "...", "confirmation": "AWARD" }
    """
    try:
        return service.award_bid(current_user, tender_id, payload)
    except Exception as e:
        raise http_error(e, "adjudicando licitación") from e


@router.post("/{tender_id}/pay", response_model=Tender)
def confirm_payment(tender_id: str, current_user: CurrentUserDep, service: TenderServiceDep) -> Tender:
    """
    Confirma el pago de la oferta adjudicada.

    POST /tenders/{id}/pay
    """
    try:
        return service.confirm_payment(current_user, tender_id)
    except Exception as e:
        raise http_error(e, "confirmando pago") from e


async def _send_snapshots(websocket: WebSocket, subscription) -> None:
    async for records in subscription.snapshots():
        await websocket.send_json({"collection": "tenders", "records": records})


async def _wait_disconnect(websocket: WebSocket) -> None:
    # El cliente no envía nada; solo interesa enterarse del cierre.
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


@router.websocket("/live")
async def tenders_live(websocket: WebSocket, token: Optional[str] = Query(None)) -> None:
    """
    Envía el listado completo de licitaciones cada vez que cambia.

    La suscripción y el socket Realtime se cierran en cuanto el cliente se
    desconecta, aunque no haya llegado ningún cambio desde entonces.
    """
    settings = get_settings()
    try:
        resolve_user(token, settings, None if settings.skip_auth and not token else get_supabase_client())
    except HTTPException:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    client = await create_async_supabase_client(settings)
    try:
        if token:
            client.postgrest.auth(token)
            await client.realtime.set_auth(token)
        async with subscribe(client, "tenders", settings.app_id) as subscription:
            sender = asyncio.ensure_future(_send_snapshots(websocket, subscription))
            watcher = asyncio.ensure_future(_wait_disconnect(websocket))
            try:
                done, _ = await asyncio.wait({sender, watcher}, return_when=asyncio.FIRST_COMPLETED)
            finally:
                for task in (sender, watcher):
                    task.cancel()
                await asyncio.gather(sender, watcher, return_exceptions=True)
            for task in done:
                task.result()
    except WebSocketDisconnect:
        logger.debug("Cliente desconectado durante el envío")
    finally:
        await close_async_supabase_client(client)
    logger.debug("Feed de licitaciones cerrado")
