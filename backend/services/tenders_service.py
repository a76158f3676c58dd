"""
Servicio de licitaciones: ciclo de vida Open → Awarded → Paid, ofertas y comisiones.

Recibe los repositorios por inyección. Lanza excepciones de dominio
(ValueError, NotFoundError, ForbiddenError, InvalidTransitionError,
AwardConflictError, PersistenceError), no HTTPException.

Ningún método modifica estado local de forma optimista: el resultado de cada
escritura es lo que devuelve el almacén, y el resto de clientes lo reciben por
Realtime.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional

from backend.config import Settings
from backend.models import (
    TENDER_DEADLINE_DAYS,
    AwardRequest,
    Bid,
    BidCreate,
    BidStatus,
    CurrentUser,
    Tender,
    TenderCreate,
    TenderDetail,
    TenderStatus,
    TenderSummary,
)
from backend.repositories.bids_repository import BidsRepository
from backend.repositories.tenders_repository import TendersRepository
from backend.services.exceptions import (
    AwardConflictError,
    DomainError,
    ForbiddenError,
    NotFoundError,
    PersistenceError,
)
from backend.services.pricing import compute_fee_split
from backend.services.ranking import group_by_tender, lowest_bid, rank_bids
from backend.services.state_machine import TenderAction, next_bid_status, next_tender_status

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@contextmanager
def store_errors(action: str) -> Iterator[None]:
    """Traduce fallos del almacén (red, PostgREST) a PersistenceError."""
    try:
        yield
    except (DomainError, ValueError):
        raise
    except Exception as e:
        logger.error("Fallo del almacén al %s", action, exc_info=True)
        raise PersistenceError(f"No se pudo {action}: {e!s}") from e


def summarize_tenders(
    tender_rows: Iterable[Dict[str, Any]],
    bid_rows: Iterable[Dict[str, Any]],
    status: Optional[TenderStatus] = None,
    client_id: Optional[str] = None,
) -> List[TenderSummary]:
    """
    Une licitaciones y ofertas en resúmenes con la oferta más baja, más
    recientes primero. Sirve tanto para lecturas directas como para el cache
    de Realtime.
    """
    by_tender: Dict[str, List[Bid]] = group_by_tender(Bid.model_validate(r) for r in bid_rows)
    tenders = [Tender.model_validate(r) for r in tender_rows]
    if status:
        tenders = [t for t in tenders if t.status == TenderStatus(status)]
    if client_id:
        tenders = [t for t in tenders if t.client_id == client_id]
    tenders.sort(key=lambda t: t.created_at, reverse=True)
    out: List[TenderSummary] = []
    for tender in tenders:
        bids = by_tender.get(tender.id, [])
        out.append(TenderSummary(tender=tender, lowest_bid=lowest_bid(bids, tender.id), bid_count=len(bids)))
    return out


class TenderService:
    """Lógica de negocio de licitaciones y ofertas. Multi-tenant vía repositorios."""

    def __init__(
        self,
        tenders: TendersRepository,
        bids: BidsRepository,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._tenders = tenders
        self._bids = bids
        self._clock = clock

    @classmethod
    def from_settings(cls, client, settings: Settings, clock: Callable[[], datetime] = utcnow) -> "TenderService":
        """Construye el servicio con repositorios scoped al app_id de la configuración."""
        return cls(
            TendersRepository(client, settings.app_id),
            BidsRepository(client, settings.app_id),
            clock=clock,
        )

    # ----- Lecturas -----

    def get_tender(self, tender_id: str) -> Tender:
        """Lanza NotFoundError si no existe."""
        with store_errors("cargar la licitación"):
            row = self._tenders.get_by_id(tender_id)
        if not row:
            raise NotFoundError("Licitación no encontrada.")
        return Tender.model_validate(row)

    def list_tenders(
        self,
        status: Optional[TenderStatus] = None,
        client_id: Optional[str] = None,
    ) -> List[TenderSummary]:
        """Licitaciones (más recientes primero) con su oferta más baja."""
        with store_errors("listar licitaciones"):
            rows = self._tenders.list_tenders(
                status=TenderStatus(status).value if status else None,
                client_id=client_id,
            )
            bid_rows = self._bids.list_all() if rows else []
        return summarize_tenders(rows, bid_rows)

    def list_bids(self, tender_id: str, pending_only: bool = False) -> List[Bid]:
        """Ofertas de la licitación por importe ascendente (pending_only para adjudicar)."""
        with store_errors("listar ofertas"):
            rows = self._bids.list_for_tender(tender_id)
        return rank_bids((Bid.model_validate(r) for r in rows), tender_id, pending_only=pending_only)

    def get_tender_detail(self, tender_id: str) -> TenderDetail:
        tender = self.get_tender(tender_id)
        bids = self.list_bids(tender.id)
        return TenderDetail(tender=tender, bids=bids, lowest_bid=bids[0] if bids else None)

    def list_contractor_bids(self, user: CurrentUser) -> List[Bid]:
        """Ofertas presentadas por el usuario (más recientes primero)."""
        with store_errors("listar tus ofertas"):
            rows = self._bids.list_for_contractor(user.user_id)
        return [Bid.model_validate(r) for r in rows]

    # ----- Transiciones -----

    def create_tender(self, user: CurrentUser, payload: TenderCreate) -> Tender:
        """Publica una licitación en estado Open con plazo de 7 días."""
        now = self._clock()
        row = {
            "client_id": user.user_id,
            "title": payload.title,
            "description": payload.description,
            "location": payload.location,
            "regulatory_id": payload.regulatory_id,
            "disclaimer_accepted": True,
            "status": TenderStatus.OPEN.value,
            "created_at": now.isoformat(),
            "deadline": (now + timedelta(days=TENDER_DEADLINE_DAYS)).isoformat(),
        }
        with store_errors("publicar la licitación"):
            created = self._tenders.create(row)
        tender = Tender.model_validate(created)
        logger.info("Licitación %s publicada por %s", tender.id, user.user_id)
        return tender

    def place_bid(self, user: CurrentUser, tender_id: str, payload: BidCreate) -> Bid:
        """
        Presenta una oferta sobre una licitación abierta. Comisión y neto se
        calculan aquí y quedan fijados en la oferta.
        """
        tender = self.get_tender(tender_id)
        next_tender_status(tender.status, TenderAction.BID)

        split = compute_fee_split(payload.amount)
        row = {
            "tender_id": tender.id,
            "contractor_id": user.user_id,
            "contractor_name": (payload.contractor_name or "").strip() or user.public_name,
            "amount": str(split.amount),
            "duration_days": payload.duration_days,
            "platform_fee": str(split.platform_fee),
            "net_earnings": str(split.net_earnings),
            "status": BidStatus.PENDING.value,
            "created_at": self._clock().isoformat(),
        }
        with store_errors("enviar la oferta"):
            created = self._bids.create(row)
        bid = Bid.model_validate(created)
        logger.info("Oferta %s de %s sobre licitación %s: %s", bid.id, user.user_id, tender.id, bid.amount)
        return bid

    def _get_own_tender(self, user: CurrentUser, tender_id: str) -> Tender:
        tender = self.get_tender(tender_id)
        if tender.client_id != user.user_id:
            raise ForbiddenError("Solo el cliente que publicó la licitación puede adjudicarla o pagarla.")
        return tender

    def award_bid(self, user: CurrentUser, tender_id: str, request: AwardRequest) -> Tender:
        """
        Adjudica una oferta pendiente. Escritura atómica condicionada a que la
        licitación siga Open; si otro cliente adjudicó antes, AwardConflictError.
        """
        tender = self._get_own_tender(user, tender_id)
        next_tender_status(tender.status, TenderAction.AWARD)

        with store_errors("cargar la oferta"):
            bid_row = self._bids.get_by_id(request.bid_id)
        if not bid_row or str(bid_row.get("tender_id")) != tender.id:
            raise NotFoundError("Oferta no encontrada en esta licitación.")
        bid = Bid.model_validate(bid_row)
        next_bid_status(bid.status, BidStatus.AWARDED)

        with store_errors("adjudicar la licitación"):
            updated = self._tenders.award_bid(
                tender_id=tender.id,
                bid_id=bid.id,
                client_id=user.user_id,
                awarded_at=self._clock(),
            )
        if not updated:
            logger.warning("Adjudicación rechazada por precondición: licitación %s, oferta %s", tender.id, bid.id)
            raise AwardConflictError(
                "La licitación ya no está abierta: otra adjudicación se aplicó antes. Recarga para ver el estado actual."
            )
        result = Tender.model_validate(updated)
        logger.info("Licitación %s adjudicada a la oferta %s (%s)", tender.id, bid.id, bid.amount)
        return result

    def confirm_payment(self, user: CurrentUser, tender_id: str) -> Tender:
        """Confirma el pago de la oferta adjudicada. Reutiliza la comisión fijada en la oferta."""
        tender = self._get_own_tender(user, tender_id)
        next_tender_status(tender.status, TenderAction.PAY)

        with store_errors("confirmar el pago"):
            updated = self._tenders.confirm_payment(
                tender_id=tender.id,
                client_id=user.user_id,
                payment_date=self._clock(),
            )
        if not updated:
            logger.warning("Pago rechazado por precondición: licitación %s", tender.id)
            raise AwardConflictError(
                "La licitación ya no está pendiente de pago. Recarga para ver el estado actual."
            )
        result = Tender.model_validate(updated)
        logger.info("Pago confirmado para la licitación %s", tender.id)
        return result
