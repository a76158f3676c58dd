"""
Máquina de estados de licitaciones y ofertas.

Licitación: Open → Awarded → Paid (solo hacia delante, sin cancelación).
Oferta: pending → Awarded | Rejected; Awarded → Paid.
Cualquier otra transición lanza InvalidTransitionError.
"""

from enum import Enum
from typing import Dict, FrozenSet, Tuple

from backend.models import BidStatus, TenderStatus
from backend.services.exceptions import InvalidTransitionError


class TenderAction(str, Enum):
    BID = "bid"
    AWARD = "award"
    PAY = "pay"


# BID no cambia el estado de la licitación, solo exige que siga abierta.
TENDER_TRANSITIONS: Dict[Tuple[TenderStatus, TenderAction], TenderStatus] = {
    (TenderStatus.OPEN, TenderAction.BID): TenderStatus.OPEN,
    (TenderStatus.OPEN, TenderAction.AWARD): TenderStatus.AWARDED,
    (TenderStatus.AWARDED, TenderAction.PAY): TenderStatus.PAID,
}

BID_TRANSITIONS: Dict[BidStatus, FrozenSet[BidStatus]] = {
    BidStatus.PENDING: frozenset({BidStatus.AWARDED, BidStatus.REJECTED}),
    BidStatus.AWARDED: frozenset({BidStatus.PAID}),
    BidStatus.REJECTED: frozenset(),
    BidStatus.PAID: frozenset(),
}

_ACTION_MESSAGES = {
    TenderAction.BID: "Solo se puede ofertar en licitaciones abiertas.",
    TenderAction.AWARD: "Solo se puede adjudicar una licitación abierta.",
    TenderAction.PAY: "Solo se puede confirmar el pago de una licitación adjudicada.",
}


def next_tender_status(current: TenderStatus, action: TenderAction) -> TenderStatus:
    """Estado resultante de aplicar `action`, o InvalidTransitionError."""
    current = TenderStatus(current)
    try:
        return TENDER_TRANSITIONS[(current, TenderAction(action))]
    except KeyError:
        raise InvalidTransitionError(
            f"{_ACTION_MESSAGES[TenderAction(action)]} Estado actual: {current.value}."
        ) from None


def next_bid_status(current: BidStatus, target: BidStatus) -> BidStatus:
    current = BidStatus(current)
    target = BidStatus(target)
    if target not in BID_TRANSITIONS[current]:
        raise InvalidTransitionError(
            f"La oferta no puede pasar de {current.value} a {target.value}."
        )
    return target


def allowed_actions(status: TenderStatus) -> FrozenSet[TenderAction]:
    """Acciones habilitadas para una licitación en `status` (la UI pinta solo estas)."""
    status = TenderStatus(status)
    return frozenset(action for (state, action) in TENDER_TRANSITIONS if state == status)


def is_terminal(status: TenderStatus) -> bool:
    return not allowed_actions(status)
