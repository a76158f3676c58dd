"""Orden de ofertas por importe y oferta más baja de cada licitación."""

from typing import Dict, Iterable, List, Optional

from backend.models import Bid, BidStatus


def rank_bids(bids: Iterable[Bid], tender_id: str, pending_only: bool = False) -> List[Bid]:
    """
    Ofertas de la licitación ordenadas por importe ascendente.

    sorted() es estable: a igual importe se conserva el orden de llegada de
    `bids`, que los repositorios entregan por created_at.
    """
    tender_id = str(tender_id)
    selected = [b for b in bids if b.tender_id == tender_id]
    if pending_only:
        selected = [b for b in selected if b.status == BidStatus.PENDING]
    return sorted(selected, key=lambda b: b.amount)


def lowest_bid(bids: Iterable[Bid], tender_id: str) -> Optional[Bid]:
    """Oferta sugerida para adjudicar (no vinculante). None si no hay ofertas."""
    ranked = rank_bids(bids, tender_id)
    return ranked[0] if ranked else None


def group_by_tender(bids: Iterable[Bid]) -> Dict[str, List[Bid]]:
    """Agrupa conservando el orden de llegada dentro de cada licitación."""
    grouped: Dict[str, List[Bid]] = {}
    for bid in bids:
        grouped.setdefault(bid.tender_id, []).append(bid)
    return grouped
