"""
Repositorio de licitaciones (tenders).

Todas las operaciones están scoped por app_id vía BaseTenantRepository.
Adjudicación y pago van por funciones SQL (supabase/migrations) que aplican
todas sus escrituras en una transacción y solo si el estado de la licitación
es el esperado (Open para adjudicar, Awarded para pagar).
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from backend.repositories.base_repository import BaseTenantRepository


class TendersRepository(BaseTenantRepository):
    """
    Repositorio de la tabla tenders con PK id.

    Lecturas y alta vía base (get_by_id, create).
    Métodos de dominio: list_tenders, award_bid, confirm_payment.
    """

    TABLE_TENDERS = "tenders"
    FN_AWARD = "award_bid"
    FN_PAY = "confirm_tender_payment"

    def __init__(self, client, app_id: str) -> None:
        super().__init__(client=client, app_id=app_id, table_name=self.TABLE_TENDERS)

    def list_tenders(
        self,
        status: Optional[str] = None,
        client_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Lista licitaciones (más recientes primero) con filtros opcionales."""
        query = self._scoped().order("created_at", desc=True)
        if status:
            query = query.eq("status", status)
        if client_id:
            query = query.eq("client_id", client_id)
        response = query.execute()
        return list(response.data or [])

    def award_bid(
        self,
        tender_id: str,
        bid_id: str,
        client_id: str,
        awarded_at: datetime,
    ) -> Optional[Dict[str, Any]]:
        """
        Adjudica en una sola transacción: licitación → Awarded, oferta → Awarded,
        resto de ofertas pendientes → Rejected. Devuelve la licitación actualizada
        o None si no se cumplió la precondición (ya no estaba Open, oferta no
        pendiente o cliente no propietario): en ese caso no se escribe nada.
        """
        rows = self.call_function(
            self.FN_AWARD,
            {
                "p_tender_id": tender_id,
                "p_bid_id": bid_id,
                "p_client_id": client_id,
                "p_awarded_at": awarded_at.isoformat(),
            },
        )
        return rows[0] if rows else None

    def confirm_payment(
        self,
        tender_id: str,
        client_id: str,
        payment_date: datetime,
    ) -> Optional[Dict[str, Any]]:
        """
        Pago en una sola transacción: licitación → Paid con payment_date y oferta
        adjudicada → Paid. None si la licitación ya no estaba Awarded.
        """
        rows = self.call_function(
            self.FN_PAY,
            {
                "p_tender_id": tender_id,
                "p_client_id": client_id,
                "p_payment_date": payment_date.isoformat(),
            },
        )
        return rows[0] if rows else None
