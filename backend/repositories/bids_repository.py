"""
Repositorio de ofertas (bids). Solo inserciones y lecturas: los cambios de
estado de las ofertas los hacen las funciones de adjudicación y pago.
"""

from typing import Any, Dict, List

from backend.repositories.base_repository import BaseTenantRepository


class BidsRepository(BaseTenantRepository):
    """Tabla bids con PK id; orden de llegada = created_at, id."""

    TABLE_BIDS = "bids"

    def __init__(self, client, app_id: str) -> None:
        super().__init__(client=client, app_id=app_id, table_name=self.TABLE_BIDS)

    def list_for_tender(self, tender_id: str) -> List[Dict[str, Any]]:
        response = (
            self._scoped()
            .eq("tender_id", tender_id)
            .order("created_at")
            .order("id")
            .execute()
        )
        return list(response.data or [])

    def list_all(self) -> List[Dict[str, Any]]:
        """Todas las ofertas de la aplicación (resumen de oferta más baja en listados)."""
        response = self._scoped().order("created_at").order("id").execute()
        return list(response.data or [])

    def list_for_contractor(self, contractor_id: str) -> List[Dict[str, Any]]:
        response = (
            self._scoped()
            .eq("contractor_id", contractor_id)
            .order("created_at", desc=True)
            .execute()
        )
        return list(response.data or [])
