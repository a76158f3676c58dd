"""Repositorio del chat por licitación (chat_messages). Solo se añade y se lee."""

from typing import Any, Dict, List

from backend.repositories.base_repository import BaseTenantRepository


class ChatRepository(BaseTenantRepository):
    TABLE_MESSAGES = "chat_messages"

    def __init__(self, client, app_id: str) -> None:
        super().__init__(client=client, app_id=app_id, table_name=self.TABLE_MESSAGES)

    def list_for_tender(self, tender_id: str) -> List[Dict[str, Any]]:
        """Mensajes de la licitación en orden cronológico."""
        response = (
            self._scoped()
            .eq("tender_id", tender_id)
            .order("created_at")
            .order("id")
            .execute()
        )
        return list(response.data or [])
