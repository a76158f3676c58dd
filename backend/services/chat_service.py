"""Chat por licitación: solo añadir y listar en orden cronológico."""

import logging
from datetime import datetime
from typing import Callable, List

from backend.config import Settings
from backend.models import ChatMessage, ChatMessageCreate, CurrentUser
from backend.repositories.chat_repository import ChatRepository
from backend.repositories.tenders_repository import TendersRepository
from backend.services.exceptions import NotFoundError
from backend.services.tenders_service import store_errors, utcnow

logger = logging.getLogger(__name__)


class ChatService:
    def __init__(
        self,
        messages: ChatRepository,
        tenders: TendersRepository,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._messages = messages
        self._tenders = tenders
        self._clock = clock

    @classmethod
    def from_settings(cls, client, settings: Settings, clock: Callable[[], datetime] = utcnow) -> "ChatService":
        return cls(
            ChatRepository(client, settings.app_id),
            TendersRepository(client, settings.app_id),
            clock=clock,
        )

    def _ensure_tender(self, tender_id: str) -> None:
        with store_errors("cargar la licitación"):
            exists = self._tenders.get_by_id(tender_id, select="id")
        if not exists:
            raise NotFoundError("Licitación no encontrada.")

    def list_messages(self, tender_id: str) -> List[ChatMessage]:
        self._ensure_tender(tender_id)
        with store_errors("cargar el chat"):
            rows = self._messages.list_for_tender(tender_id)
        messages = [ChatMessage.model_validate(r) for r in rows]
        # El almacén ya ordena; se reordena de forma estable por si la fuente no lo hace.
        return sorted(messages, key=lambda m: m.created_at)

    def post_message(self, user: CurrentUser, tender_id: str, payload: ChatMessageCreate) -> ChatMessage:
        self._ensure_tender(tender_id)
        row = {
            "tender_id": tender_id,
            "sender_id": user.user_id,
            "sender_name": (payload.sender_name or "").strip() or user.public_name,
            "text": payload.text,
            "created_at": self._clock().isoformat(),
        }
        with store_errors("enviar el mensaje"):
            created = self._messages.create(row)
        message = ChatMessage.model_validate(created)
        logger.debug("Mensaje %s en licitación %s", message.id, tender_id)
        return message
