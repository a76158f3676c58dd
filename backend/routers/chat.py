"""
Chat por licitación (chat_messages). Solo añadir y listar.
"""

from typing import List

from fastapi import APIRouter, status

from backend.deps import ChatServiceDep, CurrentUserDep
from backend.models import ChatMessage, ChatMessageCreate
from backend.utils import http_error


router = APIRouter(prefix="/tenders/{tender_id}/messages", tags=["chat"])


@router.get("", response_model=List[ChatMessage])
def list_messages(tender_id: str, current_user: CurrentUserDep, service: ChatServiceDep) -> List[ChatMessage]:
    """Mensajes de la licitación en orden cronológico."""
    try:
        return service.list_messages(tender_id)
    except Exception as e:
        raise http_error(e, "cargando chat") from e


@router.post("", response_model=ChatMessage, status_code=status.HTTP_201_CREATED)
def post_message(
    tender_id: str,
    payload: ChatMessageCreate,
    current_user: CurrentUserDep,
    service: ChatServiceDep,
) -> ChatMessage:
    try:
        return service.post_message(current_user, tender_id, payload)
    except Exception as e:
        raise http_error(e, "enviando mensaje") from e
