import pytest

from backend.models import ChatMessageCreate, TenderCreate
from backend.services.exceptions import NotFoundError


@pytest.fixture
def tender(service, client_user, tender_payload):
    return service.create_tender(client_user, TenderCreate(**tender_payload))


class TestChatService:
    def test_orden_cronologico(self, chat_service, tender, client_user, contractor_a):
        chat_service.post_message(contractor_a, tender.id, ChatMessageCreate(text="¿Hay acceso al tejado?"))
        chat_service.post_message(client_user, tender.id, ChatMessageCreate(text="Sí, por el patio."))

        messages = chat_service.list_messages(tender.id)
        assert [m.text for m in messages] == ["¿Hay acceso al tejado?", "Sí, por el patio."]
        assert [m.sender_name for m in messages] == ["Ravi Builders", "Asha"]

    def test_nombre_explicito(self, chat_service, tender, contractor_a):
        msg = chat_service.post_message(contractor_a, tender.id, ChatMessageCreate(text="hola", sender_name="Ravi"))
        assert msg.sender_name == "Ravi"
        assert msg.sender_id == "contractor-a"

    def test_licitacion_inexistente(self, chat_service, contractor_a):
        with pytest.raises(NotFoundError):
            chat_service.post_message(contractor_a, "missing", ChatMessageCreate(text="hola"))
        with pytest.raises(NotFoundError):
            chat_service.list_messages("missing")
