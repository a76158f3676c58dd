from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from backend.config import Settings
from backend.identity import IdentityGateway
from backend.services.exceptions import AuthenticationError


def auth_response(user_id, token="access-token"):
    return SimpleNamespace(user=SimpleNamespace(id=user_id), session=SimpleNamespace(access_token=token))


@pytest.fixture
def client():
    client = MagicMock()
    client.auth.sign_in_anonymously.return_value = auth_response("anon-1", "anon-token")
    return client


class TestIdentityGateway:
    def test_sesion_anonima(self, client):
        info = IdentityGateway(client).sign_in_anonymous()
        assert info.user_id == "anon-1"
        assert info.access_token == "anon-token"
        assert info.is_anonymous
        assert not info.fallback_used

    def test_token_valido(self, client):
        client.auth.set_session.return_value = auth_response("user-1")
        info = IdentityGateway(client).sign_in_with_token("tok", "ref")

        client.auth.set_session.assert_called_once_with("tok", "ref")
        assert info.user_id == "user-1"
        assert not info.is_anonymous
        client.auth.sign_in_anonymously.assert_not_called()

    def test_token_invalido_cae_una_vez_a_anonimo(self, client):
        client.auth.set_session.side_effect = RuntimeError("invalid JWT")
        info = IdentityGateway(client).sign_in_with_token("bad")

        assert info.user_id == "anon-1"
        assert info.fallback_used
        client.auth.sign_in_anonymously.assert_called_once()

    def test_fallan_ambos(self, client):
        client.auth.set_session.side_effect = RuntimeError("invalid JWT")
        client.auth.sign_in_anonymously.side_effect = RuntimeError("anonymous sign-ins are disabled")

        with pytest.raises(AuthenticationError, match="anonymous sign-ins are disabled"):
            IdentityGateway(client).sign_in_with_token("bad")
        client.auth.sign_in_anonymously.assert_called_once()

    def test_respuesta_sin_usuario(self, client):
        client.auth.sign_in_anonymously.return_value = SimpleNamespace(user=None, session=None)
        with pytest.raises(AuthenticationError):
            IdentityGateway(client).sign_in_anonymous()

    def test_bootstrap(self, client):
        client.auth.set_session.return_value = auth_response("user-1")
        gateway = IdentityGateway(client)

        assert gateway.bootstrap(Settings()).user_id == "anon-1"
        assert gateway.bootstrap(Settings(initial_auth_token="tok")).user_id == "user-1"

    def test_on_auth_state_change(self, client):
        seen = []
        IdentityGateway(client).on_auth_state_change(seen.append)
        listener = client.auth.on_auth_state_change.call_args.args[0]

        listener("SIGNED_IN", SimpleNamespace(user=SimpleNamespace(id="u1")))
        listener("SIGNED_OUT", None)
        assert seen == ["u1", None]
