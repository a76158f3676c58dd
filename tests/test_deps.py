import time
from types import SimpleNamespace
from unittest.mock import MagicMock

import jwt
import pytest
from fastapi import HTTPException

from backend.config import Settings
from backend.deps import DEV_USER_ID, resolve_user

SECRET = "test-jwt-secret-with-enough-length-0123456789"


def make_token(**claims):
    payload = {"sub": "user-1", "aud": "authenticated", "exp": int(time.time()) + 3600, **claims}
    return jwt.encode(payload, SECRET, algorithm="HS256")


class TestResolveUser:
    def test_sin_token_y_skip_auth(self):
        assert resolve_user(None, Settings(skip_auth=True), None).user_id == DEV_USER_ID

    def test_sin_token(self):
        with pytest.raises(HTTPException) as exc:
            resolve_user(None, Settings(), None)
        assert exc.value.status_code == 401

    def test_jwt_hs256(self):
        token = make_token(is_anonymous=True, user_metadata={"display_name": "Asha"})
        user = resolve_user(token, Settings(supabase_jwt_secret=SECRET), None)
        assert user.user_id == "user-1"
        assert user.is_anonymous
        assert user.display_name == "Asha"

    def test_jwt_expirado(self):
        token = make_token(exp=int(time.time()) - 10)
        with pytest.raises(HTTPException) as exc:
            resolve_user(token, Settings(supabase_jwt_secret=SECRET), None)
        assert exc.value.detail == "Token expirado."

    def test_fallback_a_la_api_de_auth(self):
        client = MagicMock()
        client.auth.get_user.return_value = SimpleNamespace(
            user=SimpleNamespace(id="user-2", email="a@b.c", user_metadata={}, is_anonymous=False)
        )
        user = resolve_user("opaque", Settings(supabase_jwt_secret=SECRET), client)
        assert user.user_id == "user-2"
        client.auth.get_user.assert_called_once_with("opaque")

    def test_token_rechazado_por_auth(self):
        client = MagicMock()
        client.auth.get_user.side_effect = RuntimeError("bad token")
        with pytest.raises(HTTPException) as exc:
            resolve_user("opaque", Settings(), client)
        assert exc.value.status_code == 401
