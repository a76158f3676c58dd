"""
Identidad sobre Supabase Auth (GoTrue).

- sign_in_anonymous: sesión anónima.
- sign_in_with_token: sesión a partir de un token de arranque; si falla,
  un único intento de sesión anónima.
- on_auth_state_change: callback con el user_id (o None al perder la sesión).
"""

import logging
from typing import Callable, Optional

from supabase import Client

from backend.config import Settings
from backend.models import SessionInfo
from backend.services.exceptions import AuthenticationError

logger = logging.getLogger(__name__)


def _session_info(auth_resp, is_anonymous: bool, fallback_used: bool = False) -> SessionInfo:
    if not auth_resp or not auth_resp.user:
        raise AuthenticationError("El proveedor de identidad no devolvió usuario.")
    session = auth_resp.session
    return SessionInfo(
        user_id=str(auth_resp.user.id),
        access_token=session.access_token if session else None,
        is_anonymous=is_anonymous,
        fallback_used=fallback_used,
    )


class IdentityGateway:
    """Adaptador de Supabase Auth para la API y la UI."""

    def __init__(self, client: Client) -> None:
        self._client = client

    def sign_in_anonymous(self) -> SessionInfo:
        try:
            auth_resp = self._client.auth.sign_in_anonymously()
        except Exception as e:
            raise AuthenticationError(f"No se pudo iniciar sesión anónima: {e!s}") from e
        info = _session_info(auth_resp, is_anonymous=True)
        logger.info("Sesión anónima iniciada: %s", info.user_id)
        return info

    def sign_in_with_token(self, token: str, refresh_token: Optional[str] = None) -> SessionInfo:
        """Intenta el token; ante cualquier fallo, cae una sola vez a sesión anónima."""
        try:
            auth_resp = self._client.auth.set_session(token, refresh_token or "")
            return _session_info(auth_resp, is_anonymous=False)
        except Exception as e:
            logger.warning("Token de sesión rechazado (%s); se intenta sesión anónima.", e)
        info = self.sign_in_anonymous()
        return info.model_copy(update={"fallback_used": True})

    def bootstrap(self, settings: Settings) -> SessionInfo:
        """Sesión inicial de la UI: token de arranque si existe, si no anónima."""
        if settings.initial_auth_token:
            return self.sign_in_with_token(settings.initial_auth_token, settings.initial_refresh_token)
        return self.sign_in_anonymous()

    def on_auth_state_change(self, callback: Callable[[Optional[str]], None]) -> Callable[[], None]:
        """
        Registra `callback(user_id | None)`. Devuelve la función para darse de baja.
        """

        def _listener(_event, session) -> None:
            user = getattr(session, "user", None) if session else None
            callback(str(user.id) if user else None)

        subscription = self._client.auth.on_auth_state_change(_listener)
        return subscription.unsubscribe

    def sign_out(self) -> None:
        self._client.auth.sign_out()
