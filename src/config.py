import logging

import streamlit as st
from supabase import Client

from backend.config import Settings, load_settings
from backend.database import create_supabase_client
from backend.identity import IdentityGateway
from backend.logging_config import configure_logging
from backend.models import CurrentUser, SessionInfo
from backend.services import ChatService, TenderService
from backend.services.exceptions import AuthenticationError
from src.logic.alerts import Severity
from src.logic.live import LiveFeed
from src.utils import get_alerts

logger = logging.getLogger(__name__)


@st.cache_resource
def init_settings() -> Settings:
    """Carga la configuración y el logging una sola vez por proceso."""
    settings = load_settings()
    configure_logging(settings.log_level)
    return settings


def init_connection() -> Client:
    """
    Cliente de Supabase de la sesión del navegador. No se comparte entre
    sesiones: la sesión de Auth vive dentro del cliente.
    """
    if "supabase" not in st.session_state:
        try:
            st.session_state["supabase"] = create_supabase_client(init_settings())
        except RuntimeError as e:
            st.error(str(e))
            st.stop()
    return st.session_state["supabase"]


def get_identity() -> IdentityGateway:
    return IdentityGateway(init_connection())


def _registrar_cambios_auth(identity: IdentityGateway) -> None:
    if "auth_unsubscribe" in st.session_state:
        return
    estado = st.session_state.setdefault("auth_estado", {"user_id": None})

    def _on_change(user_id):
        estado["user_id"] = user_id

    st.session_state["auth_unsubscribe"] = identity.on_auth_state_change(_on_change)


def init_session() -> SessionInfo:
    """
    Sesión de identidad de la pestaña: token de arranque si está configurado,
    si no anónima. Si no se consigue ninguna, la app no puede continuar.
    """
    if st.session_state.get("sesion") is not None:
        return st.session_state["sesion"]

    settings = init_settings()
    identity = get_identity()
    _registrar_cambios_auth(identity)
    try:
        info = identity.bootstrap(settings)
    except AuthenticationError as e:
        logger.error("No se pudo inicializar la sesión: %s", e.message)
        render_fallo_inicializacion(e.message)
        st.stop()

    st.session_state["sesion"] = info
    if info.fallback_used:
        get_alerts().post("El token de acceso no es válido: has entrado como usuario anónimo.", Severity.WARNING)
    return info


def render_fallo_inicializacion(detalle: str):
    """Pantalla terminal cuando no hay forma de obtener identidad."""
    st.title("TenderBid")
    st.error("No se pudo inicializar la sesión. La aplicación no puede continuar.")
    st.caption(detalle)
    if st.button("Reintentar"):
        st.session_state.pop("sesion", None)
        st.rerun()


def get_current_user() -> CurrentUser:
    info = init_session()
    return CurrentUser(
        user_id=info.user_id,
        display_name=st.session_state.get("usuario_nombre"),
        is_anonymous=info.is_anonymous,
    )


def get_services():
    """(TenderService, ChatService) ligados al cliente de la sesión."""
    if "servicios" not in st.session_state:
        client = init_connection()
        settings = init_settings()
        st.session_state["servicios"] = (
            TenderService.from_settings(client, settings),
            ChatService.from_settings(client, settings),
        )
    return st.session_state["servicios"]


def get_live_feed() -> LiveFeed:
    """Feed Realtime de la sesión; se arranca la primera vez que se pide."""
    feed = st.session_state.get("live_feed")
    if feed is None:
        info = init_session()
        feed = LiveFeed(init_settings(), access_token=info.access_token).start()
        st.session_state["live_feed"] = feed
    return feed


def soltar_chat():
    """Al salir del detalle: cierra la suscripción al chat si el feed está en marcha."""
    feed = st.session_state.get("live_feed")
    if feed is not None:
        feed.unwatch_chat()


def reset_session():
    """Detiene el feed y olvida la sesión y los servicios de la pestaña."""
    feed = st.session_state.pop("live_feed", None)
    if feed is not None:
        feed.stop()
    unsubscribe = st.session_state.pop("auth_unsubscribe", None)
    if unsubscribe is not None:
        unsubscribe()
    for key in ("sesion", "servicios", "auth_estado"):
        st.session_state.pop(key, None)
