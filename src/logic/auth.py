import streamlit as st

from src.config import get_identity, reset_session


def entrar_con_nombre(nombre: str) -> bool:
    """
    Guarda el nombre visible de la sesión (ofertas y chat).
    Retorna False si viene vacío.
    """
    nombre = (nombre or "").strip()
    if not nombre:
        return False
    st.session_state['usuario_nombre'] = nombre
    st.session_state['usuario_logueado'] = True
    return True


def entrar_con_token(token: str, refresh_token: str = ""):
    """
    Sustituye la sesión actual por la del token. Si el token no vale se entra
    como anónimo (SessionInfo.fallback_used). Lanza AuthenticationError si
    tampoco es posible.
    """
    info = get_identity().sign_in_with_token(token.strip(), refresh_token.strip() or None)
    # El feed y los servicios se reconstruyen con la nueva identidad
    reset_session()
    st.session_state['sesion'] = info
    return info


def cerrar_sesion():
    """Cierra la sesión de Auth, limpia el estado y vuelve al login."""
    get_identity().sign_out()
    reset_session()
    st.session_state['usuario_logueado'] = False
    st.session_state['usuario_nombre'] = None
    st.session_state['app_mode'] = 'LOGIN'
    st.rerun()
