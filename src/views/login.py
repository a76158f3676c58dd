import streamlit as st

from backend.services.exceptions import AuthenticationError
from src.logic.auth import entrar_con_nombre, entrar_con_token


def render_login(session):
    """Renderiza el formulario de entrada centrado (nombre visible y token opcional)."""

    # Columnas para centrar el formulario visualmente
    col1, col2, col3 = st.columns([1, 2, 1])

    with col2:
        st.header("🔐 Entrar en TenderBid")
        tipo = "anónima" if session.is_anonymous else "con token"
        st.caption(f"Sesión {tipo} · ID `{session.user_id[:8]}`")

        with st.form("frm_login"):
            nombre = st.text_input("Nombre visible (aparece en tus ofertas y mensajes)")
            submit = st.form_submit_button("Entrar", use_container_width=True)

            if submit:
                if entrar_con_nombre(nombre):
                    st.session_state['app_mode'] = 'MENU'
                    st.rerun()
                else:
                    st.warning("Por favor indica un nombre.")

        with st.expander("Entrar con un token de acceso"):
            with st.form("frm_token"):
                token = st.text_input("Access token", type="password")
                refresh = st.text_input("Refresh token (opcional)", type="password")
                if st.form_submit_button("Usar token"):
                    if not token.strip():
                        st.warning("Pega un token de acceso.")
                    else:
                        try:
                            info = entrar_con_token(token, refresh)
                        except AuthenticationError as e:
                            st.error(e.message)
                        else:
                            if info.fallback_used:
                                st.warning("Token no válido: sigues como usuario anónimo.")
                            else:
                                st.success("Sesión iniciada con el token.")
