import streamlit as st
from src.logic.auth import cerrar_sesion
from src.utils import navegar_a


def render_menu():
    # Barra superior con info del usuario
    col_saludo, col_logout = st.columns([6, 1])
    nombre = st.session_state.get('usuario_nombre') or 'Usuario'

    col_saludo.markdown(f"👋 Hola, **{nombre}**")
    if col_logout.button("Salir"):
        cerrar_sesion()

    st.title("TenderBid - Licitaciones de obra")
    st.markdown("---")

    col1, col2, col3 = st.columns(3)

    with col1:
        st.info("📂 Licitaciones")
        st.write("Consulta las licitaciones abiertas y presenta ofertas.")
        if st.button("Ver licitaciones ➡", use_container_width=True):
            st.session_state['vista_gestor'] = 'LISTADO'
            navegar_a('GESTOR')

    with col2:
        st.success("➕ Publicar trabajo")
        st.write("Describe la obra y recibe ofertas durante 7 días.")
        if st.button("Nueva licitación ➡", use_container_width=True):
            st.session_state['vista_gestor'] = 'NUEVA'
            navegar_a('GESTOR')

    with col3:
        st.warning("📊 Mis ofertas")
        st.write("Estado de tus ofertas y ganancias netas.")
        if st.button("Ir a mis ofertas ➡", use_container_width=True):
            navegar_a('MIS_OFERTAS')
