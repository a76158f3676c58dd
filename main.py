import streamlit as st
from src.config import init_connection, init_session, soltar_chat
from src.styles import cargar_estilo_tenderbid
from src.views import home, kpi, tenders_list, tenders_detail, login

# 1. Configuración Pagina
st.set_page_config(page_title="TenderBid", page_icon="🏗️", layout="wide")

# 2. Inicialización de Estilos, Conexión e Identidad
cargar_estilo_tenderbid()
init_connection()
sesion = init_session()

# 3. Gestión de Estado Global
if 'usuario_logueado' not in st.session_state:
    st.session_state['usuario_logueado'] = False
if 'app_mode' not in st.session_state:
    st.session_state['app_mode'] = 'LOGIN'
if 'vista_gestor' not in st.session_state:
    st.session_state['vista_gestor'] = 'LISTADO'
if 'licitacion_activa' not in st.session_state:
    st.session_state['licitacion_activa'] = None

# 4. Sin nombre visible no se entra
if not st.session_state['usuario_logueado']:
    st.session_state['app_mode'] = 'LOGIN'

# 5. Enrutador Principal con Placeholder Único
main_container = st.empty()

with main_container.container():
    mode = st.session_state['app_mode']
    if not (mode == 'GESTOR' and st.session_state.get('vista_gestor') == 'DETALLE'):
        soltar_chat()

    if mode == 'LOGIN':
        login.render_login(sesion)

    elif mode == 'MENU':
        home.render_menu()

    elif mode == 'MIS_OFERTAS':
        kpi.render_mis_ofertas()

    elif mode == 'GESTOR':
        vista = st.session_state.get('vista_gestor', 'LISTADO')

        if vista == 'LISTADO':
            tenders_list.render_listado()
        elif vista == 'NUEVA':
            tenders_list.render_nueva()
        elif vista == 'DETALLE':
            if st.session_state['licitacion_activa']:
                tenders_detail.render_detalle()
            else:
                st.session_state['vista_gestor'] = 'LISTADO'
                st.rerun()
