import streamlit as st

from backend.models import LIABILITY_DISCLAIMER, TenderStatus
from backend.services.exceptions import DomainError
from backend.services.tenders_service import utcnow
from src.config import get_current_user, get_live_feed, get_services
from src.logic.actions import publicar_licitacion
from src.utils import boton_volver, fmt_date, fmt_money, get_alerts, render_alerta

FILTROS = {
    "Todas": {},
    "Abiertas": {"status": TenderStatus.OPEN},
    "Mis licitaciones": {"mine": True},
}

ICONO_ESTADO = {
    TenderStatus.OPEN: "🟢 Abierta",
    TenderStatus.AWARDED: "🟡 Adjudicada",
    TenderStatus.PAID: "✅ Pagada",
}


def ir_a_nueva_licitacion():
    st.session_state['vista_gestor'] = "NUEVA"


def volver_al_listado():
    st.session_state['vista_gestor'] = "LISTADO"


def abrir_detalle_licitacion(id_lic, titulo):
    st.session_state['licitacion_activa'] = {'id': id_lic, 'titulo': titulo}
    st.session_state['vista_gestor'] = "DETALLE"


def cargar_resumenes(filtro: str):
    """
    Resúmenes desde el cache en vivo si ya recibió datos; si no, lectura
    directa del servicio.
    """
    opciones = FILTROS[filtro]
    user = get_current_user()
    status = opciones.get("status")
    client_id = user.user_id if opciones.get("mine") else None

    feed = get_live_feed()
    if feed.is_ready:
        return feed.tender_summaries(status=status, client_id=client_id), True

    service, _ = get_services()
    return service.list_tenders(status=status, client_id=client_id), False


@st.fragment(run_every=3)
def render_tabla(filtro: str):
    try:
        resumenes, en_vivo = cargar_resumenes(filtro)
    except DomainError as e:
        st.error(e.message)
        return

    st.caption("🔴 En vivo" if en_vivo else "Cargando datos en vivo…")

    if not resumenes:
        st.info("No se encontraron licitaciones.")
        return

    # Cabeceras de la tabla
    c1, c2, c3, c4, c5 = st.columns([3, 2, 2, 2, 1.5])
    c1.markdown("**Trabajo**")
    c2.markdown("**Estado**")
    c3.markdown("**Oferta más baja**")
    c4.markdown("**Plazo**")
    c5.markdown("**Acción**")
    st.markdown("---")

    ahora = utcnow()
    for resumen in resumenes:
        lic = resumen.tender
        c1, c2, c3, c4, c5 = st.columns([3, 2, 2, 2, 1.5])

        c1.write(f"*{lic.title}*  \n📍 {lic.location}")
        c2.write(ICONO_ESTADO[lic.status])
        if resumen.lowest_bid:
            c3.write(f"{fmt_money(resumen.lowest_bid.amount)} ({resumen.bid_count} ofertas)")
        else:
            c3.write("Sin ofertas")

        if lic.status == TenderStatus.OPEN and lic.is_expired(ahora):
            c4.write(f"⌛ Vencida ({fmt_date(lic.deadline)})")
        else:
            c4.write(fmt_date(lic.deadline))

        c5.button(
            "📂 Abrir",
            key=f"btn_{lic.id}",
            on_click=abrir_detalle_licitacion,
            args=(lic.id, lic.title),
        )


def render_listado():
    # Usamos un contenedor único para aislar el renderizado
    with st.container():

        # --- 1. CABECERA ---
        c_back, c_tit, c_new = st.columns([1, 4, 1.5])

        with c_back:
            boton_volver('MENU')

        with c_tit:
            st.title("📂 Licitaciones")

        with c_new:
            st.button("➕ Nueva Licitación", on_click=ir_a_nueva_licitacion, key="btn_nueva_lic_principal")

        render_alerta()

        # --- 2. FILTROS Y LISTADO ---
        filtro = st.radio("Mostrar", list(FILTROS), horizontal=True, key="filtro_listado")
        render_tabla(filtro)


def render_nueva():
    with st.container():
        st.button("⬅ Cancelar y Volver al Listado", on_click=volver_al_listado)

        st.header("📝 Nueva Licitación")
        render_alerta()

        with st.form("frm_nueva"):
            titulo = st.text_input("Título del trabajo")
            c1, c2 = st.columns(2)
            ubicacion = c1.text_input("Ubicación")
            regulatorio = c2.text_input("ID regulatorio (licencia / permiso)")
            desc = st.text_area("Descripción")

            st.caption(LIABILITY_DISCLAIMER)
            aviso = st.checkbox("He leído y acepto el aviso de responsabilidad")

            if st.form_submit_button("Publicar"):
                service, _ = get_services()
                datos = {
                    "title": titulo,
                    "description": desc,
                    "location": ubicacion,
                    "regulatory_id": regulatorio,
                    "disclaimer_accepted": aviso,
                }
                creada = publicar_licitacion(service, get_alerts(), get_current_user(), datos)
                if creada:
                    abrir_detalle_licitacion(creada.id, creada.title)
                    st.rerun()
