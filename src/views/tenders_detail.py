import pandas as pd
import streamlit as st

from backend.models import AWARD_CONFIRMATION_PHRASE, BidStatus, Tender, TenderDetail, TenderStatus
from backend.services.exceptions import DomainError
from backend.services.tenders_service import utcnow
from src.config import get_current_user, get_live_feed, get_services
from src.logic.actions import adjudicar, confirmar_pago, enviar_mensaje, enviar_oferta
from src.utils import fmt_date, fmt_money, get_alerts, render_alerta

ETIQUETA_ESTADO_OFERTA = {
    BidStatus.PENDING: "⏳ Pendiente",
    BidStatus.AWARDED: "🏆 Adjudicada",
    BidStatus.REJECTED: "❌ Rechazada",
    BidStatus.PAID: "✅ Pagada",
}


def cargar_detalle(lic_id: str) -> TenderDetail:
    """Detalle desde el cache en vivo si está listo y contiene la licitación; si no, del servicio."""
    feed = get_live_feed()
    if feed.is_ready:
        fila = next((r for r in feed.tenders.snapshot() if str(r.get("id")) == lic_id), None)
        if fila is not None:
            bids = feed.ranked_bids(lic_id)
            return TenderDetail(tender=Tender.model_validate(fila), bids=bids, lowest_bid=bids[0] if bids else None)
    service, _ = get_services()
    return service.get_tender_detail(lic_id)


def render_detalle():
    # Recuperamos datos de sesión
    lic_data = st.session_state.get('licitacion_activa')
    if not lic_data:
        st.session_state['vista_gestor'] = "LISTADO"
        st.rerun()
        return

    lic_id = lic_data['id']

    with st.container(key="contenedor_vista_detalle"):

        # --- CABECERA DE NAVEGACIÓN ---
        c_btn, c_tit = st.columns([1, 5])
        with c_btn:
            if st.button("⬅ Volver al Listado", key="btn_volver_detalle"):
                st.session_state['licitacion_activa'] = None
                st.session_state['vista_gestor'] = "LISTADO"
                st.rerun()

        # --- CARGAR DATOS FRESCOS ---
        try:
            detalle = cargar_detalle(lic_id)
        except DomainError as e:
            st.error(f"Error cargando licitación: {e.message}")
            return

        with c_tit:
            st.header(detalle.tender.title)

        render_alerta()

        # Resumen y ranking se refrescan solos; los formularios no
        render_resumen_en_vivo(lic_id)

        user = get_current_user()
        tender = detalle.tender
        es_propietario = tender.client_id == user.user_id

        st.divider()
        if tender.status == TenderStatus.OPEN:
            if es_propietario:
                render_adjudicacion(lic_id, detalle)
            else:
                render_formulario_oferta(lic_id, tender)
        elif tender.status == TenderStatus.AWARDED:
            render_pago(lic_id, detalle, es_propietario)
        else:
            st.success(f"✅ Trabajo pagado el {fmt_date(tender.payment_date)}.")

        render_mi_desglose(detalle, user.user_id)

        st.divider()
        render_chat(lic_id)


@st.fragment(run_every=3)
def render_resumen_en_vivo(lic_id: str):
    try:
        detalle = cargar_detalle(lic_id)
    except DomainError as e:
        st.error(e.message)
        return
    tender = detalle.tender

    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Estado", tender.status.value)
    c2.metric("Ofertas", len(detalle.bids))
    c3.metric("Oferta más baja", fmt_money(detalle.lowest_bid.amount) if detalle.lowest_bid else "-")
    if tender.status == TenderStatus.OPEN and tender.is_expired(utcnow()):
        c4.metric("Plazo", fmt_date(tender.deadline), delta="Vencida", delta_color="inverse")
    else:
        c4.metric("Plazo", fmt_date(tender.deadline))

    with st.expander("📄 Datos del trabajo", expanded=False):
        st.write(f"📍 **Ubicación:** {tender.location}")
        st.write(f"🧾 **ID regulatorio:** {tender.regulatory_id}")
        st.write(tender.description)
        st.caption(f"Publicada el {fmt_date(tender.created_at)}")

    st.markdown("#### 📊 Ranking de ofertas (importe ascendente)")
    if not detalle.bids:
        st.info("Todavía no hay ofertas.")
        return

    df = pd.DataFrame(
        [
            {
                "Puesto": i + 1,
                "Contratista": b.contractor_name,
                "Importe": fmt_money(b.amount),
                "Plazo (días)": b.duration_days,
                "Estado": ETIQUETA_ESTADO_OFERTA[b.status],
                "Enviada": fmt_date(b.created_at),
            }
            for i, b in enumerate(detalle.bids)
        ]
    )
    st.dataframe(df, hide_index=True, use_container_width=True)


def render_formulario_oferta(lic_id: str, tender: Tender):
    st.markdown("#### 💼 Presentar oferta")
    if tender.is_expired(utcnow()):
        st.caption("⌛ El plazo indicado ya pasó, pero la licitación sigue abierta a ofertas.")

    with st.form(f"frm_oferta_{lic_id}", clear_on_submit=True):
        c1, c2 = st.columns(2)
        importe = c1.text_input("Importe ofertado (₹)")
        plazo = c2.number_input("Plazo de ejecución (días)", min_value=1, step=1, value=30)
        st.caption("La plataforma retiene una comisión del 5% sobre el importe.")
        if st.form_submit_button("Enviar oferta"):
            service, _ = get_services()
            user = get_current_user()
            enviar_oferta(service, get_alerts(), user, lic_id, importe, plazo, user.public_name)
            st.rerun()


def render_adjudicacion(lic_id: str, detalle: TenderDetail):
    st.markdown("#### 🏆 Adjudicar")
    pendientes = [b for b in detalle.bids if b.status == BidStatus.PENDING]
    if not pendientes:
        st.info("No hay ofertas pendientes que adjudicar.")
        return

    # Ranking ascendente: la primera es la más baja y se propone por defecto
    opciones = {b.id: f"{b.contractor_name} · {fmt_money(b.amount)} · {b.duration_days} días" for b in pendientes}
    with st.form(f"frm_adjudicar_{lic_id}"):
        bid_id = st.selectbox("Oferta", list(opciones), index=0, format_func=opciones.get)
        confirmacion = st.text_input(
            f"Escribe {AWARD_CONFIRMATION_PHRASE} para confirmar. Es irreversible: el resto de ofertas quedarán rechazadas."
        )
        if st.form_submit_button("Adjudicar"):
            service, _ = get_services()
            adjudicar(service, get_alerts(), get_current_user(), lic_id, bid_id, confirmacion)
            st.rerun()


def render_pago(lic_id: str, detalle: TenderDetail, es_propietario: bool):
    tender = detalle.tender
    st.markdown("#### 💳 Pago")
    c1, c2 = st.columns(2)
    c1.metric("Importe adjudicado", fmt_money(tender.awarded_amount))
    c2.metric("Comisión de plataforma (5%)", fmt_money(tender.platform_fee))
    st.caption(f"Adjudicada el {fmt_date(tender.awarded_at)}")

    if not es_propietario:
        st.info("Pendiente de que el cliente confirme el pago.")
        return
    if st.button("Confirmar pago", key=f"btn_pagar_{lic_id}"):
        service, _ = get_services()
        confirmar_pago(service, get_alerts(), get_current_user(), lic_id)
        st.rerun()


def render_mi_desglose(detalle: TenderDetail, user_id: str):
    """Desglose de comisión y neto de las ofertas propias en esta licitación."""
    mias = [b for b in detalle.bids if b.contractor_id == user_id]
    if not mias:
        return
    with st.expander("🧮 Mis ofertas en esta licitación", expanded=False):
        for b in mias:
            st.write(
                f"{ETIQUETA_ESTADO_OFERTA[b.status]} · Importe {fmt_money(b.amount)} · "
                f"Comisión {fmt_money(b.platform_fee)} · Neto {fmt_money(b.net_earnings)}"
            )


def render_chat(lic_id: str):
    st.markdown("#### 💬 Chat")
    _, chat = get_services()
    render_mensajes(lic_id)

    with st.form(f"frm_chat_{lic_id}", clear_on_submit=True):
        texto = st.text_area("Mensaje", height=80)
        if st.form_submit_button("Enviar"):
            enviar_mensaje(chat, get_alerts(), get_current_user(), lic_id, texto)
            st.rerun()


@st.fragment(run_every=3)
def render_mensajes(lic_id: str):
    """Mensajes del chat en vivo; hasta el primer snapshot se leen del servicio."""
    feed = get_live_feed()
    feed.watch_chat(lic_id)
    mensajes = feed.chat_messages(lic_id)
    if mensajes is None:
        _, chat = get_services()
        try:
            mensajes = chat.list_messages(lic_id)
        except DomainError as e:
            st.error(e.message)
            return

    user_id = get_current_user().user_id
    for m in mensajes:
        with st.chat_message("user" if m.sender_id == user_id else "assistant"):
            st.markdown(f"**{m.sender_name}** · {fmt_date(m.created_at)}")
            st.write(m.text)
