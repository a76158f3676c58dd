import altair as alt
import pandas as pd
import streamlit as st

from backend.services.exceptions import DomainError
from src.config import get_current_user, get_services
from src.logic.dashboard_analytics import calcular_kpis_contratista
from src.utils import boton_volver, fmt_date, fmt_money
from src.views.tenders_detail import ETIQUETA_ESTADO_OFERTA
from src.views.tenders_list import abrir_detalle_licitacion


def render_mis_ofertas():
    # 1. Cabecera con Botón Volver
    c_back, c_tit = st.columns([1, 5])

    with c_back:
        boton_volver('MENU')

    with c_tit:
        st.title("📊 Mis ofertas")

    st.markdown("---")

    # 2. Cálculo de KPIs
    service, _ = get_services()
    try:
        bids = service.list_contractor_bids(get_current_user())
    except DomainError as e:
        st.error(e.message)
        return
    kpis = calcular_kpis_contratista(bids)

    tab_metrics, tab_list, tab_charts = st.tabs(["📊 Métricas Clave", "📋 Ofertas", "📈 Análisis Gráfico"])

    with tab_metrics:
        k1, k2, k3, k4 = st.columns(4)

        with k1:
            st.metric("Ofertas enviadas", kpis['total_count'], delta=f"{kpis['pendientes']} pendientes", delta_color="off")

        with k2:
            st.metric("Tasa de éxito", f"{kpis['win_rate']:.1f}%", help="% de ofertas ganadas sobre las ya resueltas.")

        with k3:
            st.metric("Neto cobrado", fmt_money(kpis['neto_cobrado']), help="Importe menos comisión en trabajos pagados.")

        with k4:
            st.metric("Neto pendiente de pago", fmt_money(kpis['neto_pendiente_pago']))

        st.divider()
        st.metric("Comisiones de plataforma (ofertas ganadas)", fmt_money(kpis['comision_total']))
        st.caption("💡 La comisión es del 5% del importe y queda fijada al enviar la oferta.")

    with tab_list:
        if not bids:
            st.info("Todavía no has enviado ofertas.")
        for b in bids:
            c1, c2, c3, c4 = st.columns([2, 2, 2, 1])
            c1.write(f"{fmt_money(b.amount)} · {b.duration_days} días")
            c2.write(ETIQUETA_ESTADO_OFERTA[b.status])
            c3.write(f"Neto {fmt_money(b.net_earnings)} · {fmt_date(b.created_at)}")
            if c4.button("📂 Abrir", key=f"btn_mi_oferta_{b.id}"):
                abrir_detalle_licitacion(b.tender_id, "")
                st.session_state['app_mode'] = 'GESTOR'
                st.rerun()

    with tab_charts:
        c_chart1, c_chart2 = st.columns(2)

        with c_chart1:
            st.markdown("**Ganancias netas por mes (ofertas ganadas)**")
            if not kpis['df_mensual'].empty:
                st.bar_chart(kpis['df_mensual'], color="#5F7D95")
            else:
                st.info("No hay ofertas ganadas todavía.")

        with c_chart2:
            st.markdown("**Ofertas por estado**")
            if not kpis['df_estados'].empty:
                df = pd.DataFrame({"estado": kpis['df_estados'].index, "ofertas": kpis['df_estados'].values})
                chart = alt.Chart(df).mark_bar().encode(
                    x=alt.X('ofertas', title='Ofertas'),
                    y=alt.Y('estado', sort='-x', title='Estado'),
                    color=alt.Color('estado', legend=None),
                    tooltip=['estado', 'ofertas'],
                )
                st.altair_chart(chart, use_container_width=True)
            else:
                st.info("No hay datos suficientes.")
