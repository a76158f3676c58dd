import streamlit as st

from backend.utils import fmt_date, fmt_money, fmt_num
from src.logic.alerts import AlertCenter, Severity

__all__ = ["navegar_a", "boton_volver", "get_alerts", "render_alerta", "fmt_num", "fmt_money", "fmt_date"]


def navegar_a(destino: str):
    """
    Función centralizada para cambiar de vista.
    Usa esto en lugar de cambiar el session_state manualmente.
    """
    st.session_state['app_mode'] = destino
    st.rerun()


def boton_volver(destino='MENU'):
    """Crea un botón de volver estándar usando la nueva navegación."""
    if st.button("⬅ Volver"):
        navegar_a(destino)


def get_alerts() -> AlertCenter:
    """AlertCenter de la sesión (una alerta activa, caduca a los 4 s)."""
    if 'alertas' not in st.session_state:
        st.session_state['alertas'] = AlertCenter()
    return st.session_state['alertas']


_RENDER_POR_SEVERIDAD = {
    Severity.INFO: st.info,
    Severity.SUCCESS: st.success,
    Severity.WARNING: st.warning,
    Severity.ERROR: st.error,
}


@st.fragment(run_every=1)
def render_alerta():
    """Pinta la alerta activa; se refresca cada segundo para ocultarla al caducar."""
    alerta = get_alerts().current()
    if alerta is None:
        return
    _RENDER_POR_SEVERIDAD[alerta.severity](alerta.message)
