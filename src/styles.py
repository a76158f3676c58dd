import streamlit as st


def cargar_estilo_tenderbid():
    """Aplica los estilos CSS de TenderBid y elimina el parpadeo de elementos obsoletos."""

    # --- VARIABLES DE COLOR ---
    color_fondo = "#F4F6F8"
    color_borde_input = "#8FA3B5"
    color_boton_fondo = "#2F5D7C"
    color_boton_hover = "#244A63"
    radio_borde = "6px"

    estilo = f"""
    <style>
        .stApp {{
            background-color: {color_fondo};
            color: #2E3440;
        }}
        header[data-testid="stHeader"] {{
            background-color: {color_fondo} !important;
        }}

        div[data-testid="stTextInput"] input,
        div[data-testid="stTextArea"] textarea {{
            border: 1px solid {color_borde_input} !important;
            border-radius: {radio_borde} !important;
            background-color: #FFFFFF !important;
        }}

        div[data-testid="stButton"] > button,
        div[data-testid="stFormSubmitButton"] > button {{
            background-color: {color_boton_fondo} !important;
            color: #FFFFFF !important;
            border-radius: {radio_borde} !important;
            font-weight: 600 !important;
        }}
        div[data-testid="stButton"] > button:hover,
        div[data-testid="stFormSubmitButton"] > button:hover {{
            background-color: {color_boton_hover} !important;
        }}

        /* Elementos en proceso de borrado (stale) */
        div[data-stale="true"] {{
            display: none !important;
        }}
        .element-container, .stVerticalBlock, .stHorizontalBlock {{
            transition: none !important;
            animation: none !important;
        }}
    </style>
    """
    st.markdown(estilo, unsafe_allow_html=True)
