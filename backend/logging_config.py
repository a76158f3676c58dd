"""
Configuración de logging del backend y de la UI.

Se usa logging de la librería estándar; cada módulo obtiene su logger con
logging.getLogger(__name__).
"""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configura el logger raíz. Niveles desconocidos caen a INFO."""
    numeric = logging.getLevelName(str(level).upper())
    if not isinstance(numeric, int):
        numeric = logging.INFO
    logging.basicConfig(level=numeric, format=LOG_FORMAT)
    # httpx registra cada petición a PostgREST en INFO
    logging.getLogger("httpx").setLevel(max(numeric, logging.WARNING))
