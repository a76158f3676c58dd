"""
Capa de servicios: lógica de negocio aislada de HTTP y de la UI.

Los servicios reciben repositorios por inyección y lanzan excepciones
de dominio (ValueError o backend.services.exceptions), no HTTPException.
"""

from backend.services.chat_service import ChatService
from backend.services.tenders_service import TenderService

__all__ = ["ChatService", "TenderService"]
