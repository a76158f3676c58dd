"""
Repositorios con aislamiento por aplicación (app_id).

Todos los repositorios heredan de BaseTenantRepository y aplican
siempre el filtro app_id para no mezclar datos entre despliegues.
"""

from backend.repositories.base_repository import BaseTenantRepository
from backend.repositories.bids_repository import BidsRepository
from backend.repositories.chat_repository import ChatRepository
from backend.repositories.tenders_repository import TendersRepository

__all__ = ["BaseTenantRepository", "BidsRepository", "ChatRepository", "TendersRepository"]
