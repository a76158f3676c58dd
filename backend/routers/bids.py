"""Ofertas del contratista autenticado (panel "mis ofertas")."""

from typing import List

from fastapi import APIRouter

from backend.deps import CurrentUserDep, TenderServiceDep
from backend.models import Bid
from backend.utils import http_error


router = APIRouter(prefix="/bids", tags=["bids"])


@router.get("/mine", response_model=List[Bid])
def my_bids(current_user: CurrentUserDep, service: TenderServiceDep) -> List[Bid]:
    """
    Ofertas presentadas por el usuario con su estado y neto a percibir.

    GET /bids/mine
    """
    try:
        return service.list_contractor_bids(current_user)
    except Exception as e:
        raise http_error(e, "listando tus ofertas") from e
