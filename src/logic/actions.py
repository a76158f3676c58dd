"""
Manejadores de acciones de usuario (botones y formularios).

Cada acción valida, llama al servicio y deja el resultado en el AlertCenter:
ningún error sale de aquí. Devuelven el resultado o None si falló.
"""

import logging
from typing import Any, Callable, Optional, TypeVar

from pydantic import ValidationError

from backend.models import AwardRequest, BidCreate, ChatMessageCreate, CurrentUser, TenderCreate
from backend.services import ChatService, TenderService
from backend.services.exceptions import AwardConflictError, DomainError
from src.logic.alerts import AlertCenter, Severity

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _mensaje_validacion(error: ValidationError) -> str:
    errores = error.errors()
    if not errores:
        return "Datos no válidos."
    msg = str(errores[0].get("msg", "Datos no válidos."))
    return msg.removeprefix("Value error, ")


def ejecutar(alerts: AlertCenter, accion: str, mensaje_ok: str, fn: Callable[[], T]) -> Optional[T]:
    """Ejecuta `fn` y traduce el resultado o el error a una alerta."""
    try:
        result = fn()
    except ValidationError as e:
        alerts.post(_mensaje_validacion(e), Severity.WARNING)
        return None
    except ValueError as e:
        alerts.post(str(e), Severity.WARNING)
        return None
    except AwardConflictError as e:
        alerts.post(f"⚠️ Conflicto: {e.message}", Severity.ERROR)
        return None
    except DomainError as e:
        alerts.post(e.message, Severity.ERROR)
        return None
    except Exception as e:
        logger.error("Error inesperado al %s", accion, exc_info=True)
        alerts.post(f"Error inesperado al {accion}: {e!s}", Severity.ERROR)
        return None
    alerts.post(mensaje_ok, Severity.SUCCESS)
    return result


def publicar_licitacion(service: TenderService, alerts: AlertCenter, user: CurrentUser, datos: dict):
    """datos: title, description, location, regulatory_id, disclaimer_accepted."""
    return ejecutar(
        alerts,
        "publicar la licitación",
        "Licitación publicada correctamente.",
        lambda: service.create_tender(user, TenderCreate(**datos)),
    )


def enviar_oferta(
    service: TenderService,
    alerts: AlertCenter,
    user: CurrentUser,
    tender_id: str,
    importe: Any,
    plazo_dias: Any,
    nombre: Optional[str] = None,
):
    return ejecutar(
        alerts,
        "enviar la oferta",
        "Oferta enviada.",
        lambda: service.place_bid(
            user,
            tender_id,
            BidCreate(amount=importe, duration_days=plazo_dias, contractor_name=nombre),
        ),
    )


def adjudicar(
    service: TenderService,
    alerts: AlertCenter,
    user: CurrentUser,
    tender_id: str,
    bid_id: str,
    confirmacion: str,
):
    return ejecutar(
        alerts,
        "adjudicar la licitación",
        "Licitación adjudicada. El resto de ofertas quedan rechazadas.",
        lambda: service.award_bid(user, tender_id, AwardRequest(bid_id=bid_id, confirmation=confirmacion)),
    )


def confirmar_pago(service: TenderService, alerts: AlertCenter, user: CurrentUser, tender_id: str):
    return ejecutar(
        alerts,
        "confirmar el pago",
        "Pago confirmado.",
        lambda: service.confirm_payment(user, tender_id),
    )


def enviar_mensaje(chat: ChatService, alerts: AlertCenter, user: CurrentUser, tender_id: str, texto: str):
    return ejecutar(
        alerts,
        "enviar el mensaje",
        "Mensaje enviado.",
        lambda: chat.post_message(user, tender_id, ChatMessageCreate(text=texto)),
    )
