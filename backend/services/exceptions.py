"""
Excepciones de dominio para la capa de servicios.

El router las traduce a HTTPException (403, 404, 409, 503) según el tipo y la
UI las convierte en alertas. No dependen de FastAPI ni de Streamlit.
Los errores de validación de entrada siguen siendo ValueError.
"""


class DomainError(Exception):
    """Base para errores de negocio."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundError(DomainError):
    """Recurso no encontrado o no pertenece al tenant (app_id)."""


class ForbiddenError(DomainError):
    """El usuario no es propietario de la licitación sobre la que actúa."""


class ConflictError(DomainError):
    """Conflicto de concurrencia (ej. estado cambiado entre lectura y escritura)."""


class AwardConflictError(ConflictError):
    """La escritura atómica de adjudicación/pago no cumplió su precondición de estado."""


class InvalidTransitionError(DomainError):
    """Transición no permitida por la máquina de estados."""


class PersistenceError(DomainError):
    """Fallo del almacén (red, rechazo de escritura). Reintentable manualmente."""


class AuthenticationError(DomainError):
    """No se pudo establecer sesión ni con token ni como anónimo."""
