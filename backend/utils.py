"""
Utilidades compartidas para el backend.

Incluye la traducción de excepciones de dominio a HTTPException que usan
todos los routers.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Union

from fastapi import HTTPException, status

from backend.services.exceptions import (
    AuthenticationError,
    ConflictError,
    DomainError,
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    PersistenceError,
)

_STATUS_BY_ERROR = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ForbiddenError, status.HTTP_403_FORBIDDEN),
    (ConflictError, status.HTTP_409_CONFLICT),
    (InvalidTransitionError, status.HTTP_409_CONFLICT),
    (PersistenceError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED),
)


def http_error(exc: Exception, context: str) -> HTTPException:
    """
    HTTPException equivalente a `exc`:
    ValueError → 400, errores de dominio según tipo, resto → 500 con contexto.
    """
    if isinstance(exc, DomainError):
        for error_type, code in _STATUS_BY_ERROR:
            if isinstance(exc, error_type):
                return HTTPException(status_code=code, detail=exc.message)
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message)
    if isinstance(exc, ValueError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Error {context}: {exc!s}",
    )


def fmt_num(valor: Any) -> str:
    """Convierte un valor numérico a formato español (punto miles, coma decimal)."""
    if valor is None or str(valor).strip() == "":
        return "0,00"
    try:
        val = Decimal(str(valor))
        return f"{val:,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")
    except (ArithmeticError, ValueError, TypeError):
        return "0,00"


def fmt_money(valor: Any, symbol: str = "₹") -> str:
    return f"{symbol} {fmt_num(valor)}"


def fmt_date(valor: Union[str, date, datetime, None]) -> str:
    """Convierte fecha (ISO o date/datetime) a formato europeo DD/MM/YYYY."""
    if not valor:
        return ""
    try:
        if isinstance(valor, (date, datetime)):
            return valor.strftime("%d/%m/%Y")
        if isinstance(valor, str):
            valor_clean = valor.split("T")[0]
            dt = datetime.strptime(valor_clean, "%Y-%m-%d")
            return dt.strftime("%d/%m/%Y")
        return str(valor)
    except Exception:
        return str(valor)
