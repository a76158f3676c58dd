"""
Reparto de comisión de la plataforma.

Comisión fija del 5 % sobre el importe de la oferta, calculada una sola vez al
presentar la oferta y guardada en ella (no se recalcula al adjudicar ni pagar).
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

COMMISSION_RATE = Decimal("0.05")
MONEY_QUANTUM = Decimal("0.01")


def to_money(value: Any) -> Decimal:
    """Convierte a Decimal con 2 decimales (redondeo comercial). Floats pasan por str."""
    if isinstance(value, float):
        value = str(value)
    try:
        number = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValueError(f"Importe no válido: {value!r}") from None
    if not number.is_finite():
        raise ValueError(f"Importe no válido: {value!r}")
    return number.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class FeeSplit:
    amount: Decimal
    platform_fee: Decimal
    net_earnings: Decimal


def compute_fee_split(amount: Any) -> FeeSplit:
    """
    platform_fee = round2(amount * 5 %), net_earnings = amount - platform_fee.
    La suma de ambos es siempre exactamente el importe.
    """
    total = to_money(amount)
    if total <= 0:
        raise ValueError("El importe debe ser mayor que 0.")
    fee = (total * COMMISSION_RATE).quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)
    return FeeSplit(amount=total, platform_fee=fee, net_earnings=total - fee)
