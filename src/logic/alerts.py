"""
Alertas transitorias de la sesión.

Una sola alerta activa con severidad; caduca a los 4 segundos. Publicar otra
la sustituye y reinicia el plazo. No se persiste.
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

ALERT_TTL_SECONDS = 4.0


class Severity(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Alert:
    message: str
    severity: Severity
    posted_at: float


class AlertCenter:
    def __init__(self, ttl: float = ALERT_TTL_SECONDS, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl = ttl
        self._clock = clock
        self._active: Optional[Alert] = None

    def post(self, message: str, severity: Severity = Severity.INFO) -> Alert:
        self._active = Alert(message=str(message), severity=Severity(severity), posted_at=self._clock())
        return self._active

    def current(self) -> Optional[Alert]:
        """Alerta activa, o None si no hay o ya caducó."""
        if self._active is not None and self.remaining() <= 0:
            self._active = None
        return self._active

    def remaining(self) -> float:
        if self._active is None:
            return 0.0
        return max(0.0, self._ttl - (self._clock() - self._active.posted_at))

    def clear(self) -> None:
        self._active = None
