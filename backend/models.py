from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

# Días de vigencia de una licitación desde su publicación (política fija)
TENDER_DEADLINE_DAYS = 7

# Frase que el cliente debe teclear para adjudicar (acción irreversible)
AWARD_CONFIRMATION_PHRASE = "AWARD"

MAX_CHAT_MESSAGE_LENGTH = 2000

LIABILITY_DISCLAIMER = (
    "TenderBid es únicamente una plataforma de conexión entre clientes y contratistas. "
    "No se responsabiliza de la calidad del trabajo, del cumplimiento fiscal de las partes "
    "ni de disputas posteriores a la entrega."
)


# ----- Estados -----


class TenderStatus(str, Enum):
    """Estados de una licitación. Flujo solo hacia delante: Open → Awarded → Paid."""

    OPEN = "Open"
    AWARDED = "Awarded"
    PAID = "Paid"


class BidStatus(str, Enum):
    """Estados de una oferta. Rejected y Paid son terminales."""

    PENDING = "pending"
    AWARDED = "Awarded"
    REJECTED = "Rejected"
    PAID = "Paid"


def _required_text(value: Any, field_name: str) -> str:
    text = str(value or "").strip()
    if not text:
        raise ValueError(f"{field_name} es obligatorio.")
    return text


def _decimal_from_store(value: Any) -> Any:
    """PostgREST devuelve numeric como número JSON; se evita pasar por float binario."""
    if isinstance(value, float):
        return Decimal(str(value))
    return value


# ----- Auth -----


class CurrentUser(BaseModel):
    """
    Usuario autenticado inyectado por get_current_user.
    Usado internamente en dependencias, routers y vistas.
    """

    user_id: str = Field(..., description="UUID del usuario (auth.users.id).")
    email: Optional[str] = Field(None, description="Correo electrónico (vacío en sesiones anónimas).")
    display_name: Optional[str] = Field(None, description="Nombre visible en ofertas y chat.")
    is_anonymous: bool = Field(False, description="Sesión anónima.")

    @property
    def public_name(self) -> str:
        """Nombre a mostrar; si no hay, versión corta del user_id."""
        if self.display_name and self.display_name.strip():
            return self.display_name.strip()
        return f"Usuario {self.user_id[:8]}"


class SessionInfo(BaseModel):
    """Respuesta de los endpoints de inicio de sesión."""

    user_id: str
    access_token: Optional[str] = None
    is_anonymous: bool = False
    fallback_used: bool = Field(False, description="True si el token falló y se entró como anónimo.")


# ----- Licitaciones (tenders) -----


class TenderCreate(BaseModel):
    """Payload para publicar una licitación. Estado inicial fijo: Open."""

    title: str = Field(..., description="Título del trabajo.")
    description: str = Field(..., description="Descripción del trabajo.")
    location: str = Field(..., description="Ubicación de la obra.")
    regulatory_id: str = Field(..., description="Identificador regulatorio (licencia, permiso, etc.).")
    disclaimer_accepted: bool = Field(False, description="Aceptación expresa del aviso de responsabilidad.")

    @field_validator("title", "description", "location", "regulatory_id", mode="before")
    @classmethod
    def campos_obligatorios(cls, value: Any, info) -> str:
        return _required_text(value, info.field_name)

    @model_validator(mode="after")
    def validar_aviso(self) -> "TenderCreate":
        if self.disclaimer_accepted is not True:
            raise ValueError("Debes aceptar el aviso de responsabilidad para publicar la licitación.")
        return self


class Tender(BaseModel):
    """Licitación tal como la devuelve el almacén (modelo de lectura)."""

    id: str
    client_id: str
    title: str
    description: str = ""
    location: str = ""
    regulatory_id: str = ""
    status: TenderStatus = TenderStatus.OPEN
    created_at: datetime
    deadline: datetime
    awarded_bid_id: Optional[str] = None
    awarded_contractor_id: Optional[str] = None
    awarded_amount: Optional[Decimal] = None
    platform_fee: Optional[Decimal] = None
    awarded_at: Optional[datetime] = None
    payment_date: Optional[datetime] = None

    @field_validator("awarded_amount", "platform_fee", mode="before")
    @classmethod
    def importes_exactos(cls, value: Any) -> Any:
        return _decimal_from_store(value)

    @field_validator("id", "client_id", "awarded_bid_id", "awarded_contractor_id", mode="before")
    @classmethod
    def ids_como_texto(cls, value: Any) -> Any:
        return str(value) if value is not None else None

    def is_expired(self, now: datetime) -> bool:
        """Plazo vencido (solo informativo: no cambia el estado)."""
        return now >= self.deadline


# ----- Ofertas (bids) -----


class BidCreate(BaseModel):
    """Payload para presentar una oferta. Importe y plazo deben ser > 0."""

    amount: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2, description="Importe ofertado.")
    duration_days: int = Field(..., gt=0, description="Plazo de ejecución en días.")
    contractor_name: Optional[str] = Field(None, description="Nombre visible del contratista.")

    @field_validator("amount", mode="before")
    @classmethod
    def importe_numerico(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
            if not value:
                raise ValueError("El importe es obligatorio.")
        return _decimal_from_store(value)

    @field_validator("duration_days", mode="before")
    @classmethod
    def plazo_numerico(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
            if not value:
                raise ValueError("El plazo es obligatorio.")
        return value


class Bid(BaseModel):
    """Oferta tal como la devuelve el almacén. Comisión y neto congelados al crearla."""

    id: str
    tender_id: str
    contractor_id: str
    contractor_name: str = ""
    amount: Decimal
    duration_days: int
    platform_fee: Decimal
    net_earnings: Decimal
    status: BidStatus = BidStatus.PENDING
    created_at: datetime

    @field_validator("amount", "platform_fee", "net_earnings", mode="before")
    @classmethod
    def importes_exactos(cls, value: Any) -> Any:
        return _decimal_from_store(value)

    @field_validator("id", "tender_id", "contractor_id", mode="before")
    @classmethod
    def ids_como_texto(cls, value: Any) -> str:
        return str(value)


class AwardRequest(BaseModel):
    """Payload de adjudicación: oferta elegida y frase de confirmación tecleada."""

    bid_id: str = Field(..., description="ID de la oferta a adjudicar.")
    confirmation: str = Field(..., description=f"Debe ser exactamente '{AWARD_CONFIRMATION_PHRASE}'.")

    @model_validator(mode="after")
    def validar_confirmacion(self) -> "AwardRequest":
        if not str(self.bid_id or "").strip():
            raise ValueError("Selecciona la oferta a adjudicar.")
        if (self.confirmation or "").strip() != AWARD_CONFIRMATION_PHRASE:
            raise ValueError(
                f"Escribe '{AWARD_CONFIRMATION_PHRASE}' para confirmar la adjudicación (acción irreversible)."
            )
        return self


# ----- Chat -----


class ChatMessageCreate(BaseModel):
    """Mensaje nuevo en el chat de una licitación."""

    text: str = Field(..., description="Texto del mensaje.")
    sender_name: Optional[str] = None

    @field_validator("text", mode="before")
    @classmethod
    def texto_valido(cls, value: Any) -> str:
        text = _required_text(value, "text")
        if len(text) > MAX_CHAT_MESSAGE_LENGTH:
            raise ValueError(f"El mensaje no puede superar {MAX_CHAT_MESSAGE_LENGTH} caracteres.")
        return text


class ChatMessage(BaseModel):
    """Mensaje de chat (inmutable una vez escrito)."""

    id: str
    tender_id: str
    sender_id: str
    sender_name: str = ""
    text: str
    created_at: datetime

    @field_validator("id", "tender_id", "sender_id", mode="before")
    @classmethod
    def ids_como_texto(cls, value: Any) -> str:
        return str(value)


# ----- Vistas compuestas -----


class TenderSummary(BaseModel):
    """Licitación con su oferta más baja (listados)."""

    tender: Tender
    lowest_bid: Optional[Bid] = None
    bid_count: int = 0


class TenderDetail(BaseModel):
    """Licitación con sus ofertas ordenadas por importe ascendente."""

    tender: Tender
    bids: List[Bid] = Field(default_factory=list)
    lowest_bid: Optional[Bid] = None
