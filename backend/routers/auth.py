"""
Autenticación: Supabase Auth.

- POST /auth/anonymous: sesión anónima.
- POST /auth/token: sesión a partir de un token; si falla, sesión anónima.
- GET /auth/me: usuario del Bearer token.
"""

from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel, Field

from backend.deps import CurrentUserDep, IdentityDep
from backend.models import CurrentUser, SessionInfo
from backend.utils import http_error


router = APIRouter(prefix="/auth", tags=["auth"])


class TokenLogin(BaseModel):
    access_token: str = Field(..., description="Access token de arranque.")
    refresh_token: Optional[str] = Field(None, description="Refresh token, si se dispone.")


@router.post("/anonymous", response_model=SessionInfo)
def sign_in_anonymous(identity: IdentityDep) -> SessionInfo:
    """
    POST /auth/anonymous
    """
    try:
        return identity.sign_in_anonymous()
    except Exception as e:
        raise http_error(e, "iniciando sesión anónima") from e


@router.post("/token", response_model=SessionInfo)
def sign_in_with_token(payload: TokenLogin, identity: IdentityDep) -> SessionInfo:
    """
    POST /auth/token
    Body: { "access_token": "...", "refresh_token": "..." }

    Si el token no es válido se entra como anónimo (fallback_used=true).
    """
    try:
        return identity.sign_in_with_token(payload.access_token, payload.refresh_token)
    except Exception as e:
        raise http_error(e, "iniciando sesión") from e


@router.get("/me", response_model=CurrentUser)
def me(current_user: CurrentUserDep) -> CurrentUser:
    """Perfil del usuario autenticado."""
    return current_user
