"""
Dependencias de FastAPI: usuario autenticado y servicios.

get_current_user valida el JWT de Supabase Auth (sesiones normales y
anónimas). Si la verificación local falla (clave asimétrica, secreto no
configurado) se valida contra la API de Auth.
"""

from typing import Annotated, Any, Dict, Optional

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from supabase import Client

from backend.config import Settings
from backend.database import get_settings, get_supabase_client
from backend.identity import IdentityGateway
from backend.models import CurrentUser
from backend.services import ChatService, TenderService


security = HTTPBearer(auto_error=False)

DEV_USER_ID = "dev-dummy-user"

SettingsDep = Annotated[Settings, Depends(get_settings)]
ClientDep = Annotated[Client, Depends(get_supabase_client)]


def _get_dummy_user() -> CurrentUser:
    """Usuario dummy para desarrollo cuando SKIP_AUTH=true."""
    return CurrentUser(user_id=DEV_USER_ID, email="dev@localhost", display_name="Dev")


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _user_from_claims(payload: Dict[str, Any]) -> CurrentUser:
    user_id = payload.get("sub")
    if not user_id:
        raise _unauthorized("Token malformado: falta sub.")
    metadata = payload.get("user_metadata") or {}
    return CurrentUser(
        user_id=str(user_id),
        email=payload.get("email") or None,
        display_name=metadata.get("display_name") or metadata.get("full_name"),
        is_anonymous=bool(payload.get("is_anonymous", False)),
    )


def resolve_user(token: Optional[str], settings: Settings, client: Optional[Client]) -> CurrentUser:
    """
    Valida un access token y devuelve el usuario.

    1. Sin token: usuario dummy si SKIP_AUTH, si no 401.
    2. Verificación HS256 con SUPABASE_JWT_SECRET (aud=authenticated).
    3. Fallback: client.auth.get_user(token).
    """
    if not token:
        if settings.skip_auth:
            return _get_dummy_user()
        raise _unauthorized("No se proporcionó token de autorización.")

    if settings.supabase_jwt_secret:
        try:
            payload = jwt.decode(
                token,
                settings.supabase_jwt_secret,
                audience="authenticated",
                algorithms=["HS256"],
            )
            return _user_from_claims(payload)
        except jwt.ExpiredSignatureError:
            raise _unauthorized("Token expirado.")
        except jwt.InvalidTokenError:
            pass

    if client is None:
        raise _unauthorized("Token inválido.")
    try:
        user_resp = client.auth.get_user(token)
    except Exception:
        raise _unauthorized("Token inválido o expirado.")
    if not user_resp or not user_resp.user:
        raise _unauthorized("Token inválido.")
    user = user_resp.user
    metadata = getattr(user, "user_metadata", None) or {}
    return CurrentUser(
        user_id=str(user.id),
        email=user.email or None,
        display_name=metadata.get("display_name") or metadata.get("full_name"),
        is_anonymous=bool(getattr(user, "is_anonymous", False)),
    )


def get_current_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    settings: SettingsDep,
) -> CurrentUser:
    token = credentials.credentials if credentials else None
    # El cliente solo hace falta para el fallback; no se crea si SKIP_AUTH cubre el caso.
    client = None if (not token and settings.skip_auth) else get_supabase_client()
    return resolve_user(token, settings, client)


def get_tender_service(client: ClientDep, settings: SettingsDep) -> TenderService:
    return TenderService.from_settings(client, settings)


def get_chat_service(client: ClientDep, settings: SettingsDep) -> ChatService:
    return ChatService.from_settings(client, settings)


def get_identity(client: ClientDep) -> IdentityGateway:
    return IdentityGateway(client)


# Alias para inyección en routers
CurrentUserDep = Annotated[CurrentUser, Depends(get_current_user)]
TenderServiceDep = Annotated[TenderService, Depends(get_tender_service)]
ChatServiceDep = Annotated[ChatService, Depends(get_chat_service)]
IdentityDep = Annotated[IdentityGateway, Depends(get_identity)]
