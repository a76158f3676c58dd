"""
Configuración del backend.

Se carga una sola vez desde `.env` (raíz del proyecto) y variables de entorno
y se pasa de forma explícita a servicios y repositorios: ningún módulo crea
el cliente de Supabase al importarse.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Tuple

from dotenv import load_dotenv

_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"

DEFAULT_APP_ID = "default-app-id"

_TRUE_VALUES = ("true", "1", "yes")


def _flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in _TRUE_VALUES


@dataclass(frozen=True)
class Settings:
    """Parámetros de arranque (credenciales, tenant y sesión inicial opcional)."""

    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    supabase_jwt_secret: Optional[str] = None
    # Namespace de todas las colecciones (app_id en cada tabla)
    app_id: str = DEFAULT_APP_ID
    initial_auth_token: Optional[str] = None
    initial_refresh_token: Optional[str] = None
    # Desarrollo: si es True, la API acepta peticiones sin token (usuario dummy).
    skip_auth: bool = False
    debug: bool = False
    log_level: str = "INFO"
    allowed_origins: Tuple[str, ...] = field(
        default=("http://localhost:8501", "http://127.0.0.1:8501")
    )

    def require_supabase(self) -> Tuple[str, str]:
        """
        Devuelve (url, key) validados. Lanza RuntimeError con instrucciones si
        faltan o si la URL no es la del proyecto.
        """
        if not self.supabase_url or not self.supabase_key:
            raise RuntimeError(
                "Faltan las credenciales de Supabase. En el archivo .env (raíz del proyecto) define:\n"
                "  SUPABASE_URL=https://TU_PROJECT_REF.supabase.co\n"
                "  SUPABASE_KEY=eyJhbGciOiJIUzI1NiIsInR5cCI6... (anon o service_role key)\n"
                "Obtén ambos en: Supabase → tu proyecto → Settings → API."
            )
        url = self.supabase_url.strip()
        if not url.startswith("http://") and not url.startswith("https://"):
            raise RuntimeError(
                "SUPABASE_URL debe ser la URL completa del proyecto, por ejemplo:\n"
                "  https://abcdefgh.supabase.co\n"
                "En Settings → API copia 'Project URL' en SUPABASE_URL."
            )
        return url, self.supabase_key.strip()


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Construye Settings desde el entorno. Si no se pasa `environ`, carga antes
    el `.env` de la raíz del proyecto y el del cwd.
    """
    if environ is None:
        load_dotenv(dotenv_path=_ENV_PATH)
        # Por si se ejecuta desde otra ruta, intentar también el cwd
        load_dotenv()
        environ = os.environ

    origins_raw = environ.get("ALLOWED_ORIGINS", "")
    origins = tuple(o.strip() for o in origins_raw.split(",") if o.strip())

    kwargs = {}
    if origins:
        kwargs["allowed_origins"] = origins

    return Settings(
        supabase_url=environ.get("SUPABASE_URL"),
        supabase_key=environ.get("SUPABASE_KEY"),
        supabase_jwt_secret=environ.get("SUPABASE_JWT_SECRET"),
        app_id=(environ.get("TENDERBID_APP_ID") or DEFAULT_APP_ID).strip(),
        initial_auth_token=environ.get("INITIAL_AUTH_TOKEN") or None,
        initial_refresh_token=environ.get("INITIAL_REFRESH_TOKEN") or None,
        skip_auth=_flag(environ.get("SKIP_AUTH")),
        debug=_flag(environ.get("DEBUG")),
        log_level=(environ.get("LOG_LEVEL") or "INFO").upper(),
        **kwargs,
    )
