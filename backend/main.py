import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backend.database import get_settings
from backend.logging_config import configure_logging
from backend.routers import auth, bids, chat, tenders


settings = get_settings()
configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="TenderBid API",
    version="1.0.0",
    description="API REST del marketplace de licitaciones: publicación, ofertas, adjudicación y pago.",
)


# Manejador global: en producción no exponer detail del 500; solo si DEBUG=true
@app.exception_handler(Exception)
async def global_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.error("Excepción no controlada: %s", exc, exc_info=exc)
    detail = str(exc) if settings.debug else "Internal Server Error"
    return JSONResponse(status_code=500, content={"detail": detail})


app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.allowed_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Registro de routers bajo /api
app.include_router(auth.router, prefix="/api")
app.include_router(tenders.router, prefix="/api")
app.include_router(bids.router, prefix="/api")
app.include_router(chat.router, prefix="/api")


@app.get("/")
def root() -> dict:
    """Health check sencillo para verificar que el backend está levantado."""
    return {"status": "ok", "app_id": settings.app_id}


@app.on_event("startup")
def startup():
    """Log de modo desarrollo al arrancar."""
    if settings.skip_auth:
        logger.warning("Modo desarrollo: SKIP_AUTH=true (API acepta peticiones sin token)")


__all__ = ["app"]
