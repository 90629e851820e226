"""API Gateway principal - Punto de entrada de la aplicación"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
import logging
from contextlib import asynccontextmanager

from app.core.config import settings
from shared.database import connection
from shared.database.connection import init_db, close_db
from shared.exception.exception_handlers import register_exception_handlers
from shared.utils.rate_limiter import limiter

# Configurar logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle events de la aplicación"""
    # Startup
    logger.info("Iniciando aplicación...")
    await init_db()
    logger.info("Aplicación iniciada")
    yield
    # Shutdown
    logger.info("Cerrando aplicación...")
    await close_db()
    logger.info("Aplicación cerrada")


# Crear aplicación FastAPI
app = FastAPI(
    title="CampusBuzz API",
    description="Backend API para eventos del campus y venta de tickets con QR",
    version="1.0.0",
    lifespan=lifespan
)

# Las cookies de sesión requieren credentials, así que no se usa "*"
cors_origins = [origin.strip() for origin in settings.CORS_ORIGINS.split(",") if origin.strip()]
logger.info(f"CORS origins configurados: {cors_origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH", "HEAD"],
    allow_headers=["*"],
    max_age=3600,  # Cache preflight requests por 1 hora
)

app.state.limiter = limiter
register_exception_handlers(app)

# Incluir routers de cada servicio
from services.auth.routes.auth import router as auth_router
from services.ticket_validation.routes.validation import router as validation_router
from services.ticket_purchase.routes.tickets import router as tickets_router
from services.event_management.routes.events import router as events_router
from services.notifications.routes.notifications import router as notifications_router
from services.admin.routes.admin import router as admin_router

app.include_router(auth_router, prefix="/api/v1/auth", tags=["auth"])
app.include_router(validation_router, prefix="/api/v1/tickets", tags=["tickets"])
app.include_router(tickets_router, prefix="/api/v1/tickets", tags=["tickets"])
app.include_router(events_router, prefix="/api/v1/events", tags=["events"])
app.include_router(notifications_router, prefix="/api/v1/notifications", tags=["notifications"])
app.include_router(admin_router, prefix="/api/v1/admin", tags=["admin"])


@app.get("/health")
async def health():
    """Health check endpoint"""
    return {"status": "ok", "service": "campusbuzz-api"}


@app.get("/ready")
async def ready():
    """Ready check endpoint - verifica la conexión a la base de datos"""
    if connection.async_session_maker is None:
        return JSONResponse(status_code=503, content={"status": "not ready", "database": "not initialized"})
    try:
        async with connection.async_session_maker() as session:
            await session.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Ready check failed: {e}")
        return JSONResponse(status_code=503, content={"status": "not ready", "database": "unavailable"})
    return {"status": "ready", "database": "connected"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.APP_DEBUG
    )
