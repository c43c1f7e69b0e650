import asyncio
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from aprovafacil.core.database import engine, get_db
from aprovafacil import models
from aprovafacil.users.router import router as auth_router
from aprovafacil.concursos.router import (
    router as concursos_router,
    categorias_router,
    disciplinas_router,
)
from aprovafacil.preferences.router import router as preference_router, conteudo_router
from aprovafacil.simulados.router import router as simulados_router
from aprovafacil.flashcards.router import router as flashcards_router
from aprovafacil.apostilas.router import router as apostilas_router
from aprovafacil.mapa_assuntos.router import router as mapa_assuntos_router
from aprovafacil.questoes_semanais.router import router as questoes_semanais_router
from aprovafacil.plano_estudos.router import router as plano_estudos_router
from aprovafacil.dashboard.router import router as dashboard_router
from aprovafacil.admin.router import router as admin_router
from aprovafacil.core.exceptions import AprovaFacilException
from aprovafacil.core.exception_handlers import (
    aprovafacil_exception_handler,
    validation_exception_handler,
    rate_limit_exceeded_handler,
    unhandled_exception_handler,
)
from aprovafacil.core.middleware import SecurityHeadersMiddleware, RequestLoggingMiddleware
from aprovafacil.core.rate_limiting import limiter, login_rate_limiter
from aprovafacil.core.settings import settings
from aprovafacil.core.logging import setup_logging, get_logger

# Configura o sistema de logging estruturado
setup_logging(
    log_level=settings.LOG_LEVEL,
    is_development=(settings.ENVIRONMENT == "development")
)

# Logger para o módulo main
logger = get_logger("main")

RATE_LIMIT_CLEANUP_INTERVAL_SECONDS = 60 * 60

# Cria as tabelas no banco de dados
logger.info("Creating database tables")
models.Base.metadata.create_all(bind=engine)
logger.info("Database tables created successfully")


async def _cleanup_login_attempts():
    while True:
        await asyncio.sleep(RATE_LIMIT_CLEANUP_INTERVAL_SECONDS)
        removed = login_rate_limiter.cleanup()
        if removed:
            logger.info("Expired login attempt records removed", removed=removed)


@asynccontextmanager
async def lifespan(app: FastAPI):
    cleanup_task = asyncio.create_task(_cleanup_login_attempts())
    try:
        yield
    finally:
        cleanup_task.cancel()


app = FastAPI(
    title="AprovaFácil API",
    description="API da plataforma de preparação para concursos públicos.",
    version="0.1.0",
    lifespan=lifespan,
)

# slowapi procura o limiter em app.state
app.state.limiter = limiter

logger.info("Configuring CORS middleware", allowed_origins=settings.CORS_ORIGINS)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Request logging middleware (deve ser adicionado antes de outros middlewares)
logger.info("Adding request logging middleware")
app.add_middleware(RequestLoggingMiddleware)

# Security headers middleware
logger.info("Adding security headers middleware")
app.add_middleware(SecurityHeadersMiddleware)

# Exception handlers
logger.info("Configuring exception handlers")
app.add_exception_handler(AprovaFacilException, aprovafacil_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# Inclui os roteadores das diferentes partes da aplicação
logger.info("Registering API routers")
app.include_router(auth_router, prefix="/api/auth", tags=["Auth"])
app.include_router(concursos_router, prefix="/api/concursos", tags=["Concursos"])
app.include_router(categorias_router, prefix="/api/concurso-categorias", tags=["Concursos"])
app.include_router(disciplinas_router, prefix="/api/categoria-disciplinas", tags=["Concursos"])
app.include_router(preference_router, prefix="/api/user/concurso-preference", tags=["Preferences"])
app.include_router(conteudo_router, prefix="/api/conteudo", tags=["Preferences"])
app.include_router(simulados_router, prefix="/api/simulados", tags=["Simulados"])
app.include_router(flashcards_router, prefix="/api/flashcards", tags=["Flashcards"])
app.include_router(apostilas_router, prefix="/api/apostilas", tags=["Apostilas"])
app.include_router(mapa_assuntos_router, prefix="/api/mapa-assuntos", tags=["Mapa de Assuntos"])
app.include_router(questoes_semanais_router, prefix="/api/questoes-semanais", tags=["Questões Semanais"])
app.include_router(plano_estudos_router, prefix="/api/plano-estudos", tags=["Plano de Estudos"])
app.include_router(dashboard_router, prefix="/api", tags=["Dashboard"])
app.include_router(admin_router, prefix="/api/admin", tags=["Admin"])


# Healthcheck
@app.get("/health")
def health_check():
    logger.debug("Health check requested")
    return {"status": "ok"}


@app.get("/api/health")
def api_health_check(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.error("Database health check failed", error=str(exc))
        return JSONResponse(status_code=503, content={"status": "degraded", "database": "error"})
    return {"status": "ok", "database": "ok"}


logger.info(
    "FastAPI application initialized successfully",
    environment=settings.ENVIRONMENT,
    log_level=settings.LOG_LEVEL,
    rate_limiting_enabled=settings.RATE_LIMIT_ENABLED
)
