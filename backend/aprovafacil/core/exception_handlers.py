# backend/aprovafacil/core/exception_handlers.py

from datetime import datetime, timezone
from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from slowapi.errors import RateLimitExceeded

from .exceptions import (
    AprovaFacilException,
    AuthenticationError,
    AuthorizationError,
    ValidationError as DomainValidationError,
    NotFoundError,
    ConflictError,
    BusinessLogicError,
    RateLimitError,
    ExternalServiceError,
    ServiceUnavailableError,
)
from .logging import get_logger

logger = get_logger("core.exception_handlers")


def get_status_code_for_exception(exc: AprovaFacilException) -> int:
    """Mapeia tipos de exceção para códigos HTTP apropriados"""
    if isinstance(exc, AuthenticationError):
        return 401
    elif isinstance(exc, AuthorizationError):
        return 403
    elif isinstance(exc, DomainValidationError):
        return 400
    elif isinstance(exc, NotFoundError):
        return 404
    elif isinstance(exc, ConflictError):
        return 409
    elif isinstance(exc, BusinessLogicError):
        return 422  # Unprocessable Entity
    elif isinstance(exc, RateLimitError):
        return 429
    elif isinstance(exc, ExternalServiceError):
        return 502
    elif isinstance(exc, ServiceUnavailableError):
        return 503
    else:
        return 500  # Internal Server Error


def error_body(request: Request, code: str, message: str, details: dict = None) -> dict:
    return {
        "success": False,
        "error": {
            "code": code,
            "message": message,
            "details": details or {},
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "path": str(request.url.path),
        },
    }


async def aprovafacil_exception_handler(request: Request, exc: AprovaFacilException):
    """Handler para todas as exceções customizadas da aplicação"""
    status_code = get_status_code_for_exception(exc)

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "Application exception",
        error_code=exc.error_code,
        message=exc.message,
        details=exc.details,
        status_code=status_code,
        path=request.url.path,
        method=request.method,
    )

    headers = None
    if isinstance(exc, RateLimitError):
        headers = {"Retry-After": str(exc.details.get("retry_after_seconds", 0))}

    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(error_body(request, exc.error_code, exc.message, exc.details)),
        headers=headers,
    )


def get_user_friendly_validation_message(error: dict) -> str:
    """Converte erros técnicos do Pydantic em mensagens user-friendly"""
    error_type = error.get("type", "")

    if error_type in {"string_too_short", "string_too_long"}:
        return "Tamanho de texto inválido"
    elif error_type in {"missing", "value_error.missing"}:
        return "Campo obrigatório ausente"
    elif error_type in {"int_parsing", "int_type"}:
        return "Número inteiro inválido"
    elif error_type in {"float_parsing", "float_type"}:
        return "Número decimal inválido"
    elif error_type in {"bool_parsing", "bool_type"}:
        return "Valor booleano inválido"
    elif error_type in {"uuid_parsing", "uuid_type"}:
        return "Identificador inválido"
    elif error_type.startswith("date") or error_type.startswith("datetime"):
        return "Data inválida"
    elif error_type in {"greater_than", "greater_than_equal", "less_than", "less_than_equal"}:
        return "Valor fora do intervalo permitido"
    elif "email" in error_type.lower() or "email" in error.get("msg", "").lower():
        return "Formato de email inválido"
    elif "url" in error_type.lower():
        return "Formato de URL inválido"
    else:
        return error.get("msg", "Valor inválido")


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handler melhorado para erros de validação do Pydantic"""
    logger.warning(
        "Pydantic Validation Error",
        errors=[{"loc": e.get("loc"), "type": e.get("type")} for e in exc.errors()],
        path=request.url.path,
        method=request.method,
    )

    user_friendly_errors = []
    for error in exc.errors():
        field_name = " > ".join(str(loc) for loc in error["loc"])
        user_friendly_errors.append({
            "field": field_name,
            "message": get_user_friendly_validation_message(error),
            "invalid_value": error.get("input"),
        })

    body = error_body(
        request,
        "VALIDATION_ERROR",
        "Dados enviados contêm erros",
        {"field_errors": user_friendly_errors},
    )
    return JSONResponse(status_code=422, content=jsonable_encoder(body))


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """Resposta padronizada para limites por rota do slowapi"""
    logger.warning("Route rate limit exceeded", path=request.url.path, limit=str(exc.detail))
    response = JSONResponse(
        status_code=429,
        content=error_body(
            request,
            "RATE_LIMIT_EXCEEDED",
            "Muitas requisições. Tente novamente mais tarde.",
            {"limit": str(exc.detail)},
        ),
    )
    limiter = getattr(request.app.state, "limiter", None)
    view_rate_limit = getattr(request.state, "view_rate_limit", None)
    if limiter is not None and view_rate_limit is not None:
        response = limiter._inject_headers(response, view_rate_limit)
    return response


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(
        "Unhandled exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        method=request.method,
    )
    return JSONResponse(
        status_code=500,
        content=error_body(request, "INTERNAL_ERROR", "Erro interno do servidor"),
    )
