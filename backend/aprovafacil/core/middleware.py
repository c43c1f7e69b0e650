# backend/aprovafacil/core/middleware.py

import time
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.types import ASGIApp

from .constants import LoggingConstants
from .logging import bind_request, get_logger, new_request_id, unbind_request
from .security import decode_token_optional, token_from_request

CORRELATION_HEADER = "x-correlation-id"
REQUEST_ID_HEADER = "X-Request-ID"

# A API só serve JSON; o /docs do FastAPI precisa do CDN do swagger-ui
SECURITY_HEADERS = {
    "Strict-Transport-Security": "max-age=63072000; includeSubDomains; preload",
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
    "Content-Security-Policy": (
        "default-src 'self'; frame-ancestors 'none'; img-src 'self' data: https://fastapi.tiangolo.com; "
        "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
        "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net"
    ),
}

UNLOGGED_PATHS = frozenset({"/health", "/favicon.ico"})


def get_client_ip(request: Request) -> str:
    """IP do aluno atrás do proxy: x-forwarded-for, x-real-ip e por fim o socket."""
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()

    return request.client.host if request.client else "unknown"


def status_class(status_code: int) -> str:
    return f"{status_code // 100}xx"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable):
        response = await call_next(request)
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Atribui o request_id da requisição e registra início e fim de cada chamada."""

    def __init__(self, app: ASGIApp):
        super().__init__(app)
        self.logger = get_logger("middleware.request")

    @staticmethod
    def _user_id_from_token(request: Request):
        token = token_from_request(request)
        payload = decode_token_optional(token) if token else None
        return payload.get("sub") if payload else None

    def _log_finished(self, request: Request, status_code: int, duration_ms: float) -> None:
        fields = {
            "method": request.method,
            "path": request.url.path,
            "status_code": status_code,
            "status_class": status_class(status_code),
            "duration_ms": duration_ms,
        }
        if status_code >= 500:
            self.logger.error("Request finished with server error", **fields)
        elif status_code >= 400:
            self.logger.warning("Request finished with client error", **fields)
        elif duration_ms > LoggingConstants.SLOW_REQUEST_THRESHOLD_MS:
            self.logger.warning("Slow request", **fields)
        else:
            self.logger.info("Request finished", **fields)

    async def dispatch(self, request: Request, call_next: Callable):
        # O frontend envia x-correlation-id; reaproveitamos como request_id
        correlation_id = (request.headers.get(CORRELATION_HEADER) or "").strip()
        request_id = correlation_id or new_request_id()
        bind_request(request_id, self._user_id_from_token(request))

        should_log = request.url.path not in UNLOGGED_PATHS
        started = time.perf_counter()
        if should_log:
            self.logger.info(
                "Request started",
                method=request.method,
                path=request.url.path,
                query=str(request.query_params) or None,
                client_ip=get_client_ip(request),
                user_agent=request.headers.get("user-agent"),
            )

        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            if correlation_id:
                response.headers[CORRELATION_HEADER] = correlation_id
            if should_log:
                self._log_finished(request, response.status_code, round((time.perf_counter() - started) * 1000, 2))
            return response
        except Exception as exc:
            if should_log:
                self.logger.error(
                    "Request raised",
                    method=request.method,
                    path=request.url.path,
                    duration_ms=round((time.perf_counter() - started) * 1000, 2),
                    error_type=type(exc).__name__,
                    error=str(exc),
                )
            raise
        finally:
            unbind_request()
