"""
Logging estruturado da API AprovaFácil (structlog).

Cada linha de log carrega o request_id da requisição e, quando o usuário está
autenticado, o user_id. Campos com credenciais (senha, tokens, cookies de
sessão) nunca chegam ao destino do log, e e-mails são mascarados para que os
logs possam ser compartilhados sem expor dados pessoais dos alunos.
"""

import logging
import sys
import uuid
from contextvars import ContextVar
from typing import Optional

import structlog

request_id_var: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
user_id_var: ContextVar[Optional[str]] = ContextVar('user_id', default=None)

# Qualquer chave que contenha um destes trechos é substituída por [REDACTED]
SENSITIVE_FIELDS = (
    'password', 'senha', 'token', 'secret', 'api_key', 'authorization', 'cookie',
)
EMAIL_FIELDS = ('email',)
REDACTED = '[REDACTED]'

NOISY_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "celery.app.trace": logging.INFO,
    "passlib": logging.ERROR,
}


def new_request_id() -> str:
    return f"req_{uuid.uuid4().hex[:12]}"


def bind_request(request_id: str, user_id: Optional[str] = None) -> None:
    request_id_var.set(request_id)
    user_id_var.set(user_id)


def bind_user(user_id) -> None:
    """Associa o usuário autenticado aos logs do restante da requisição."""
    user_id_var.set(str(user_id) if user_id is not None else None)


def unbind_request() -> None:
    request_id_var.set(None)
    user_id_var.set(None)


def mask_email(value):
    """maria@aprovafacil.com.br -> ma***@aprovafacil.com.br"""
    if not isinstance(value, str) or '@' not in value:
        return value
    local, _, domain = value.partition('@')
    return f"{local[:2]}***@{domain}"


def scrub(data):
    if isinstance(data, dict):
        cleaned = {}
        for key, value in data.items():
            lowered = str(key).lower()
            if any(field in lowered for field in SENSITIVE_FIELDS):
                cleaned[key] = REDACTED
            elif lowered in EMAIL_FIELDS:
                cleaned[key] = mask_email(value)
            else:
                cleaned[key] = scrub(value)
        return cleaned
    if isinstance(data, (list, tuple)):
        return [scrub(item) for item in data]
    return data


def _inject_request_context(logger, method_name, event_dict):
    request_id = request_id_var.get()
    if request_id:
        event_dict.setdefault('request_id', request_id)
    user_id = user_id_var.get()
    if user_id:
        event_dict.setdefault('user_id', user_id)
    return event_dict


def _add_severity(logger, method_name, event_dict):
    level = (event_dict.get('level') or method_name or '').lower()
    event_dict['severity'] = {'warn': 'WARNING', 'exception': 'ERROR'}.get(level, level.upper())
    return event_dict


def _scrub_event(logger, method_name, event_dict):
    return scrub(event_dict)


def build_processors(is_development: bool) -> list:
    processors = [
        _inject_request_context,
        structlog.stdlib.add_log_level,
        _add_severity,
        _scrub_event,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
    ]
    if is_development:
        processors += [structlog.processors.StackInfoRenderer(), structlog.dev.ConsoleRenderer(colors=True)]
    else:
        processors += [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    return processors


def setup_logging(log_level: str = "INFO", is_development: bool = True) -> None:
    """Configura structlog sobre o logging da stdlib.

    Em desenvolvimento usa o renderer colorido do console; em produção emite
    uma linha JSON por evento.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )

    structlog.configure(
        processors=build_processors(is_development),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    for name, level in NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(level)


def get_logger(name: str = None, **initial_context) -> structlog.stdlib.BoundLogger:
    logger = structlog.get_logger(name)
    return logger.bind(**initial_context) if initial_context else logger
