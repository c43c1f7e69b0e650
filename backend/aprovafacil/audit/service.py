from __future__ import annotations
from typing import Any, Optional
import uuid

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from aprovafacil.core.logging import get_logger
from aprovafacil.core.middleware import get_client_ip
from .models import AuditLog

logger = get_logger("audit")

# Ações registradas na trilha de auditoria
LOGIN = "LOGIN"
LOGOUT = "LOGOUT"
REGISTER = "REGISTER"
PASSWORD_RESET = "PASSWORD_RESET"
CREATE = "CREATE"
UPDATE = "UPDATE"
DELETE = "DELETE"
SELECT_CONCURSO = "SELECT_CONCURSO"
COMPLETE_SIMULADO = "COMPLETE_SIMULADO"
COMPLETE_QUESTAO = "COMPLETE_QUESTAO"
CLEAR_CACHE = "CLEAR_CACHE"


def record_audit(
    db: Session,
    action: str,
    table_name: str,
    user_id: Optional[uuid.UUID] = None,
    record_id: Optional[uuid.UUID] = None,
    old_values: Any = None,
    new_values: Any = None,
    request: Optional[Request] = None,
) -> AuditLog:
    """Adiciona uma entrada de auditoria à sessão; o commit fica com o chamador."""
    entry = AuditLog(
        user_id=user_id,
        action=action,
        table_name=table_name,
        record_id=record_id,
        old_values=jsonable_encoder(old_values) if old_values is not None else None,
        new_values=jsonable_encoder(new_values) if new_values is not None else None,
        ip_address=get_client_ip(request) if request is not None else None,
        user_agent=request.headers.get("user-agent") if request is not None else None,
    )
    db.add(entry)
    logger.info("Audit entry recorded", action=action, table_name=table_name, record_id=str(record_id) if record_id else None)
    return entry
