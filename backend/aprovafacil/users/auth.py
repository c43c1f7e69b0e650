from __future__ import annotations
from datetime import datetime, timedelta, timezone
from typing import Annotated, Optional
import hashlib
import uuid

import jwt
from fastapi import Depends, Request
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from aprovafacil.core.constants import AuthConstants
from aprovafacil.core.database import get_db
from aprovafacil.core.security import token_from_request
from aprovafacil.core.exceptions import (
    AdminRequiredError,
    InvalidTokenError,
    NotAuthenticatedError,
    TokenExpiredError,
)
from aprovafacil.core.logging import bind_user, get_logger
from aprovafacil.core.settings import settings
from aprovafacil.users import models

logger = get_logger("users.auth")

# Configuração do Passlib para hashing de senhas
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    try:
        return pwd_context.verify(plain_password, password_hash)
    except ValueError:
        # Hash corrompido ou em formato desconhecido
        return False


def _password_fingerprint(password_hash: str) -> str:
    # Token de redefinição deixa de valer assim que a senha muda
    return hashlib.sha256(password_hash.encode()).hexdigest()[:16]


def _encode(claims: dict, expires_delta: timedelta) -> str:
    now = datetime.now(timezone.utc)
    payload = {**claims, "iat": now, "exp": now + expires_delta, "jti": uuid.uuid4().hex}
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def create_access_token(user: models.User, expires_delta: Optional[timedelta] = None) -> str:
    return _encode(
        {"sub": str(user.id), "email": user.email, "role": user.role.value, "type": AuthConstants.TOKEN_TYPE_ACCESS},
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )


def create_refresh_token(user: models.User, expires_delta: Optional[timedelta] = None) -> str:
    return _encode(
        {"sub": str(user.id), "type": AuthConstants.TOKEN_TYPE_REFRESH},
        expires_delta or timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
    )


def create_password_reset_token(user: models.User, expires_delta: Optional[timedelta] = None) -> str:
    return _encode(
        {
            "sub": str(user.id),
            "type": AuthConstants.TOKEN_TYPE_PASSWORD_RESET,
            "pwd": _password_fingerprint(user.password_hash),
        },
        expires_delta or timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES),
    )


def decode_token(token: str, expected_type: str) -> dict:
    """Valida assinatura, expiração e tipo do token."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise TokenExpiredError()
    except jwt.PyJWTError:
        raise InvalidTokenError()

    if payload.get("type") != expected_type or not payload.get("sub"):
        raise InvalidTokenError()
    return payload


def extract_token(request: Request) -> Optional[str]:
    return token_from_request(request)


def _load_user(db: Session, payload: dict) -> models.User:
    try:
        user_id = uuid.UUID(payload["sub"])
    except (ValueError, TypeError):
        raise InvalidTokenError()
    user = db.get(models.User, user_id)
    if user is None:
        raise InvalidTokenError()
    return user


def get_user_from_reset_token(db: Session, token: str) -> models.User:
    payload = decode_token(token, AuthConstants.TOKEN_TYPE_PASSWORD_RESET)
    user = _load_user(db, payload)
    if payload.get("pwd") != _password_fingerprint(user.password_hash):
        raise InvalidTokenError()
    return user


def get_user_from_refresh_token(db: Session, token: str) -> models.User:
    return _load_user(db, decode_token(token, AuthConstants.TOKEN_TYPE_REFRESH))


def get_current_user(request: Request, db: Session = Depends(get_db)) -> models.User:
    token = extract_token(request)
    if not token:
        raise NotAuthenticatedError()

    user = _load_user(db, decode_token(token, AuthConstants.TOKEN_TYPE_ACCESS))
    bind_user(user.id)
    return user


def require_admin(current_user: Annotated[models.User, Depends(get_current_user)]) -> models.User:
    if not current_user.is_admin:
        logger.warning("Admin route denied", user_id=str(current_user.id))
        raise AdminRequiredError()
    return current_user


CurrentUser = Annotated[models.User, Depends(get_current_user)]
AdminUser = Annotated[models.User, Depends(require_admin)]
