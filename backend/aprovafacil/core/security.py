# backend/aprovafacil/core/security.py

from __future__ import annotations
from typing import Optional
import html
import re
import unicodedata

import jwt

from .constants import AuthConstants, ValidationConstants
from .settings import settings

PASSWORD_RE = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d).{8,}$")
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
SLUG_UNSAFE_RE = re.compile(r"[^a-z0-9]+")


class InputValidator:
    @staticmethod
    def sanitize_text_input(text: str, max_len: int = ValidationConstants.MAX_TEXT_LENGTH) -> str:
        text = text or ""
        text = text.strip()[:max_len]
        return html.escape(text)

    @staticmethod
    def validate_email(email: str) -> bool:
        return bool(EMAIL_RE.match(email or ""))

    @staticmethod
    def normalize_email(email: str) -> str:
        return (email or "").strip().lower()

    @staticmethod
    def validate_password_strength(password: str) -> bool:
        password = password or ""
        if len(password) > ValidationConstants.MAX_PASSWORD_LENGTH:
            return False
        return bool(PASSWORD_RE.match(password))

    @staticmethod
    def slugify(text: str) -> str:
        # "Simulado Língua Portuguesa #1" -> "simulado-lingua-portuguesa-1"
        normalized = unicodedata.normalize("NFKD", text or "")
        ascii_text = normalized.encode("ascii", "ignore").decode("ascii").lower()
        return SLUG_UNSAFE_RE.sub("-", ascii_text).strip("-") or "item"


def decode_token_optional(token: str) -> Optional[dict]:
    """Decodifica um JWT sem levantar exceção (uso em logging/middleware)."""
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except jwt.PyJWTError:
        return None


def token_from_request(request) -> Optional[str]:
    """Header Authorization tem precedência; depois os cookies de sessão."""
    auth_header = request.headers.get("authorization")
    if auth_header:
        parts = auth_header.split(" ")
        if len(parts) == 2 and parts[0] == "Bearer" and parts[1]:
            return parts[1]

    return (
        request.cookies.get(AuthConstants.AUTH_COOKIE)
        or request.cookies.get(AuthConstants.SECURE_AUTH_COOKIE)
    )
