"""
Limitação de tentativas.

Dois mecanismos convivem aqui:

* ``LoginRateLimiter``: janela fixa em memória, por IP, para tentativas de
  login. O estado vive no processo; com múltiplas instâncias cada uma conta
  separadamente.
* ``limiter`` (slowapi): limites declarativos por rota, como cadastro e
  redefinição de senha.
"""

from __future__ import annotations
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict

from slowapi import Limiter
from slowapi.util import get_remote_address

from .constants import RateLimitConstants
from .logging import get_logger
from .settings import settings

logger = get_logger("core.rate_limiting")


@dataclass
class AttemptRecord:
    count: int
    reset_at: float
    blocked: bool = False


class LoginRateLimiter:
    def __init__(
        self,
        max_attempts: int = RateLimitConstants.LOGIN_MAX_ATTEMPTS,
        window_seconds: float = RateLimitConstants.LOGIN_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self._clock = clock
        self._attempts: Dict[str, AttemptRecord] = {}
        self._lock = threading.Lock()

    def is_allowed(self, key: str) -> bool:
        """Registra uma tentativa e informa se ela pode prosseguir."""
        now = self._clock()
        with self._lock:
            record = self._attempts.get(key)

            if record is None or now > record.reset_at:
                self._attempts[key] = AttemptRecord(count=1, reset_at=now + self.window_seconds)
                return True

            if record.blocked:
                return False

            record.count += 1
            if record.count >= self.max_attempts:
                # Bloqueia pelo mesmo tamanho da janela a partir de agora
                record.blocked = True
                record.reset_at = now + self.window_seconds
                logger.warning("Login attempts blocked", key=key, attempts=record.count)
                return False

            return True

    def remaining_attempts(self, key: str) -> int:
        with self._lock:
            record = self._attempts.get(key)
            if record is None:
                return self.max_attempts
            if record.blocked:
                return 0
            return max(0, self.max_attempts - record.count)

    def seconds_until_reset(self, key: str) -> int:
        now = self._clock()
        with self._lock:
            record = self._attempts.get(key)
            if record is None:
                return 0
            return max(0, int(round(record.reset_at - now)))

    def reset(self, key: str) -> None:
        with self._lock:
            self._attempts.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._attempts.clear()

    def cleanup(self) -> int:
        """Remove registros expirados há mais de 24h. Retorna quantos saíram."""
        now = self._clock()
        with self._lock:
            stale = [
                key for key, record in self._attempts.items()
                if now > record.reset_at + RateLimitConstants.STALE_RECORD_SECONDS
            ]
            for key in stale:
                del self._attempts[key]
        return len(stale)

    def __len__(self) -> int:
        return len(self._attempts)


login_rate_limiter = LoginRateLimiter(
    max_attempts=settings.LOGIN_MAX_ATTEMPTS,
    window_seconds=settings.LOGIN_WINDOW_MINUTES * 60,
)

limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)
