# backend/aprovafacil/core/constants.py

"""
Constantes centralizadas para eliminar magic numbers no projeto.

Valores que podem variar por ambiente ficam em settings.py; aqui ficam
apenas as regras fixas do produto, organizadas por funcionalidade.
"""


class CeleryConstants:
    """Constantes para configuração do Celery"""
    RETRY_BACKOFF_SECONDS = 5  # Tempo de espera entre tentativas
    SOFT_TIME_LIMIT_SECONDS = 120  # 2 minutos - limite soft
    HARD_TIME_LIMIT_SECONDS = 300  # 5 minutos - limite hard
    MAX_RETRIES = 3  # Número máximo de tentativas


class RateLimitConstants:
    """Constantes para rate limiting"""
    LOGIN_MAX_ATTEMPTS = 5
    LOGIN_WINDOW_SECONDS = 15 * 60
    # Registros expirados há mais de 24h são descartados na limpeza
    STALE_RECORD_SECONDS = 24 * 60 * 60


class DatabaseConstants:
    """Constantes para configuração do banco"""
    CONNECTION_POOL_SIZE = 10
    CONNECTION_POOL_MAX_OVERFLOW = 20
    CONNECTION_POOL_RECYCLE_SECONDS = 3600  # 1 hora


class ValidationConstants:
    """Constantes para validação de dados"""
    MAX_PASSWORD_LENGTH = 128
    MIN_PASSWORD_LENGTH = 8
    MAX_TEXT_LENGTH = 500
    MAX_PAGE_SIZE = 100
    DEFAULT_PAGE_SIZE = 20


class AuthConstants:
    """Constantes de autenticação e cookies"""
    AUTH_COOKIE = "auth_token"
    SECURE_AUTH_COOKIE = "auth_token_secure"
    REFRESH_COOKIE = "refresh_token"
    COOKIE_MAX_AGE_SECONDS = 60 * 60 * 24 * 7  # 7 dias

    TOKEN_TYPE_ACCESS = "access"
    TOKEN_TYPE_REFRESH = "refresh"
    TOKEN_TYPE_PASSWORD_RESET = "password_reset"


class ConcursoConstants:
    """Regras de seleção de concurso"""
    CHANGE_LOCK_DAYS = 120  # 4 meses de 30 dias


class StudyConstants:
    """Constantes de progresso de estudo"""
    FLASHCARD_STATUSES = ("novo", "aprendendo", "revisando", "dominado")
    # Dias até a próxima revisão quando o cliente não informa next_review
    FLASHCARD_REVIEW_DAYS = {"novo": 0, "aprendendo": 1, "revisando": 3, "dominado": 7}

    MAPA_ASSUNTO_STATUSES = ("estudado", "a_revisar", "nao_sei_nada", "nao_estudado")
    MAPA_ASSUNTO_DEFAULT_STATUS = "nao_estudado"

    WEEKDAYS = ("segunda", "terca", "quarta", "quinta", "sexta", "sabado", "domingo")
    DEFAULT_DAILY_HOURS = 3


class DashboardConstants:
    """Constantes do painel do usuário"""
    WEAK_DISCIPLINE_THRESHOLD = 70
    MAX_WEAK_DISCIPLINES = 5
    MAX_WEAK_POINTS = 10
    RECENT_ACTIVITIES = 5


class CacheConstants:
    """Tabelas de cache e TTL padrão"""
    DEFAULT_TTL_MINUTES = 60
    DASHBOARD_CACHE_KEY = "dashboard"


class LoggingConstants:
    """Constantes para configuração de logs"""
    MAX_LOG_MESSAGE_LENGTH = 2048
    SLOW_REQUEST_THRESHOLD_MS = 5000
