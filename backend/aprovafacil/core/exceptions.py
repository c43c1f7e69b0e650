# backend/aprovafacil/core/exceptions.py

class AprovaFacilException(Exception):
    """Base exception para todas as exceções customizadas do projeto"""
    def __init__(self, message: str, error_code: str = None, details: dict = None):
        self.message = message
        self.error_code = error_code or "GENERIC_ERROR"
        self.details = details or {}
        super().__init__(self.message)

# === EXCEÇÕES DE AUTENTICAÇÃO ===
class AuthenticationError(AprovaFacilException):
    """Erros relacionados à autenticação de usuários"""
    pass

class NotAuthenticatedError(AuthenticationError):
    def __init__(self):
        super().__init__(
            message="Não autorizado",
            error_code="UNAUTHORIZED"
        )

class InvalidCredentialsError(AuthenticationError):
    def __init__(self, remaining_attempts: int = None):
        details = {}
        if remaining_attempts is not None:
            details["remaining_attempts"] = remaining_attempts
        super().__init__(
            message="Email ou senha inválidos",
            error_code="INVALID_CREDENTIALS",
            details=details
        )

class TokenExpiredError(AuthenticationError):
    def __init__(self):
        super().__init__(
            message="Sua sessão expirou. Faça login novamente",
            error_code="TOKEN_EXPIRED"
        )

class InvalidTokenError(AuthenticationError):
    def __init__(self):
        super().__init__(
            message="Token de autenticação inválido",
            error_code="INVALID_TOKEN"
        )

class InvalidResetSessionError(AuthenticationError):
    def __init__(self):
        super().__init__(
            message="Sessão inválida ou expirada. Solicite um novo link.",
            error_code="INVALID_SESSION"
        )

# === EXCEÇÕES DE AUTORIZAÇÃO ===
class AuthorizationError(AprovaFacilException):
    """Usuário autenticado sem permissão para a operação"""
    pass

class AdminRequiredError(AuthorizationError):
    def __init__(self):
        super().__init__(
            message="Acesso restrito a administradores",
            error_code="ADMIN_REQUIRED"
        )

class ConcursoChangeLockedError(AuthorizationError):
    def __init__(self, days_until_change: int, can_change_until: str):
        super().__init__(
            message="Você só pode trocar de concurso após 4 meses",
            error_code="CONCURSO_CHANGE_LOCKED",
            details={"daysUntilChange": days_until_change, "canChangeUntil": can_change_until}
        )

# === EXCEÇÕES DE VALIDAÇÃO ===
class ValidationError(AprovaFacilException):
    """Erros de validação de dados de entrada"""
    pass

class MissingFieldsError(ValidationError):
    def __init__(self, message: str = "Dados incompletos", fields: list[str] = None):
        super().__init__(
            message=message,
            error_code="MISSING_FIELDS",
            details={"fields": fields or []}
        )

class WeakPasswordError(ValidationError):
    def __init__(self, min_length: int):
        super().__init__(
            message=f"A senha deve ter pelo menos {min_length} caracteres, com letras maiúsculas, minúsculas e números",
            error_code="WEAK_PASSWORD",
            details={"min_length": min_length}
        )

class InvalidEmailError(ValidationError):
    def __init__(self):
        super().__init__(
            message="Formato de email inválido",
            error_code="INVALID_EMAIL"
        )

class InvalidStatusError(ValidationError):
    def __init__(self, status: str, allowed: list[str]):
        super().__init__(
            message="Status inválido",
            error_code="INVALID_STATUS",
            details={"status": status, "allowed": list(allowed)}
        )

class AnswerCountMismatchError(ValidationError):
    def __init__(self, expected: int, received: int):
        super().__init__(
            message="Número de respostas não corresponde ao número de questões",
            error_code="ANSWER_COUNT_MISMATCH",
            details={"expected": expected, "received": received}
        )

class InvalidDateRangeError(ValidationError):
    def __init__(self, start_date: str, end_date: str):
        super().__init__(
            message="A data final deve ser posterior à data inicial",
            error_code="INVALID_DATE_RANGE",
            details={"start_date": start_date, "end_date": end_date}
        )

# === RECURSOS ===
class NotFoundError(AprovaFacilException):
    """Recurso inexistente ou não visível para o usuário"""
    def __init__(self, resource: str, message: str = None, error_code: str = None):
        super().__init__(
            message=message or f"{resource} não encontrado",
            error_code=error_code or "NOT_FOUND",
            details={"resource": resource}
        )

class ConflictError(AprovaFacilException):
    """Violação de unicidade ou estado conflitante"""
    pass

class EmailAlreadyRegisteredError(ConflictError):
    def __init__(self):
        super().__init__(
            message="Email já cadastrado",
            error_code="EMAIL_ALREADY_REGISTERED"
        )

# === EXCEÇÕES DE BUSINESS LOGIC ===
class BusinessLogicError(AprovaFacilException):
    """Erros de regras de negócio"""
    pass

class NoDisciplinesAvailableError(BusinessLogicError):
    def __init__(self):
        super().__init__(
            message="Nenhuma disciplina disponível para gerar plano de estudos",
            error_code="NO_DISCIPLINES_AVAILABLE"
        )

# === LIMITES ===
class RateLimitError(AprovaFacilException):
    def __init__(self, retry_after_seconds: int):
        super().__init__(
            message="Muitas tentativas. Tente novamente mais tarde.",
            error_code="RATE_LIMIT_EXCEEDED",
            details={"retry_after_seconds": retry_after_seconds}
        )

# === DEPENDÊNCIAS EXTERNAS ===
class ExternalServiceError(AprovaFacilException):
    """Falha em serviço de terceiros (502)"""
    pass

class ServiceUnavailableError(AprovaFacilException):
    """Banco de dados ou dependência indisponível (503)"""
    pass
