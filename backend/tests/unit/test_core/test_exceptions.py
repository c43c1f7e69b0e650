# backend/tests/unit/test_core/test_exceptions.py

import json
import pytest
from unittest.mock import Mock, patch
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient
from fastapi.exceptions import RequestValidationError

from aprovafacil.core.exceptions import (
    AprovaFacilException,
    AuthenticationError,
    AuthorizationError,
    InvalidCredentialsError,
    TokenExpiredError,
    ConcursoChangeLockedError,
    ValidationError as DomainValidationError,
    MissingFieldsError,
    WeakPasswordError,
    InvalidStatusError,
    AnswerCountMismatchError,
    NotFoundError,
    ConflictError,
    EmailAlreadyRegisteredError,
    BusinessLogicError,
    NoDisciplinesAvailableError,
    RateLimitError,
    ServiceUnavailableError,
)
from aprovafacil.core.exception_handlers import (
    aprovafacil_exception_handler,
    validation_exception_handler,
    get_status_code_for_exception,
    get_user_friendly_validation_message,
)


class TestExceptionHierarchy:
    """Testa a hierarquia de exceções customizadas"""

    def test_base_exception_properties(self):
        exc = AprovaFacilException("Test message", "TEST_CODE", {"key": "value"})
        assert exc.message == "Test message"
        assert exc.error_code == "TEST_CODE"
        assert exc.details == {"key": "value"}
        assert str(exc) == "Test message"

    def test_base_exception_defaults(self):
        exc = AprovaFacilException("Test message")
        assert exc.error_code == "GENERIC_ERROR"
        assert exc.details == {}

    def test_authentication_error_hierarchy(self):
        exc = InvalidCredentialsError(remaining_attempts=3)
        assert isinstance(exc, AuthenticationError)
        assert isinstance(exc, AprovaFacilException)
        assert exc.error_code == "INVALID_CREDENTIALS"
        assert exc.details == {"remaining_attempts": 3}

        token_exc = TokenExpiredError()
        assert isinstance(token_exc, AuthenticationError)
        assert token_exc.error_code == "TOKEN_EXPIRED"
        assert "sessão expirou" in token_exc.message

    def test_invalid_credentials_without_attempts_has_no_details(self):
        assert InvalidCredentialsError().details == {}

    def test_concurso_lock_is_authorization_error(self):
        exc = ConcursoChangeLockedError(days_until_change=90, can_change_until="2026-01-01T00:00:00+00:00")
        assert isinstance(exc, AuthorizationError)
        assert exc.error_code == "CONCURSO_CHANGE_LOCKED"
        assert exc.details["daysUntilChange"] == 90

    def test_validation_error_hierarchy(self):
        missing = MissingFieldsError(fields=["token"])
        assert isinstance(missing, DomainValidationError)
        assert missing.details == {"fields": ["token"]}

        weak = WeakPasswordError(8)
        assert weak.error_code == "WEAK_PASSWORD"
        assert weak.details["min_length"] == 8

        status_exc = InvalidStatusError("xpto", ("novo", "dominado"))
        assert status_exc.details == {"status": "xpto", "allowed": ["novo", "dominado"]}

        mismatch = AnswerCountMismatchError(expected=10, received=9)
        assert mismatch.details == {"expected": 10, "received": 9}

    def test_not_found_uses_resource_name(self):
        exc = NotFoundError("Simulado", error_code="SIMULADO_NOT_FOUND")
        assert exc.message == "Simulado não encontrado"
        assert exc.details == {"resource": "Simulado"}

    def test_business_logic_error_hierarchy(self):
        exc = NoDisciplinesAvailableError()
        assert isinstance(exc, BusinessLogicError)
        assert exc.error_code == "NO_DISCIPLINES_AVAILABLE"


class TestStatusCodeMapping:
    """Testa o mapeamento de exceções para códigos HTTP"""

    def test_authentication_error_status(self):
        assert get_status_code_for_exception(InvalidCredentialsError()) == 401
        assert get_status_code_for_exception(TokenExpiredError()) == 401

    def test_authorization_error_status(self):
        assert get_status_code_for_exception(ConcursoChangeLockedError(1, "x")) == 403

    def test_validation_error_status(self):
        assert get_status_code_for_exception(MissingFieldsError()) == 400
        assert get_status_code_for_exception(WeakPasswordError(8)) == 400

    def test_resource_error_status(self):
        assert get_status_code_for_exception(NotFoundError("Concurso")) == 404
        assert get_status_code_for_exception(EmailAlreadyRegisteredError()) == 409
        assert get_status_code_for_exception(ConflictError("dup")) == 409

    def test_business_logic_error_status(self):
        assert get_status_code_for_exception(NoDisciplinesAvailableError()) == 422

    def test_limit_and_dependency_status(self):
        assert get_status_code_for_exception(RateLimitError(60)) == 429
        assert get_status_code_for_exception(ServiceUnavailableError("db down")) == 503

    def test_generic_error_status(self):
        assert get_status_code_for_exception(AprovaFacilException("Generic error")) == 500


class TestValidationMessageMapping:
    """Testa a conversão de mensagens de validação do Pydantic"""

    def test_string_validation_messages(self):
        assert get_user_friendly_validation_message({"type": "string_too_short"}) == "Tamanho de texto inválido"
        assert get_user_friendly_validation_message({"type": "string_too_long"}) == "Tamanho de texto inválido"

    def test_missing_field_messages(self):
        assert get_user_friendly_validation_message({"type": "missing"}) == "Campo obrigatório ausente"
        assert get_user_friendly_validation_message({"type": "value_error.missing"}) == "Campo obrigatório ausente"

    def test_number_validation_messages(self):
        assert get_user_friendly_validation_message({"type": "int_parsing"}) == "Número inteiro inválido"
        assert get_user_friendly_validation_message({"type": "float_type"}) == "Número decimal inválido"

    def test_uuid_and_range_messages(self):
        assert get_user_friendly_validation_message({"type": "uuid_parsing"}) == "Identificador inválido"
        assert get_user_friendly_validation_message({"type": "greater_than_equal"}) == "Valor fora do intervalo permitido"

    def test_email_url_validation_messages(self):
        assert get_user_friendly_validation_message({"type": "value_error.email"}) == "Formato de email inválido"
        assert get_user_friendly_validation_message({"type": "value_error.url"}) == "Formato de URL inválido"

    def test_fallback_message(self):
        assert get_user_friendly_validation_message({"type": "unknown", "msg": "Custom message"}) == "Custom message"
        assert get_user_friendly_validation_message({"type": "unknown"}) == "Valor inválido"


@pytest.mark.asyncio
class TestExceptionHandlers:
    """Testa os handlers de exceções"""

    async def test_exception_handler_response_format(self):
        mock_request = Mock(spec=Request)
        mock_request.url.path = "/api/test"
        mock_request.method = "POST"

        exc = InvalidCredentialsError(remaining_attempts=2)

        with patch('aprovafacil.core.exception_handlers.logger') as mock_logger:
            response = await aprovafacil_exception_handler(mock_request, exc)

        assert response.status_code == 401
        response_data = json.loads(response.body.decode())

        assert response_data["success"] is False
        error = response_data["error"]
        assert error["code"] == "INVALID_CREDENTIALS"
        assert "Email ou senha inválidos" in error["message"]
        assert error["path"] == "/api/test"
        assert "timestamp" in error
        assert error["details"] == {"remaining_attempts": 2}

        # Erros de cliente são avisos, não erros
        mock_logger.warning.assert_called_once()
        mock_logger.error.assert_not_called()

    async def test_server_side_exception_logs_error(self):
        mock_request = Mock(spec=Request)
        mock_request.url.path = "/api/test"
        mock_request.method = "GET"

        with patch('aprovafacil.core.exception_handlers.logger') as mock_logger:
            response = await aprovafacil_exception_handler(mock_request, AprovaFacilException("boom"))

        assert response.status_code == 500
        mock_logger.error.assert_called_once()

    async def test_rate_limit_sets_retry_after(self):
        mock_request = Mock(spec=Request)
        mock_request.url.path = "/api/auth/login"
        mock_request.method = "POST"

        with patch('aprovafacil.core.exception_handlers.logger'):
            response = await aprovafacil_exception_handler(mock_request, RateLimitError(120))

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "120"

    async def test_validation_exception_handler_response_format(self):
        mock_request = Mock(spec=Request)
        mock_request.url.path = "/api/auth/register"
        mock_request.method = "POST"

        mock_exc = Mock(spec=RequestValidationError)
        mock_exc.errors.return_value = [
            {
                "loc": ("body", "email"),
                "msg": "field required",
                "type": "missing",
                "input": {"name": "test"}
            },
            {
                "loc": ("body", "ano"),
                "msg": "value is not a valid integer",
                "type": "int_parsing",
                "input": "not_a_number"
            }
        ]

        with patch('aprovafacil.core.exception_handlers.logger') as mock_logger:
            response = await validation_exception_handler(mock_request, mock_exc)

        assert response.status_code == 422
        response_data = json.loads(response.body.decode())

        error = response_data["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["message"] == "Dados enviados contêm erros"

        field_errors = error["details"]["field_errors"]
        assert len(field_errors) == 2
        assert field_errors[0]["field"] == "body > email"
        assert field_errors[0]["message"] == "Campo obrigatório ausente"
        assert field_errors[1]["field"] == "body > ano"
        assert field_errors[1]["message"] == "Número inteiro inválido"

        mock_logger.warning.assert_called_once()


def test_integration_with_fastapi():
    """Testa integração com FastAPI usando TestClient"""
    app = FastAPI()
    app.add_exception_handler(AprovaFacilException, aprovafacil_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    @app.get("/test-auth-error")
    def auth_error():
        raise InvalidCredentialsError()

    @app.get("/test-business-error")
    def business_error():
        raise NoDisciplinesAvailableError()

    @app.post("/test-validation")
    def validation(item_id: int, name: str):
        return {"item_id": item_id, "name": name}

    client = TestClient(app)

    response = client.get("/test-auth-error")
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "INVALID_CREDENTIALS"

    response = client.get("/test-business-error")
    assert response.status_code == 422
    assert response.json()["error"]["code"] == "NO_DISCIPLINES_AVAILABLE"

    response = client.post("/test-validation?item_id=not_an_int&name=test")
    assert response.status_code == 422
    data = response.json()
    assert data["success"] is False
    assert data["error"]["code"] == "VALIDATION_ERROR"
    assert "field_errors" in data["error"]["details"]
