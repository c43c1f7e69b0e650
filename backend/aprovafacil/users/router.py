from typing import Optional

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

from aprovafacil.audit import service as audit
from aprovafacil.core.constants import AuthConstants, ValidationConstants
from aprovafacil.core.database import get_db
from aprovafacil.core.exceptions import (
    EmailAlreadyRegisteredError,
    InvalidCredentialsError,
    InvalidResetSessionError,
    InvalidTokenError,
    InvalidEmailError,
    MissingFieldsError,
    RateLimitError,
    TokenExpiredError,
    WeakPasswordError,
)
from aprovafacil.core.logging import get_logger
from aprovafacil.core.middleware import get_client_ip
from aprovafacil.core.rate_limiting import limiter, login_rate_limiter
from aprovafacil.core.responses import success_response
from aprovafacil.core.security import InputValidator
from aprovafacil.core.settings import settings
from aprovafacil.users import auth, crud, models, schemas

logger = get_logger("users.router")

router = APIRouter()


def _set_session_cookies(response: Response, access_token: str, refresh_token: Optional[str] = None) -> None:
    # Cookie httpOnly para o servidor e cópia legível pelo cliente
    response.set_cookie(
        AuthConstants.SECURE_AUTH_COOKIE, access_token,
        max_age=AuthConstants.COOKIE_MAX_AGE_SECONDS, path="/",
        httponly=True, samesite="strict", secure=settings.is_production,
    )
    response.set_cookie(
        AuthConstants.AUTH_COOKIE, access_token,
        max_age=AuthConstants.COOKIE_MAX_AGE_SECONDS, path="/",
        httponly=False, samesite="lax", secure=settings.is_production,
    )
    if refresh_token:
        response.set_cookie(
            AuthConstants.REFRESH_COOKIE, refresh_token,
            max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60, path="/",
            httponly=True, samesite="strict", secure=settings.is_production,
        )


def _clear_session_cookies(response: Response) -> None:
    for cookie in (AuthConstants.SECURE_AUTH_COOKIE, AuthConstants.AUTH_COOKIE, AuthConstants.REFRESH_COOKIE):
        response.delete_cookie(cookie, path="/")


def _issue_tokens(user: models.User) -> schemas.AuthTokens:
    return schemas.AuthTokens(
        token=auth.create_access_token(user),
        refresh_token=auth.create_refresh_token(user),
        user=schemas.User.model_validate(user),
    )


@router.post("/register", status_code=status.HTTP_201_CREATED, summary="Create a new user")
@limiter.limit(settings.REGISTER_RATE_LIMIT)
def register(request: Request, user: schemas.UserCreate, db: Session = Depends(get_db)):
    if not InputValidator.validate_email(user.email):
        raise InvalidEmailError()
    if not InputValidator.validate_password_strength(user.password):
        raise WeakPasswordError(ValidationConstants.MIN_PASSWORD_LENGTH)

    if crud.get_user_by_email(db, email=user.email):
        raise EmailAlreadyRegisteredError()

    db_user = crud.create_user(db=db, user=user)
    audit.record_audit(db, audit.REGISTER, "users", user_id=db_user.id, record_id=db_user.id, request=request)
    db.commit()
    db.refresh(db_user)

    logger.info("User registered", user_id=str(db_user.id))
    return success_response(data=schemas.User.model_validate(db_user), message="Usuário cadastrado com sucesso")


@router.post("/login", summary="Authenticate and start a session")
def login(request: Request, response: Response, credentials: schemas.LoginRequest, db: Session = Depends(get_db)):
    client_ip = get_client_ip(request)

    if not login_rate_limiter.is_allowed(client_ip):
        logger.warning("Login rate limit exceeded", client_ip=client_ip)
        raise RateLimitError(login_rate_limiter.seconds_until_reset(client_ip))

    email = InputValidator.normalize_email(credentials.email)
    user = crud.get_user_by_email(db, email=email) if InputValidator.validate_email(email) else None
    if not user or not auth.verify_password(credentials.password or "", user.password_hash):
        logger.info("Login failed", client_ip=client_ip)
        raise InvalidCredentialsError(remaining_attempts=login_rate_limiter.remaining_attempts(client_ip))

    login_rate_limiter.reset(client_ip)
    crud.touch_last_login(db, user)
    audit.record_audit(db, audit.LOGIN, "users", user_id=user.id, record_id=user.id, request=request)
    db.commit()
    db.refresh(user)

    tokens = _issue_tokens(user)
    _set_session_cookies(response, tokens.token, tokens.refresh_token)

    logger.info("Login succeeded", user_id=str(user.id))
    return success_response(data=tokens)


@router.post("/refresh", summary="Exchange a refresh token for a new access token")
def refresh(request: Request, response: Response, body: Optional[schemas.RefreshRequest] = None, db: Session = Depends(get_db)):
    refresh_token = (body.refresh_token if body else None) or request.cookies.get(AuthConstants.REFRESH_COOKIE)
    if not refresh_token:
        raise InvalidTokenError()

    user = auth.get_user_from_refresh_token(db, refresh_token)
    tokens = _issue_tokens(user)
    _set_session_cookies(response, tokens.token, tokens.refresh_token)

    logger.info("Session refreshed", user_id=str(user.id))
    return success_response(data=tokens)


@router.post("/logout", summary="End the current session")
def logout(request: Request, response: Response, db: Session = Depends(get_db)):
    token = auth.extract_token(request)
    user = None
    if token:
        try:
            user = auth.get_current_user(request, db)
        except (InvalidTokenError, TokenExpiredError):
            # Sessão já inválida: basta limpar os cookies
            user = None

    if user:
        audit.record_audit(db, audit.LOGOUT, "users", user_id=user.id, record_id=user.id, request=request)
        db.commit()

    _clear_session_cookies(response)
    return success_response(message="Sessão encerrada")


@router.post("/forgot-password", summary="Request a password reset link")
@limiter.limit(settings.RESET_PASSWORD_RATE_LIMIT)
def forgot_password(request: Request, body: schemas.ForgotPasswordRequest, db: Session = Depends(get_db)):
    user = crud.get_user_by_email(db, email=body.email)
    if user:
        auth.create_password_reset_token(user)
        # A entrega do link é responsabilidade do serviço de email
        logger.info("Password reset requested", user_id=str(user.id))
    else:
        logger.info("Password reset requested for unknown email")

    # Resposta idêntica para não revelar quais emails existem
    return success_response(message="Se o email estiver cadastrado, você receberá um link de redefinição.")


@router.post("/verify-reset-token", summary="Check whether a reset token is still valid")
def verify_reset_token(body: schemas.VerifyResetTokenRequest, db: Session = Depends(get_db)):
    try:
        user = auth.get_user_from_reset_token(db, body.token)
    except (InvalidTokenError, TokenExpiredError):
        raise InvalidResetSessionError()
    return success_response(data={"valid": True, "email": user.email})


@router.post("/reset-password", summary="Set a new password using a reset token")
@limiter.limit(settings.RESET_PASSWORD_RATE_LIMIT)
def reset_password(request: Request, body: schemas.ResetPasswordRequest, db: Session = Depends(get_db)):
    if not body.token or not body.password:
        raise MissingFieldsError("Senha e token são obrigatórios", fields=["token", "password"])
    if not InputValidator.validate_password_strength(body.password):
        raise WeakPasswordError(ValidationConstants.MIN_PASSWORD_LENGTH)

    try:
        user = auth.get_user_from_reset_token(db, body.token)
    except (InvalidTokenError, TokenExpiredError):
        raise InvalidResetSessionError()

    crud.update_password(db, user, body.password)
    audit.record_audit(db, audit.PASSWORD_RESET, "users", user_id=user.id, record_id=user.id, request=request)
    db.commit()

    logger.info("Password reset completed", user_id=str(user.id))
    return success_response(
        data={"id": user.id, "email": user.email},
        message="Senha redefinida com sucesso.",
    )


@router.get("/me", summary="Get current user's data")
def read_users_me(current_user: auth.CurrentUser):
    return success_response(data=schemas.User.model_validate(current_user))
