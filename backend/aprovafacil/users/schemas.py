import uuid
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field

from .models import UserRole


# Schema base com os campos comuns
class UserBase(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    email: EmailStr


# Cadastro (recebe a senha)
class UserCreate(UserBase):
    password: str


# Leitura de um usuário (não expõe a senha)
class User(BaseModel):
    id: uuid.UUID
    name: str
    email: str
    role: UserRole
    total_questions_answered: int = 0
    total_correct_answers: int = 0
    study_time_minutes: int = 0
    average_score: float = 0
    last_login: Optional[datetime] = None

    class Config:
        from_attributes = True


class LoginRequest(BaseModel):
    email: str
    password: str


class RefreshRequest(BaseModel):
    refresh_token: Optional[str] = None


class ForgotPasswordRequest(BaseModel):
    email: str


class VerifyResetTokenRequest(BaseModel):
    token: str


class ResetPasswordRequest(BaseModel):
    token: Optional[str] = None
    password: Optional[str] = None


class AuthTokens(BaseModel):
    token: str
    refresh_token: str
    token_type: str = "bearer"
    user: User
