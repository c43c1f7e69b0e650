import uuid
from typing import Optional
from sqlalchemy.orm import Session

from aprovafacil.core.database import utcnow
from aprovafacil.core.security import InputValidator
from aprovafacil.users import models, schemas
from aprovafacil.users.auth import get_password_hash


def get_user(db: Session, user_id: uuid.UUID) -> Optional[models.User]:
    return db.get(models.User, user_id)


def get_user_by_email(db: Session, email: str) -> Optional[models.User]:
    email = InputValidator.normalize_email(email)
    return db.query(models.User).filter(models.User.email == email).first()


def create_user(db: Session, user: schemas.UserCreate, role: models.UserRole = models.UserRole.USER) -> models.User:
    db_user = models.User(
        email=InputValidator.normalize_email(user.email),
        name=InputValidator.sanitize_text_input(user.name, max_len=120),
        password_hash=get_password_hash(user.password),
        role=role,
    )
    db.add(db_user)
    db.flush()
    return db_user


def update_password(db: Session, user: models.User, new_password: str) -> models.User:
    user.password_hash = get_password_hash(new_password)
    user.updated_at = utcnow()
    db.flush()
    return user


def touch_last_login(db: Session, user: models.User) -> None:
    user.last_login = utcnow()
    db.flush()
