"""
Regras de seleção de concurso.

Cada usuário tem no máximo uma preferência ativa. Ao escolher um concurso a
troca fica bloqueada por ``CONCURSO_CHANGE_DAYS`` dias; ``can_change`` e
``days_until_change`` derivam apenas de ``can_change_until``.
"""

from __future__ import annotations
from datetime import datetime, timedelta
from typing import Optional
import math
import uuid

from fastapi import Request
from sqlalchemy.orm import Session, joinedload

from aprovafacil.audit import service as audit
from aprovafacil.concursos import crud as concursos_crud
from aprovafacil.concursos.models import Concurso
from aprovafacil.core.database import as_utc, utcnow
from aprovafacil.core.exceptions import ConcursoChangeLockedError, NotFoundError
from aprovafacil.core.logging import get_logger
from aprovafacil.core.settings import settings
from aprovafacil.dashboard import stats as discipline_stats
from aprovafacil.users.models import User
from .models import UserConcursoPreference

logger = get_logger("preferences.service")

SECONDS_PER_DAY = 24 * 60 * 60


def can_change(preference: UserConcursoPreference, now: Optional[datetime] = None) -> bool:
    now = now or utcnow()
    return now >= as_utc(preference.can_change_until)


def days_until_change(preference: UserConcursoPreference, now: Optional[datetime] = None) -> int:
    now = now or utcnow()
    remaining = (as_utc(preference.can_change_until) - now).total_seconds() / SECONDS_PER_DAY
    return max(0, math.ceil(remaining))


def get_active_preference(db: Session, user_id: uuid.UUID) -> Optional[UserConcursoPreference]:
    return (
        db.query(UserConcursoPreference)
        .options(joinedload(UserConcursoPreference.concurso).joinedload(Concurso.categoria))
        .filter(UserConcursoPreference.user_id == user_id, UserConcursoPreference.is_active.is_(True))
        .order_by(UserConcursoPreference.selected_at.desc())
        .first()
    )


def _ensure_unlocked(preference: UserConcursoPreference, now: datetime) -> None:
    if not can_change(preference, now):
        raise ConcursoChangeLockedError(
            days_until_change=days_until_change(preference, now),
            can_change_until=as_utc(preference.can_change_until).isoformat(),
        )


def select_concurso(db: Session, user: User, concurso_id: uuid.UUID, request: Optional[Request] = None) -> UserConcursoPreference:
    """Cria uma nova preferência ativa, desativando a anterior."""
    now = utcnow()
    concurso = concursos_crud.get_concurso_or_404(db, concurso_id)

    current = get_active_preference(db, user.id)
    if current:
        _ensure_unlocked(current, now)

    old_values = {"concurso_id": current.concurso_id} if current else None
    (
        db.query(UserConcursoPreference)
        .filter(UserConcursoPreference.user_id == user.id, UserConcursoPreference.is_active.is_(True))
        .update({UserConcursoPreference.is_active: False, UserConcursoPreference.updated_at: now},
                synchronize_session=False)
    )

    preference = UserConcursoPreference(
        user_id=user.id,
        concurso_id=concurso.id,
        selected_at=now,
        can_change_until=now + timedelta(days=settings.CONCURSO_CHANGE_DAYS),
        is_active=True,
    )
    db.add(preference)
    db.flush()

    audit.record_audit(db, audit.SELECT_CONCURSO, "user_concurso_preferences", user_id=user.id,
                       record_id=preference.id, old_values=old_values,
                       new_values={"concurso_id": concurso.id}, request=request)
    discipline_stats.invalidate_user_cache(db, user.id)
    db.commit()
    db.refresh(preference)

    logger.info("Concurso selected", user_id=str(user.id), concurso_id=str(concurso.id))
    return preference


def update_concurso(db: Session, user: User, concurso_id: uuid.UUID, request: Optional[Request] = None) -> UserConcursoPreference:
    """Troca o concurso da preferência ativa existente, mantendo o registro."""
    now = utcnow()
    current = get_active_preference(db, user.id)
    if not current:
        raise NotFoundError("Preferência de concurso", error_code="PREFERENCE_NOT_FOUND")

    _ensure_unlocked(current, now)
    concurso = concursos_crud.get_concurso_or_404(db, concurso_id)

    old_values = {"concurso_id": current.concurso_id}
    current.concurso_id = concurso.id
    current.selected_at = now
    current.can_change_until = now + timedelta(days=settings.CONCURSO_CHANGE_DAYS)
    current.updated_at = now

    audit.record_audit(db, audit.UPDATE, "user_concurso_preferences", user_id=user.id,
                       record_id=current.id, old_values=old_values,
                       new_values={"concurso_id": concurso.id}, request=request)
    discipline_stats.invalidate_user_cache(db, user.id)
    db.commit()
    db.refresh(current)

    logger.info("Concurso preference updated", user_id=str(user.id), concurso_id=str(concurso.id))
    return current
