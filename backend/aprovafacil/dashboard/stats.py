"""
Estatísticas acumuladas por disciplina e invalidação do painel em cache.

Fica separado de ``dashboard.service`` porque simulados, plano de estudos e
preferência de concurso escrevem aqui, e o painel lê deles.
"""

from __future__ import annotations
from typing import List, Optional
import uuid

from sqlalchemy.orm import Session

from aprovafacil.core.database import utcnow
from aprovafacil.core.logging import get_logger
from .models import UserDisciplineStats, UserPerformanceCache

logger = get_logger("dashboard.stats")


def invalidate_user_cache(db: Session, user_id: uuid.UUID) -> int:
    """Remove o painel em cache do usuário; ele é remontado na próxima leitura."""
    removed = (
        db.query(UserPerformanceCache)
        .filter(UserPerformanceCache.user_id == user_id)
        .delete(synchronize_session=False)
    )
    if removed:
        logger.debug("Dashboard cache invalidated", user_id=str(user_id))
    return removed


def list_stats(db: Session, user_id: uuid.UUID, disciplina: Optional[str] = None) -> List[UserDisciplineStats]:
    query = db.query(UserDisciplineStats).filter(UserDisciplineStats.user_id == user_id)
    if disciplina:
        query = query.filter(UserDisciplineStats.disciplina == disciplina)
    return query.order_by(UserDisciplineStats.disciplina).all()


def accumulate(
    db: Session,
    user_id: uuid.UUID,
    disciplina: str,
    total_questions: int = 0,
    correct_answers: int = 0,
    study_time_minutes: int = 0,
) -> UserDisciplineStats:
    """Soma os novos totais aos existentes e recalcula a média (0..100)."""
    stats = (
        db.query(UserDisciplineStats)
        .filter(UserDisciplineStats.user_id == user_id, UserDisciplineStats.disciplina == disciplina)
        .first()
    )
    if stats is None:
        stats = UserDisciplineStats(
            user_id=user_id, disciplina=disciplina, total_questions=0, correct_answers=0, study_time_minutes=0,
        )
        db.add(stats)

    stats.total_questions = (stats.total_questions or 0) + total_questions
    stats.correct_answers = (stats.correct_answers or 0) + correct_answers
    stats.study_time_minutes = (stats.study_time_minutes or 0) + study_time_minutes
    stats.average_score = (
        round(stats.correct_answers / stats.total_questions * 100, 2) if stats.total_questions else 0
    )
    stats.last_activity = utcnow()
    return stats
