"""
Painel do usuário e pontos fracos.

O painel é montado a partir dos totais do usuário e das estatísticas por
disciplina, e fica guardado em ``user_performance_cache`` pelo TTL definido
em ``cache_config`` (chave ``dashboard``).
"""

from __future__ import annotations
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple
import uuid

from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session, joinedload

from aprovafacil.admin.models import CacheConfig
from aprovafacil.concursos.models import Concurso
from aprovafacil.concursos.schemas import ConcursoResumo
from aprovafacil.core.constants import CacheConstants, DashboardConstants
from aprovafacil.core.database import as_utc, utcnow
from aprovafacil.core.logging import get_logger
from aprovafacil.plano_estudos.schemas import PlanoEstudo as PlanoEstudoSchema
from aprovafacil.plano_estudos.service import get_latest_plan
from aprovafacil.simulados.models import SimuladoQuestion, UserSimuladoProgress
from aprovafacil.simulados.service import UNKNOWN_DISCIPLINE, percent, round_half_up
from aprovafacil.users.models import User
from .models import UserDisciplineStats, UserPerformanceCache

logger = get_logger("dashboard.service")


def cache_ttl_minutes(db: Session, cache_key: str) -> int:
    config = db.query(CacheConfig).filter(CacheConfig.cache_key == cache_key).first()
    return config.ttl_minutes if config else CacheConstants.DEFAULT_TTL_MINUTES


def build_dashboard(db: Session, user: User) -> dict:
    total_simulados = db.query(UserSimuladoProgress).filter(UserSimuladoProgress.user_id == user.id).count()
    total_questoes = user.total_questions_answered or 0
    total_acertos = user.total_correct_answers or 0

    recentes = (
        db.query(UserSimuladoProgress)
        .options(joinedload(UserSimuladoProgress.simulado))
        .filter(UserSimuladoProgress.user_id == user.id)
        .order_by(UserSimuladoProgress.completed_at.desc())
        .limit(DashboardConstants.RECENT_ACTIVITIES)
        .all()
    )

    stats = (
        db.query(UserDisciplineStats)
        .filter(UserDisciplineStats.user_id == user.id)
        .order_by(UserDisciplineStats.average_score.desc())
        .all()
    )
    desempenho = [
        {
            "disciplina": s.disciplina,
            "totalQuestoes": s.total_questions,
            "acertos": s.correct_answers,
            "taxaAcerto": float(s.average_score or 0),
        }
        for s in stats
    ]
    # Mais fracas primeiro
    fracos = sorted(
        (s for s in stats if float(s.average_score or 0) < DashboardConstants.WEAK_DISCIPLINE_THRESHOLD),
        key=lambda s: float(s.average_score or 0),
    )[:DashboardConstants.MAX_WEAK_DISCIPLINES]

    plano = get_latest_plan(db, user.id)
    concursos = (
        db.query(Concurso)
        .filter(Concurso.is_active.is_(True))
        .order_by(Concurso.ano.desc(), Concurso.nome)
        .all()
    )

    return {
        "estatisticas": {
            "totalSimulados": total_simulados,
            "totalQuestoes": total_questoes,
            "totalAcertos": total_acertos,
            "taxaAcerto": percent(total_acertos, total_questoes),
            "tempoEstudo": user.study_time_minutes or 0,
        },
        "planoEstudo": PlanoEstudoSchema.model_validate(plano) if plano else None,
        "atividadesRecentes": [
            {
                "id": p.id,
                "tipo": "simulado",
                "titulo": p.simulado.title if p.simulado else None,
                "pontuacao": p.score,
                "tempoMinutos": p.time_taken_minutes,
                "data": p.completed_at,
            }
            for p in recentes
        ],
        "desempenhoPorDisciplina": desempenho,
        "pontosFracos": [
            {"disciplina": s.disciplina, "acertos": round_half_up(float(s.average_score or 0))}
            for s in fracos
        ],
        "concursos": [ConcursoResumo.model_validate(c) for c in concursos],
    }


def _read_cache(db: Session, user_id: uuid.UUID, cache_key: str, now: datetime) -> Optional[UserPerformanceCache]:
    entry = (
        db.query(UserPerformanceCache)
        .filter(UserPerformanceCache.user_id == user_id, UserPerformanceCache.cache_key == cache_key)
        .first()
    )
    if entry is not None and as_utc(entry.expires_at) > now:
        return entry
    return None


def get_dashboard(db: Session, user: User) -> Tuple[dict, bool]:
    """Retorna (dados, veio_do_cache)."""
    now = utcnow()
    key = CacheConstants.DASHBOARD_CACHE_KEY

    cached = _read_cache(db, user.id, key, now)
    if cached is not None:
        return cached.cache_data, True

    data = jsonable_encoder(build_dashboard(db, user))
    expires_at = now + timedelta(minutes=cache_ttl_minutes(db, key))

    entry = (
        db.query(UserPerformanceCache)
        .filter(UserPerformanceCache.user_id == user.id, UserPerformanceCache.cache_key == key)
        .first()
    )
    if entry is None:
        entry = UserPerformanceCache(user_id=user.id, cache_key=key)
        db.add(entry)
    entry.cache_data = data
    entry.expires_at = expires_at
    entry.updated_at = now
    db.commit()

    logger.info("Dashboard cache refreshed", user_id=str(user.id), expires_at=expires_at.isoformat())
    return data, False


def weak_points(db: Session, user_id: uuid.UUID) -> List[dict]:
    """Taxa de erro por (disciplina, tópico) em todos os simulados feitos."""
    progress_rows = db.query(UserSimuladoProgress).filter(UserSimuladoProgress.user_id == user_id).all()

    totals: Dict[Tuple[str, str], List[int]] = defaultdict(lambda: [0, 0])
    for progress in progress_rows:
        questions = (
            db.query(SimuladoQuestion)
            .filter(SimuladoQuestion.simulado_id == progress.simulado_id, SimuladoQuestion.deleted_at.is_(None))
            .order_by(SimuladoQuestion.question_number)
            .all()
        )
        answers = progress.answers or []
        for index, question in enumerate(questions):
            answer = answers[index] if index < len(answers) else ""
            bucket = totals[(question.discipline or UNKNOWN_DISCIPLINE, question.topic or "")]
            bucket[0] += 1
            if answer != question.correct_answer.strip().upper():
                bucket[1] += 1

    points = [
        {
            "discipline": discipline,
            "topic": topic,
            "error_count": errors,
            "total_questions": total,
            "error_rate": round(errors / total * 100, 2),
        }
        for (discipline, topic), (total, errors) in totals.items()
        if total and errors
    ]
    points.sort(key=lambda p: (-p["error_rate"], -p["error_count"]))
    return points[:DashboardConstants.MAX_WEAK_POINTS]


def purge_expired_cache(db: Session, now: Optional[datetime] = None) -> int:
    now = now or utcnow()
    removed = (
        db.query(UserPerformanceCache)
        .filter(UserPerformanceCache.expires_at <= now)
        .delete(synchronize_session=False)
    )
    db.commit()
    return removed
