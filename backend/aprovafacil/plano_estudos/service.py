"""
Geração do cronograma semanal de estudos.

As horas da semana são divididas em blocos de 30 minutos e repartidas entre
as disciplinas proporcionalmente ao peso (maiores restos). Os blocos são
intercalados com round-robin ponderado suave, de modo que disciplinas de
peso maior aparecem em mais dias sem concentrar tudo no início da semana.
"""

from __future__ import annotations
from collections import OrderedDict
from typing import Dict, List, Optional, Sequence, Tuple
import math
import uuid

from fastapi import Request
from sqlalchemy.orm import Session

from aprovafacil.audit import service as audit
from aprovafacil.concursos import crud as concursos_crud
from aprovafacil.core.constants import StudyConstants
from aprovafacil.core.exceptions import (
    InvalidDateRangeError,
    MissingFieldsError,
    NoDisciplinesAvailableError,
)
from aprovafacil.core.logging import get_logger
from aprovafacil.dashboard import stats as discipline_stats
from aprovafacil.preferences import service as preferences
from aprovafacil.users.models import User
from . import models, schemas

logger = get_logger("plano_estudos.service")

BLOCK_HOURS = 0.5


def _allocate_blocks(weights: Sequence[int], total_blocks: int) -> List[int]:
    total_weight = sum(weights)
    quotas = [total_blocks * w / total_weight for w in weights]
    counts = [math.floor(q) for q in quotas]
    leftover = total_blocks - sum(counts)
    order = sorted(range(len(weights)), key=lambda i: (-(quotas[i] - counts[i]), -weights[i], i))
    for i in order[:leftover]:
        counts[i] += 1
    return counts


def _interleave(counts: Sequence[int]) -> List[int]:
    total = sum(counts)
    current = [0] * len(counts)
    sequence = []
    for _ in range(total):
        for i, count in enumerate(counts):
            current[i] += count
        chosen = max(range(len(counts)), key=lambda i: (current[i], -i))
        current[chosen] -= total
        sequence.append(chosen)
    return sequence


def build_weekly_schedule(disciplinas: Sequence[Tuple[str, int]], horas_diarias: float) -> Dict[str, List[dict]]:
    """disciplinas: pares (nome, peso). Retorna {dia: [{disciplina, horas}]}."""
    if not disciplinas:
        raise NoDisciplinesAvailableError()

    names = [nome for nome, _ in disciplinas]
    weights = [max(int(peso or 1), 1) for _, peso in disciplinas]
    blocks_per_day = max(1, int(horas_diarias / BLOCK_HOURS))

    counts = _allocate_blocks(weights, blocks_per_day * len(StudyConstants.WEEKDAYS))
    sequence = _interleave(counts)

    schedule = {}
    for day_index, day in enumerate(StudyConstants.WEEKDAYS):
        day_blocks = sequence[day_index * blocks_per_day:(day_index + 1) * blocks_per_day]
        per_discipline: "OrderedDict[str, float]" = OrderedDict()
        for i in day_blocks:
            per_discipline[names[i]] = per_discipline.get(names[i], 0) + BLOCK_HOURS
        schedule[day] = [{"disciplina": nome, "horas": horas} for nome, horas in per_discipline.items()]
    return schedule


def get_latest_plan(db: Session, user_id: uuid.UUID) -> Optional[models.PlanoEstudo]:
    return (
        db.query(models.PlanoEstudo)
        .filter(models.PlanoEstudo.user_id == user_id)
        .order_by(models.PlanoEstudo.created_at.desc())
        .first()
    )


def create_plan(db: Session, user: User, data: schemas.PlanoEstudoCreate, request: Optional[Request] = None) -> models.PlanoEstudo:
    if data.end_date <= data.start_date:
        raise InvalidDateRangeError(data.start_date.isoformat(), data.end_date.isoformat())

    concurso_id = data.concurso_id
    if concurso_id is None:
        preference = preferences.get_active_preference(db, user.id)
        if not preference:
            raise MissingFieldsError("Selecione um concurso para gerar o plano", fields=["concurso_id"])
        concurso_id = preference.concurso_id

    concurso = concursos_crud.get_concurso_or_404(db, concurso_id)
    disciplinas = concursos_crud.list_disciplinas(db, categoria_id=concurso.categoria_id) if concurso.categoria_id else []
    if not disciplinas:
        raise NoDisciplinesAvailableError()

    horas_diarias = data.horas_diarias
    if horas_diarias is None:
        horas_semanais = sum(d.horas_semanais or 0 for d in disciplinas)
        horas_diarias = horas_semanais / 7 if horas_semanais else StudyConstants.DEFAULT_DAILY_HOURS

    schedule = build_weekly_schedule([(d.nome, d.peso) for d in disciplinas], horas_diarias)

    plano = models.PlanoEstudo(
        user_id=user.id,
        concurso_id=concurso.id,
        start_date=data.start_date,
        end_date=data.end_date,
        schedule=schedule,
    )
    db.add(plano)
    db.flush()
    audit.record_audit(db, audit.CREATE, "planos_estudo", user_id=user.id, record_id=plano.id,
                       new_values={"concurso_id": concurso.id, "horas_diarias": horas_diarias}, request=request)
    # O painel mostra o plano mais recente
    discipline_stats.invalidate_user_cache(db, user.id)
    db.commit()
    db.refresh(plano)

    logger.info("Study plan created", plano_id=str(plano.id), disciplinas=len(disciplinas))
    return plano
