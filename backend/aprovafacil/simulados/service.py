"""
Correção de simulados e atualização das estatísticas do usuário.

A pontuação segue a regra do produto: ``round(acertos / total * 100)`` com
arredondamento "meio para cima", e o tempo gasto é convertido de segundos
para minutos da mesma forma.
"""

from __future__ import annotations
from collections import defaultdict
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional, Sequence, Tuple
import hashlib
import json
import uuid

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from sqlalchemy import or_
from sqlalchemy.orm import Session

from aprovafacil.audit import service as audit
from aprovafacil.core.database import unique_column_slug, utcnow
from aprovafacil.core.exceptions import AnswerCountMismatchError, AuthorizationError, NotFoundError
from aprovafacil.core.logging import get_logger
from aprovafacil.core.security import InputValidator
from aprovafacil.dashboard import stats as discipline_stats
from aprovafacil.users.models import User
from . import models, schemas

logger = get_logger("simulados.service")

UNKNOWN_DISCIPLINE = "Geral"


def round_half_up(value: float) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def percent(part: int, total: int) -> int:
    if not total:
        return 0
    return round_half_up(part / total * 100)


# --- Consultas ---

def visible_simulados_query(db: Session, user: User):
    """Simulados não excluídos que o usuário pode ver: públicos ou próprios."""
    query = db.query(models.Simulado).filter(models.Simulado.deleted_at.is_(None))
    if not user.is_admin:
        query = query.filter(or_(models.Simulado.is_public.is_(True), models.Simulado.created_by == user.id))
    return query


def get_simulado_or_404(db: Session, user: User, simulado_id: uuid.UUID) -> models.Simulado:
    simulado = visible_simulados_query(db, user).filter(models.Simulado.id == simulado_id).first()
    if not simulado:
        raise NotFoundError("Simulado", error_code="SIMULADO_NOT_FOUND")
    return simulado


def get_simulado_by_slug_or_404(db: Session, user: User, slug: str) -> models.Simulado:
    simulado = visible_simulados_query(db, user).filter(models.Simulado.slug == slug).first()
    if not simulado:
        raise NotFoundError("Simulado", error_code="SIMULADO_NOT_FOUND")
    return simulado


def active_questions(db: Session, simulado_id: uuid.UUID) -> List[models.SimuladoQuestion]:
    return (
        db.query(models.SimuladoQuestion)
        .filter(models.SimuladoQuestion.simulado_id == simulado_id, models.SimuladoQuestion.deleted_at.is_(None))
        .order_by(models.SimuladoQuestion.question_number)
        .all()
    )


def build_detail(db: Session, simulado: models.Simulado) -> schemas.SimuladoDetalhe:
    detail = schemas.SimuladoDetalhe.model_validate(simulado)
    detail.questions = [schemas.SimuladoQuestion.model_validate(q) for q in active_questions(db, simulado.id)]
    return detail


def compute_etag(payload) -> str:
    body = json.dumps(jsonable_encoder(payload), sort_keys=True, ensure_ascii=False)
    return '"' + hashlib.sha256(body.encode("utf-8")).hexdigest()[:32] + '"'


# --- Escrita ---

def unique_slug(db: Session, title: str) -> str:
    return unique_column_slug(db, models.Simulado.slug, title)


def create_simulado(db: Session, user: User, data: schemas.SimuladoCreate, request: Optional[Request] = None) -> models.Simulado:
    simulado = models.Simulado(
        title=InputValidator.sanitize_text_input(data.title, max_len=200),
        slug=unique_slug(db, data.title),
        description=data.description,
        time_minutes=data.time_minutes,
        difficulty=data.difficulty,
        concurso_id=data.concurso_id,
        categoria_id=data.categoria_id,
        disciplinas=data.disciplinas,
        is_public=data.is_public,
        created_by=user.id,
        questions_count=len(data.questions),
    )
    db.add(simulado)

    for position, question in enumerate(data.questions, start=1):
        simulado.questions.append(models.SimuladoQuestion(
            question_number=question.question_number or position,
            question_text=question.question_text,
            alternatives=question.alternatives,
            correct_answer=question.correct_answer.strip().upper(),
            explanation=question.explanation,
            discipline=question.discipline,
            topic=question.topic,
            difficulty=question.difficulty,
            concurso_id=data.concurso_id,
        ))
    db.flush()

    audit.record_audit(db, audit.CREATE, "simulados", user_id=user.id, record_id=simulado.id,
                       new_values={"title": simulado.title, "questions_count": simulado.questions_count},
                       request=request)
    db.commit()
    db.refresh(simulado)
    logger.info("Simulado created", simulado_id=str(simulado.id), questions=simulado.questions_count)
    return simulado


def soft_delete_simulado(db: Session, user: User, simulado_id: uuid.UUID, request: Optional[Request] = None) -> models.Simulado:
    simulado = get_simulado_or_404(db, user, simulado_id)
    if simulado.created_by != user.id and not user.is_admin:
        raise AuthorizationError("Sem permissão para excluir este simulado", error_code="FORBIDDEN")

    now = utcnow()
    simulado.deleted_at = now
    for question in simulado.questions:
        if question.deleted_at is None:
            question.deleted_at = now

    audit.record_audit(db, audit.DELETE, "simulados", user_id=user.id, record_id=simulado.id,
                       old_values={"title": simulado.title}, request=request)
    db.commit()
    logger.info("Simulado soft-deleted", simulado_id=str(simulado.id))
    return simulado


# --- Correção ---

def grade_answers(
    questions: Sequence[models.SimuladoQuestion], answers: Sequence[str]
) -> Tuple[int, List[dict]]:
    """Compara as respostas com o gabarito na ordem das questões."""
    if len(answers) != len(questions):
        raise AnswerCountMismatchError(expected=len(questions), received=len(answers))

    correct = 0
    detailed = []
    for question, answer in zip(questions, answers):
        is_correct = answer == question.correct_answer.strip().upper()
        correct += int(is_correct)
        detailed.append({
            "questionId": question.id,
            "questionNumber": question.question_number,
            "userAnswer": answer,
            "correctAnswer": question.correct_answer,
            "isCorrect": is_correct,
            "explanation": question.explanation,
            "discipline": question.discipline,
            "topic": question.topic,
            "difficulty": question.difficulty,
        })
    return correct, detailed


def update_discipline_stats(db: Session, user_id: uuid.UUID, detailed_results: List[dict]) -> None:
    totals: Dict[str, List[int]] = defaultdict(lambda: [0, 0])
    for result in detailed_results:
        bucket = totals[result["discipline"] or UNKNOWN_DISCIPLINE]
        bucket[0] += 1
        bucket[1] += int(result["isCorrect"])

    for disciplina, (total, correct) in totals.items():
        discipline_stats.accumulate(db, user_id, disciplina, total_questions=total, correct_answers=correct)


def _update_user_totals(user: User, total: int, correct: int, minutes: int) -> None:
    user.total_questions_answered = (user.total_questions_answered or 0) + total
    user.total_correct_answers = (user.total_correct_answers or 0) + correct
    user.study_time_minutes = (user.study_time_minutes or 0) + minutes
    if user.total_questions_answered:
        user.average_score = round(user.total_correct_answers / user.total_questions_answered * 100, 2)


def submit_simulado(
    db: Session,
    user: User,
    simulado_id: uuid.UUID,
    submission: schemas.SimuladoSubmit,
    request: Optional[Request] = None,
) -> dict:
    simulado = get_simulado_or_404(db, user, simulado_id)
    questions = active_questions(db, simulado.id)

    correct, detailed = grade_answers(questions, submission.answers)
    total = len(questions)
    score = percent(correct, total)
    minutes = round_half_up(submission.timeSpent / 60)

    progress = (
        db.query(models.UserSimuladoProgress)
        .filter(models.UserSimuladoProgress.user_id == user.id, models.UserSimuladoProgress.simulado_id == simulado.id)
        .first()
    )
    if progress is None:
        progress = models.UserSimuladoProgress(user_id=user.id, simulado_id=simulado.id)
        db.add(progress)
    progress.score = score
    progress.time_taken_minutes = minutes
    progress.answers = list(submission.answers)
    progress.started_at = submission.startedAt
    progress.completed_at = submission.completedAt or utcnow()

    update_discipline_stats(db, user.id, detailed)
    _update_user_totals(user, total, correct, minutes)
    discipline_stats.invalidate_user_cache(db, user.id)
    db.flush()

    audit.record_audit(db, audit.COMPLETE_SIMULADO, "user_simulado_progress", user_id=user.id,
                       record_id=progress.id, new_values={"simulado_id": simulado.id, "score": score},
                       request=request)
    db.commit()
    db.refresh(progress)

    logger.info("Simulado submitted", simulado_id=str(simulado.id), score=score, correct=correct, total=total)
    return {
        "results": {
            "score": score,
            "correctAnswers": correct,
            "totalQuestions": total,
            "timeSpentMinutes": minutes,
            "accuracyRate": score,
            "detailedResults": detailed,
        },
        "progress": schemas.SimuladoProgress.model_validate(progress),
    }


def get_result(db: Session, user: User, simulado_id: uuid.UUID) -> dict:
    simulado = get_simulado_or_404(db, user, simulado_id)
    progress = (
        db.query(models.UserSimuladoProgress)
        .filter(models.UserSimuladoProgress.user_id == user.id, models.UserSimuladoProgress.simulado_id == simulado.id)
        .first()
    )
    if not progress:
        raise NotFoundError("Resultado", message="Você ainda não realizou este simulado", error_code="RESULT_NOT_FOUND")

    questions = active_questions(db, simulado.id)
    answers = list(progress.answers or [])
    # Questões excluídas depois da entrega não invalidam o resultado salvo
    answers = (answers + [""] * len(questions))[:len(questions)]
    correct, detailed = grade_answers(questions, answers)
    return {
        "simulado": schemas.Simulado.model_validate(simulado),
        "progress": schemas.SimuladoProgress.model_validate(progress),
        "results": {
            "score": progress.score,
            "correctAnswers": correct,
            "totalQuestions": len(questions),
            "timeSpentMinutes": progress.time_taken_minutes,
            "detailedResults": detailed,
        },
    }
