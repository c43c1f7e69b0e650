import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from aprovafacil.audit import service as audit
from aprovafacil.core.database import get_db, utcnow
from aprovafacil.core.exceptions import AnswerCountMismatchError, ConflictError, NotFoundError
from aprovafacil.core.logging import get_logger
from aprovafacil.core.responses import success_response
from aprovafacil.simulados.service import percent
from aprovafacil.users.auth import AdminUser, CurrentUser
from . import models, schemas

logger = get_logger("questoes_semanais.router")

router = APIRouter()


def current_week(today: Optional[date] = None) -> dict:
    iso = (today or utcnow().date()).isocalendar()
    return {"year": iso[0], "week_number": iso[1]}


def _summary(semana: models.QuestoesSemanais, progress: Optional[models.UserQuestoesSemanaisProgress]) -> schemas.QuestoesSemanais:
    return schemas.QuestoesSemanais(
        id=semana.id,
        title=semana.title,
        description=semana.description,
        week_number=semana.week_number,
        year=semana.year,
        concurso_id=semana.concurso_id,
        questions_count=len(semana.questions or []),
        completed=progress is not None,
        score=progress.score if progress else None,
        completed_at=progress.completed_at if progress else None,
    )


def _get_semana_or_404(db: Session, semana_id: uuid.UUID) -> models.QuestoesSemanais:
    semana = db.get(models.QuestoesSemanais, semana_id)
    if not semana:
        raise NotFoundError("Questões semanais", error_code="WEEK_NOT_FOUND")
    return semana


def _ensure_week_is_free(db: Session, concurso_id, year: int, week_number: int, exclude_id=None) -> None:
    query = db.query(models.QuestoesSemanais).filter(
        models.QuestoesSemanais.concurso_id == concurso_id,
        models.QuestoesSemanais.year == year,
        models.QuestoesSemanais.week_number == week_number,
    )
    if exclude_id is not None:
        query = query.filter(models.QuestoesSemanais.id != exclude_id)
    if query.first():
        raise ConflictError(
            "Já existem questões cadastradas para esta semana",
            error_code="WEEK_ALREADY_EXISTS",
            details={"year": year, "week_number": week_number},
        )


@router.get("", summary="List weekly question sets with the user's completion")
def list_semanas(
    current_user: CurrentUser,
    concurso_id: Optional[uuid.UUID] = None,
    year: Optional[int] = None,
    db: Session = Depends(get_db),
):
    query = db.query(models.QuestoesSemanais)
    if concurso_id:
        query = query.filter(models.QuestoesSemanais.concurso_id == concurso_id)
    if year:
        query = query.filter(models.QuestoesSemanais.year == year)
    semanas = query.order_by(models.QuestoesSemanais.year.desc(), models.QuestoesSemanais.week_number.desc()).all()

    progress_by_week = {
        row.questoes_semanais_id: row
        for row in db.query(models.UserQuestoesSemanaisProgress).filter(
            models.UserQuestoesSemanaisProgress.user_id == current_user.id
        )
    }
    return success_response(
        data=[_summary(s, progress_by_week.get(s.id)) for s in semanas],
        semana_atual=current_week(),
    )


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create a weekly question set (admin)")
def create_semana(request: Request, body: schemas.QuestoesSemanaisCreate, admin: AdminUser, db: Session = Depends(get_db)):
    _ensure_week_is_free(db, body.concurso_id, body.year, body.week_number)

    semana = models.QuestoesSemanais(
        title=body.title,
        description=body.description,
        week_number=body.week_number,
        year=body.year,
        concurso_id=body.concurso_id,
        questions=[q.model_dump() for q in body.questions],
    )
    db.add(semana)
    db.flush()
    audit.record_audit(db, audit.CREATE, "questoes_semanais", user_id=admin.id, record_id=semana.id,
                       new_values={"year": body.year, "week_number": body.week_number}, request=request)
    db.commit()
    db.refresh(semana)
    return success_response(data=_summary(semana, None))

@router.put("/{semana_id}", summary="Update a weekly question set (admin)")
def update_semana(
    semana_id: uuid.UUID,
    request: Request,
    body: schemas.QuestoesSemanaisUpdate,
    admin: AdminUser,
    db: Session = Depends(get_db),
):
    semana = _get_semana_or_404(db, semana_id)
    # description e concurso_id aceitam null; os demais campos são NOT NULL
    changes = {
        field: value for field, value in body.model_dump(exclude_unset=True).items()
        if value is not None or field in ("description", "concurso_id")
    }
    if "questions" in changes:
        changes["questions"] = [q.model_dump() for q in body.questions]

    target = {
        "concurso_id": changes.get("concurso_id", semana.concurso_id),
        "year": changes.get("year", semana.year),
        "week_number": changes.get("week_number", semana.week_number),
    }
    if target != {"concurso_id": semana.concurso_id, "year": semana.year, "week_number": semana.week_number}:
        _ensure_week_is_free(db, exclude_id=semana.id, **target)

    old_values = {field: getattr(semana, field) for field in changes if field != "questions"}
    for field, value in changes.items():
        setattr(semana, field, value)
    audit.record_audit(db, audit.UPDATE, "questoes_semanais", user_id=admin.id, record_id=semana.id,
                       old_values=old_values,
                       new_values={k: v for k, v in changes.items() if k != "questions"},
                       request=request)
    db.commit()
    db.refresh(semana)

    logger.info("Weekly questions updated", semana_id=str(semana.id), fields=sorted(changes))
    return success_response(data=_summary(semana, None), message="Questões semanais atualizadas com sucesso")


@router.delete("/{semana_id}", summary="Delete a weekly question set and its progress (admin)")
def delete_semana(semana_id: uuid.UUID, request: Request, admin: AdminUser, db: Session = Depends(get_db)):
    semana = _get_semana_or_404(db, semana_id)
    removed_progress = (
        db.query(models.UserQuestoesSemanaisProgress)
        .filter(models.UserQuestoesSemanaisProgress.questoes_semanais_id == semana.id)
        .delete(synchronize_session=False)
    )
    audit.record_audit(db, audit.DELETE, "questoes_semanais", user_id=admin.id, record_id=semana.id,
                       old_values={"year": semana.year, "week_number": semana.week_number,
                                   "progress_rows": removed_progress},
                       request=request)
    db.delete(semana)
    db.commit()

    logger.info("Weekly questions deleted", semana_id=str(semana_id), progress_rows=removed_progress)
    return success_response(data={"id": semana_id}, message="Questões semanais removidas com sucesso")


@router.post("/{semana_id}/submit", summary="Submit answers for a weekly question set")
def submit_semana(
    semana_id: uuid.UUID,
    request: Request,
    body: schemas.QuestoesSemanaisSubmit,
    current_user: CurrentUser,
    db: Session = Depends(get_db),
):
    semana = _get_semana_or_404(db, semana_id)

    questions = semana.questions or []
    if len(body.answers) != len(questions):
        raise AnswerCountMismatchError(expected=len(questions), received=len(body.answers))

    answers = [(a or "").strip().upper() for a in body.answers]
    detailed = []
    for number, (question, answer) in enumerate(zip(questions, answers), start=1):
        correct_answer = str(question.get("correct_answer", "")).strip().upper()
        detailed.append({
            "questionNumber": number,
            "userAnswer": answer,
            "correctAnswer": correct_answer,
            "isCorrect": answer == correct_answer,
            "discipline": question.get("discipline"),
            "topic": question.get("topic"),
        })
    correct = sum(1 for d in detailed if d["isCorrect"])
    score = percent(correct, len(questions))

    progress = (
        db.query(models.UserQuestoesSemanaisProgress)
        .filter(
            models.UserQuestoesSemanaisProgress.user_id == current_user.id,
            models.UserQuestoesSemanaisProgress.questoes_semanais_id == semana.id,
        )
        .first()
    )
    if progress is None:
        progress = models.UserQuestoesSemanaisProgress(user_id=current_user.id, questoes_semanais_id=semana.id)
        db.add(progress)
    progress.score = score
    progress.answers = answers
    progress.completed_at = utcnow()
    db.flush()

    audit.record_audit(db, audit.COMPLETE_QUESTAO, "user_questoes_semanais_progress", user_id=current_user.id,
                       record_id=progress.id, new_values={"questoes_semanais_id": semana.id, "score": score},
                       request=request)
    db.commit()

    logger.info("Weekly questions submitted", semana_id=str(semana.id), score=score)
    return success_response(data={
        "score": score,
        "correctAnswers": correct,
        "totalQuestions": len(questions),
        "detailedResults": detailed,
    })
