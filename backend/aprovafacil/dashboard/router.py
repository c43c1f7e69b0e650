from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from aprovafacil.core.database import get_db
from aprovafacil.core.exceptions import MissingFieldsError
from aprovafacil.core.logging import get_logger
from aprovafacil.core.responses import success_response
from aprovafacil.users.auth import CurrentUser
from . import schemas, service, stats

logger = get_logger("dashboard.router")

router = APIRouter()


@router.get("/dashboard", summary="User dashboard")
def get_dashboard(current_user: CurrentUser, db: Session = Depends(get_db)):
    data, cached = service.get_dashboard(db, current_user)
    return success_response(data=data, cached=cached)


@router.get("/weak-points", summary="Topics with the highest error rate")
def get_weak_points(current_user: CurrentUser, db: Session = Depends(get_db)):
    return success_response(data=service.weak_points(db, current_user.id))


@router.get("/estatisticas", summary="Per-discipline statistics of the user")
def list_estatisticas(current_user: CurrentUser, disciplina: Optional[str] = None, db: Session = Depends(get_db)):
    rows = stats.list_stats(db, current_user.id, disciplina=disciplina)
    return success_response(data=[schemas.DisciplineStats.model_validate(r) for r in rows])


@router.post("/estatisticas", summary="Add study results to a discipline")
def update_estatisticas(body: schemas.DisciplineStatsUpdate, current_user: CurrentUser, db: Session = Depends(get_db)):
    disciplina = (body.disciplina or "").strip()
    if not disciplina:
        raise MissingFieldsError("Disciplina é obrigatória", fields=["disciplina"])

    row = stats.accumulate(
        db,
        current_user.id,
        disciplina,
        total_questions=body.total_questions,
        correct_answers=body.correct_answers,
        study_time_minutes=body.study_time_minutes,
    )
    stats.invalidate_user_cache(db, current_user.id)
    db.commit()
    db.refresh(row)

    logger.info("Discipline stats updated", disciplina=disciplina, average_score=float(row.average_score))
    return success_response(
        data=schemas.DisciplineStats.model_validate(row),
        message="Estatísticas atualizadas com sucesso",
    )
