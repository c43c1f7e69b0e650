import uuid
from datetime import timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session, joinedload

from aprovafacil.audit import service as audit
from aprovafacil.concursos import crud as concursos_crud
from aprovafacil.core.constants import StudyConstants, ValidationConstants
from aprovafacil.core.database import get_db, utcnow
from aprovafacil.core.exceptions import InvalidStatusError, NotFoundError
from aprovafacil.core.logging import get_logger
from aprovafacil.core.responses import PageParams, page_params, paginate, success_response
from aprovafacil.users.auth import AdminUser, CurrentUser
from . import models, schemas

logger = get_logger("flashcards.router")

router = APIRouter()


@router.get("", summary="List flashcards")
def list_flashcards(
    current_user: CurrentUser,
    concurso_id: Optional[uuid.UUID] = None,
    disciplina: Optional[str] = None,
    tema: Optional[str] = None,
    params: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
):
    query = db.query(models.Flashcard)
    if concurso_id:
        query = query.filter(models.Flashcard.concurso_id == concurso_id)
    if disciplina:
        query = query.filter(models.Flashcard.disciplina == disciplina)
    if tema:
        query = query.filter(models.Flashcard.tema == tema)

    items, meta = paginate(query.order_by(models.Flashcard.disciplina, models.Flashcard.tema), params)
    return success_response(data=[schemas.Flashcard.model_validate(f) for f in items], pagination=meta)


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create a flashcard (admin)")
def create_flashcard(request: Request, body: schemas.FlashcardCreate, admin: AdminUser, db: Session = Depends(get_db)):
    concurso_id, categoria_id = concursos_crud.resolve_scope(db, body.concurso_id, body.categoria_id)
    flashcard = models.Flashcard(
        **body.model_dump(exclude={"concurso_id", "categoria_id"}),
        concurso_id=concurso_id,
        categoria_id=categoria_id,
    )
    db.add(flashcard)
    db.flush()
    audit.record_audit(db, audit.CREATE, "cartoes_memorizacao", user_id=admin.id, record_id=flashcard.id,
                       new_values={"disciplina": flashcard.disciplina, "tema": flashcard.tema}, request=request)
    db.commit()
    db.refresh(flashcard)

    logger.info("Flashcard created", flashcard_id=str(flashcard.id), disciplina=flashcard.disciplina)
    return success_response(data=schemas.Flashcard.model_validate(flashcard), message="Flashcard criado com sucesso")


@router.get("/progress", summary="List the user's flashcard progress")
def list_progress(
    current_user: CurrentUser,
    status: Optional[str] = None,
    limit: int = Query(ValidationConstants.DEFAULT_PAGE_SIZE, ge=1, le=ValidationConstants.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
):
    if status is not None and status not in StudyConstants.FLASHCARD_STATUSES:
        raise InvalidStatusError(status, StudyConstants.FLASHCARD_STATUSES)

    query = (
        db.query(models.UserFlashcardProgress)
        .options(joinedload(models.UserFlashcardProgress.flashcard))
        .filter(models.UserFlashcardProgress.user_id == current_user.id)
    )
    if status:
        query = query.filter(models.UserFlashcardProgress.status == status)

    rows = query.order_by(models.UserFlashcardProgress.updated_at.desc()).limit(limit).all()
    return success_response(data=[schemas.FlashcardProgress.model_validate(r) for r in rows])


@router.put("/progress", summary="Record a flashcard review")
def update_progress(body: schemas.FlashcardProgressUpdate, current_user: CurrentUser, db: Session = Depends(get_db)):
    if body.status not in StudyConstants.FLASHCARD_STATUSES:
        raise InvalidStatusError(body.status, StudyConstants.FLASHCARD_STATUSES)

    flashcard = db.get(models.Flashcard, body.flashcard_id)
    if not flashcard:
        raise NotFoundError("Flashcard", error_code="FLASHCARD_NOT_FOUND")

    now = utcnow()
    progress = (
        db.query(models.UserFlashcardProgress)
        .filter(
            models.UserFlashcardProgress.user_id == current_user.id,
            models.UserFlashcardProgress.flashcard_id == flashcard.id,
        )
        .first()
    )
    if progress is None:
        progress = models.UserFlashcardProgress(user_id=current_user.id, flashcard_id=flashcard.id, review_count=0)
        db.add(progress)

    progress.status = body.status
    progress.review_count = (progress.review_count or 0) + 1
    progress.next_review = body.next_review or now + timedelta(days=StudyConstants.FLASHCARD_REVIEW_DAYS[body.status])
    progress.updated_at = now
    db.commit()
    db.refresh(progress)

    logger.info("Flashcard reviewed", flashcard_id=str(flashcard.id), status=body.status)
    return success_response(data=schemas.FlashcardProgress.model_validate(progress))
