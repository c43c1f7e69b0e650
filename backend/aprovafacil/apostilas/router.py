import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from aprovafacil.audit import service as audit
from aprovafacil.concursos import crud as concursos_crud
from aprovafacil.core.database import get_db, unique_column_slug, utcnow
from aprovafacil.core.exceptions import NotFoundError
from aprovafacil.core.logging import get_logger
from aprovafacil.core.responses import PageParams, page_params, paginate, success_response
from aprovafacil.core.security import InputValidator
from aprovafacil.users.auth import AdminUser, CurrentUser
from . import models, schemas

logger = get_logger("apostilas.router")

router = APIRouter()


def _get_apostila_or_404(db: Session, apostila_id: uuid.UUID) -> models.Apostila:
    apostila = db.get(models.Apostila, apostila_id)
    if not apostila:
        raise NotFoundError("Apostila", error_code="APOSTILA_NOT_FOUND")
    return apostila


@router.get("", summary="List apostilas")
def list_apostilas(
    current_user: CurrentUser,
    concurso_id: Optional[uuid.UUID] = None,
    params: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
):
    query = db.query(models.Apostila)
    if concurso_id:
        query = query.filter(models.Apostila.concurso_id == concurso_id)
    items, meta = paginate(query.order_by(models.Apostila.created_at.desc()), params)
    return success_response(data=[schemas.Apostila.model_validate(a) for a in items], pagination=meta)


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create an apostila with its modules (admin)")
def create_apostila(request: Request, body: schemas.ApostilaCreate, admin: AdminUser, db: Session = Depends(get_db)):
    concurso_id, categoria_id = concursos_crud.resolve_scope(db, body.concurso_id, body.categoria_id)
    apostila = models.Apostila(
        title=InputValidator.sanitize_text_input(body.title, max_len=200),
        slug=unique_column_slug(db, models.Apostila.slug, body.title),
        description=body.description,
        concurso_id=concurso_id,
        categoria_id=categoria_id,
        disciplinas=body.disciplinas,
        created_by=admin.id,
    )
    apostila.modules = [
        models.ApostilaContent(module_number=number, title=module.title, content_json=module.content_json,
                               concurso_id=concurso_id)
        for number, module in enumerate(body.modules, start=1)
    ]
    db.add(apostila)
    db.flush()
    audit.record_audit(db, audit.CREATE, "apostila_inteligente", user_id=admin.id, record_id=apostila.id,
                       new_values={"slug": apostila.slug, "modules": len(body.modules)}, request=request)
    db.commit()
    db.refresh(apostila)

    logger.info("Apostila created", apostila_id=str(apostila.id), slug=apostila.slug)
    return success_response(data=schemas.Apostila.model_validate(apostila), message="Apostila criada com sucesso")


@router.get("/{apostila_id}", summary="Get an apostila")
def get_apostila(apostila_id: uuid.UUID, current_user: CurrentUser, db: Session = Depends(get_db)):
    return success_response(data=schemas.Apostila.model_validate(_get_apostila_or_404(db, apostila_id)))


@router.get("/{apostila_id}/modulos", summary="List modules with the user's progress")
def list_modulos(apostila_id: uuid.UUID, current_user: CurrentUser, db: Session = Depends(get_db)):
    apostila = _get_apostila_or_404(db, apostila_id)

    module_ids = [m.id for m in apostila.modules]
    progress_by_module = {}
    if module_ids:
        rows = (
            db.query(models.UserApostilaProgress)
            .filter(
                models.UserApostilaProgress.user_id == current_user.id,
                models.UserApostilaProgress.apostila_content_id.in_(module_ids),
            )
            .all()
        )
        progress_by_module = {row.apostila_content_id: row for row in rows}

    modulos = []
    for module in apostila.modules:
        item = schemas.ApostilaModulo.model_validate(module)
        progress = progress_by_module.get(module.id)
        if progress:
            item.completed = progress.completed
            item.progress_percentage = progress.progress_percentage
        modulos.append(item)

    completed = sum(1 for m in modulos if m.completed)
    return success_response(
        data=modulos,
        summary={"total": len(modulos), "completed": completed},
    )


@router.put("/modulos/{module_id}/progress", summary="Update progress on a module")
def update_module_progress(
    module_id: uuid.UUID,
    body: schemas.ApostilaProgressUpdate,
    current_user: CurrentUser,
    db: Session = Depends(get_db),
):
    module = db.get(models.ApostilaContent, module_id)
    if not module:
        raise NotFoundError("Módulo", error_code="MODULE_NOT_FOUND")

    progress = (
        db.query(models.UserApostilaProgress)
        .filter(
            models.UserApostilaProgress.user_id == current_user.id,
            models.UserApostilaProgress.apostila_content_id == module.id,
        )
        .first()
    )
    if progress is None:
        progress = models.UserApostilaProgress(user_id=current_user.id, apostila_content_id=module.id)
        db.add(progress)

    progress.completed = body.completed
    # Módulo concluído conta como 100%
    progress.progress_percentage = 100 if body.completed else body.progress_percentage
    progress.updated_at = utcnow()
    db.commit()
    db.refresh(progress)
    return success_response(data=schemas.ApostilaProgress.model_validate(progress))
