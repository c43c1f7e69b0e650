import uuid
from collections import Counter
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from aprovafacil.audit import service as audit
from aprovafacil.concursos import crud as concursos_crud
from aprovafacil.core.constants import StudyConstants
from aprovafacil.core.database import get_db, utcnow
from aprovafacil.core.exceptions import InvalidStatusError, MissingFieldsError, NotFoundError
from aprovafacil.core.logging import get_logger
from aprovafacil.core.responses import success_response
from aprovafacil.users.auth import AdminUser, CurrentUser
from . import models, schemas

logger = get_logger("mapa_assuntos.router")

router = APIRouter()


@router.get("", summary="List subjects with the user's study status")
def list_mapa_assuntos(
    current_user: CurrentUser,
    concurso_id: Optional[uuid.UUID] = None,
    disciplina: Optional[str] = None,
    db: Session = Depends(get_db),
):
    query = db.query(models.MapaAssunto)
    if concurso_id:
        query = query.filter(models.MapaAssunto.concurso_id == concurso_id)
    if disciplina:
        query = query.filter(models.MapaAssunto.disciplina == disciplina)
    assuntos = query.order_by(models.MapaAssunto.disciplina, models.MapaAssunto.tema).all()

    statuses = {
        row.mapa_assunto_id: row.status
        for row in db.query(models.UserMapaAssuntoStatus).filter(
            models.UserMapaAssuntoStatus.user_id == current_user.id
        )
    }

    items = []
    for assunto in assuntos:
        item = schemas.MapaAssunto.model_validate(assunto).model_dump()
        item["status"] = statuses.get(assunto.id, StudyConstants.MAPA_ASSUNTO_DEFAULT_STATUS)
        items.append(schemas.MapaAssuntoComStatus(**item))

    counts = Counter(item.status for item in items)
    summary = {name: counts.get(name, 0) for name in StudyConstants.MAPA_ASSUNTO_STATUSES}
    summary["total"] = len(items)
    return success_response(data=items, summary=summary)


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create a subject (admin)")
def create_mapa_assunto(request: Request, body: schemas.MapaAssuntoCreate, admin: AdminUser, db: Session = Depends(get_db)):
    concurso_id, categoria_id = concursos_crud.resolve_scope(db, body.concurso_id, body.categoria_id)
    assunto = models.MapaAssunto(
        **body.model_dump(exclude={"concurso_id", "categoria_id"}),
        concurso_id=concurso_id,
        categoria_id=categoria_id,
    )
    db.add(assunto)
    db.flush()
    audit.record_audit(db, audit.CREATE, "mapa_assuntos", user_id=admin.id, record_id=assunto.id,
                       new_values={"disciplina": assunto.disciplina, "tema": assunto.tema}, request=request)
    db.commit()
    db.refresh(assunto)

    logger.info("Subject created", assunto_id=str(assunto.id), disciplina=assunto.disciplina)
    return success_response(data=schemas.MapaAssunto.model_validate(assunto), message="Assunto criado com sucesso")


@router.put("/status", summary="Set the study status of a subject")
def update_status(body: schemas.MapaAssuntoStatusUpdate, current_user: CurrentUser, db: Session = Depends(get_db)):
    if body.assuntoId is None or not body.status:
        raise MissingFieldsError("assuntoId e status são obrigatórios", fields=["assuntoId", "status"])
    if body.status not in StudyConstants.MAPA_ASSUNTO_STATUSES:
        raise InvalidStatusError(body.status, StudyConstants.MAPA_ASSUNTO_STATUSES)

    assunto = db.get(models.MapaAssunto, body.assuntoId)
    if not assunto:
        raise NotFoundError("Assunto", error_code="ASSUNTO_NOT_FOUND")

    row = (
        db.query(models.UserMapaAssuntoStatus)
        .filter(
            models.UserMapaAssuntoStatus.user_id == current_user.id,
            models.UserMapaAssuntoStatus.mapa_assunto_id == assunto.id,
        )
        .first()
    )
    if row is None:
        row = models.UserMapaAssuntoStatus(user_id=current_user.id, mapa_assunto_id=assunto.id)
        db.add(row)
    row.status = body.status
    row.updated_at = utcnow()
    db.commit()

    logger.info("Subject status updated", assunto_id=str(assunto.id), status=body.status)
    return success_response(
        data={"assuntoId": assunto.id, "status": row.status},
        message="Status atualizado com sucesso",
    )
