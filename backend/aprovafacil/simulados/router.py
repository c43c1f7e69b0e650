import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from aprovafacil.core.database import get_db
from aprovafacil.core.responses import PageParams, page_params, paginate, success_response
from aprovafacil.users.auth import CurrentUser
from . import models, schemas, service

router = APIRouter()


def _detail_response(request: Request, db: Session, simulado: models.Simulado):
    detail = service.build_detail(db, simulado)
    etag = service.compute_etag(detail)

    if request.headers.get("if-none-match") == etag:
        return Response(status_code=status.HTTP_304_NOT_MODIFIED, headers={"ETag": etag})

    return JSONResponse(
        content=success_response(data=detail),
        headers={"ETag": etag, "Cache-Control": "private, max-age=0, must-revalidate"},
    )


@router.get("", summary="List visible simulados")
def list_simulados(
    current_user: CurrentUser,
    concurso_id: Optional[uuid.UUID] = None,
    difficulty: Optional[str] = None,
    is_public: Optional[bool] = None,
    params: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
):
    query = service.visible_simulados_query(db, current_user)
    if concurso_id:
        query = query.filter(models.Simulado.concurso_id == concurso_id)
    if difficulty:
        query = query.filter(models.Simulado.difficulty == difficulty)
    if is_public is not None:
        query = query.filter(models.Simulado.is_public.is_(is_public))

    items, meta = paginate(query.order_by(models.Simulado.created_at.desc()), params)
    return success_response(data=[schemas.Simulado.model_validate(s) for s in items], pagination=meta)


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create a simulado with its questions")
def create_simulado(request: Request, body: schemas.SimuladoCreate, current_user: CurrentUser, db: Session = Depends(get_db)):
    simulado = service.create_simulado(db, current_user, body, request=request)
    return success_response(data=service.build_detail(db, simulado), message="Simulado criado com sucesso")


@router.get("/slug/{slug}", summary="Get a simulado by slug")
def get_simulado_by_slug(slug: str, request: Request, current_user: CurrentUser, db: Session = Depends(get_db)):
    simulado = service.get_simulado_by_slug_or_404(db, current_user, slug)
    return _detail_response(request, db, simulado)


@router.get("/{simulado_id}", summary="Get a simulado with its questions")
def get_simulado(simulado_id: uuid.UUID, request: Request, current_user: CurrentUser, db: Session = Depends(get_db)):
    simulado = service.get_simulado_or_404(db, current_user, simulado_id)
    return _detail_response(request, db, simulado)


@router.delete("/{simulado_id}", summary="Soft-delete a simulado")
def delete_simulado(simulado_id: uuid.UUID, request: Request, current_user: CurrentUser, db: Session = Depends(get_db)):
    service.soft_delete_simulado(db, current_user, simulado_id, request=request)
    return success_response(message="Simulado excluído com sucesso")


@router.post("/{simulado_id}/submit", summary="Submit answers and get the score")
def submit_simulado(
    simulado_id: uuid.UUID,
    request: Request,
    body: schemas.SimuladoSubmit,
    current_user: CurrentUser,
    db: Session = Depends(get_db),
):
    result = service.submit_simulado(db, current_user, simulado_id, body, request=request)
    return success_response(data=result, message="Simulado finalizado com sucesso")


@router.get("/{simulado_id}/resultado", summary="Get the user's result for a simulado")
def get_resultado(simulado_id: uuid.UUID, current_user: CurrentUser, db: Session = Depends(get_db)):
    return success_response(data=service.get_result(db, current_user, simulado_id))
