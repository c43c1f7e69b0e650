import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from aprovafacil.audit import service as audit
from aprovafacil.core.database import get_db
from aprovafacil.core.exceptions import NotFoundError
from aprovafacil.core.logging import get_logger
from aprovafacil.core.responses import PageParams, page_params, paginate, success_response
from aprovafacil.users.auth import AdminUser
from . import crud, schemas

logger = get_logger("concursos.router")

router = APIRouter()
categorias_router = APIRouter()
disciplinas_router = APIRouter()


@router.get("", summary="List active concursos")
def list_concursos(
    categoria_id: Optional[uuid.UUID] = None,
    ano: Optional[int] = None,
    banca: Optional[str] = None,
    search: Optional[str] = Query(default=None, max_length=100),
    params: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
):
    query = crud.query_concursos(db, categoria_id=categoria_id, ano=ano, banca=banca, search=search)
    items, meta = paginate(query, params)
    return success_response(data=[schemas.Concurso.model_validate(c) for c in items], pagination=meta)


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create a concurso (admin)")
def create_concurso(request: Request, body: schemas.ConcursoCreate, admin: AdminUser, db: Session = Depends(get_db)):
    concurso = crud.create_concurso(db, body)
    audit.record_audit(db, audit.CREATE, "concursos", user_id=admin.id, record_id=concurso.id,
                       new_values=body.model_dump(), request=request)
    db.commit()
    db.refresh(concurso)
    logger.info("Concurso created", concurso_id=str(concurso.id))
    return success_response(data=schemas.Concurso.model_validate(concurso))


@router.get("/{concurso_id}", summary="Get a concurso by id")
def get_concurso(concurso_id: uuid.UUID, db: Session = Depends(get_db)):
    concurso = crud.get_concurso_or_404(db, concurso_id)
    return success_response(data=schemas.Concurso.model_validate(concurso))


@categorias_router.get("", summary="List active categories")
def list_categorias(db: Session = Depends(get_db)):
    categorias = crud.list_categorias(db)
    return success_response(data=[schemas.ConcursoCategoria.model_validate(c) for c in categorias])


@categorias_router.post("", status_code=status.HTTP_201_CREATED, summary="Create a category (admin)")
def create_categoria(request: Request, body: schemas.ConcursoCategoriaCreate, admin: AdminUser, db: Session = Depends(get_db)):
    categoria = crud.create_categoria(db, body)
    audit.record_audit(db, audit.CREATE, "concurso_categorias", user_id=admin.id, record_id=categoria.id,
                       new_values={"nome": categoria.nome, "slug": categoria.slug}, request=request)
    db.commit()
    db.refresh(categoria)
    logger.info("Categoria created", categoria_id=str(categoria.id), slug=categoria.slug)
    return success_response(data=schemas.ConcursoCategoria.model_validate(categoria),
                            message="Categoria criada com sucesso")


@categorias_router.get("/{categoria_id}", summary="Get a category with its disciplinas and concursos")
def get_categoria(categoria_id: uuid.UUID, db: Session = Depends(get_db)):
    categoria = crud.get_categoria(db, categoria_id)
    if not categoria:
        raise NotFoundError("Categoria", error_code="CATEGORIA_NOT_FOUND")

    detalhe = schemas.ConcursoCategoriaDetalhe.model_validate(categoria)
    detalhe.disciplinas = [
        schemas.CategoriaDisciplina.model_validate(d) for d in categoria.disciplinas if d.is_active
    ]
    detalhe.concursos = [
        schemas.ConcursoResumo.model_validate(c) for c in categoria.concursos if c.is_active
    ]
    return success_response(data=detalhe)


@disciplinas_router.get("", summary="List disciplinas, optionally by category")
def list_disciplinas(categoria_id: Optional[uuid.UUID] = None, db: Session = Depends(get_db)):
    disciplinas = crud.list_disciplinas(db, categoria_id=categoria_id)
    return success_response(data=[schemas.CategoriaDisciplina.model_validate(d) for d in disciplinas])


@disciplinas_router.post("", status_code=status.HTTP_201_CREATED, summary="Add a disciplina to a category (admin)")
def create_disciplina(request: Request, body: schemas.CategoriaDisciplinaCreate, admin: AdminUser, db: Session = Depends(get_db)):
    disciplina = crud.create_disciplina(db, body)
    audit.record_audit(db, audit.CREATE, "categoria_disciplinas", user_id=admin.id, record_id=disciplina.id,
                       new_values=body.model_dump(), request=request)
    db.commit()
    db.refresh(disciplina)
    logger.info("Disciplina created", disciplina_id=str(disciplina.id), categoria_id=str(body.categoria_id))
    return success_response(data=schemas.CategoriaDisciplina.model_validate(disciplina),
                            message="Disciplina criada com sucesso")
