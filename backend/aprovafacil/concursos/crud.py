import uuid
from typing import List, Optional, Tuple
from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from aprovafacil.core.exceptions import ConflictError, NotFoundError
from aprovafacil.core.security import InputValidator
from . import models, schemas


def get_concurso(db: Session, concurso_id: uuid.UUID, only_active: bool = True) -> Optional[models.Concurso]:
    query = db.query(models.Concurso).options(joinedload(models.Concurso.categoria)).filter(
        models.Concurso.id == concurso_id
    )
    if only_active:
        query = query.filter(models.Concurso.is_active.is_(True))
    return query.first()


def get_concurso_or_404(db: Session, concurso_id: uuid.UUID) -> models.Concurso:
    concurso = get_concurso(db, concurso_id)
    if not concurso:
        raise NotFoundError("Concurso", error_code="CONCURSO_NOT_FOUND")
    return concurso


def query_concursos(
    db: Session,
    categoria_id: Optional[uuid.UUID] = None,
    ano: Optional[int] = None,
    banca: Optional[str] = None,
    search: Optional[str] = None,
):
    query = db.query(models.Concurso).options(joinedload(models.Concurso.categoria)).filter(
        models.Concurso.is_active.is_(True)
    )
    if categoria_id:
        query = query.filter(models.Concurso.categoria_id == categoria_id)
    if ano:
        query = query.filter(models.Concurso.ano == ano)
    if banca:
        query = query.filter(models.Concurso.banca.ilike(banca))
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(models.Concurso.nome.ilike(pattern), models.Concurso.descricao.ilike(pattern)))
    return query.order_by(models.Concurso.ano.desc(), models.Concurso.nome)


def create_concurso(db: Session, data: schemas.ConcursoCreate) -> models.Concurso:
    if data.categoria_id and not get_categoria(db, data.categoria_id):
        raise NotFoundError("Categoria", error_code="CATEGORIA_NOT_FOUND")
    concurso = models.Concurso(**data.model_dump())
    db.add(concurso)
    db.flush()
    return concurso


def list_categorias(db: Session) -> List[models.ConcursoCategoria]:
    return (
        db.query(models.ConcursoCategoria)
        .filter(models.ConcursoCategoria.is_active.is_(True))
        .order_by(models.ConcursoCategoria.nome)
        .all()
    )


def get_categoria(db: Session, categoria_id: uuid.UUID) -> Optional[models.ConcursoCategoria]:
    return (
        db.query(models.ConcursoCategoria)
        .filter(models.ConcursoCategoria.id == categoria_id, models.ConcursoCategoria.is_active.is_(True))
        .first()
    )


def list_disciplinas(db: Session, categoria_id: Optional[uuid.UUID] = None) -> List[models.CategoriaDisciplina]:
    query = db.query(models.CategoriaDisciplina).filter(models.CategoriaDisciplina.is_active.is_(True))
    if categoria_id:
        query = query.filter(models.CategoriaDisciplina.categoria_id == categoria_id)
    return query.order_by(models.CategoriaDisciplina.ordem, models.CategoriaDisciplina.nome).all()


def resolve_scope(
    db: Session, concurso_id: Optional[uuid.UUID], categoria_id: Optional[uuid.UUID]
) -> Tuple[Optional[uuid.UUID], Optional[uuid.UUID]]:
    """Valida concurso/categoria de um conteúdo; sem categoria, herda a do concurso."""
    if concurso_id:
        concurso = get_concurso_or_404(db, concurso_id)
        categoria_id = categoria_id or concurso.categoria_id
    if categoria_id and not get_categoria(db, categoria_id):
        raise NotFoundError("Categoria", error_code="CATEGORIA_NOT_FOUND")
    return concurso_id, categoria_id


def create_categoria(db: Session, data: schemas.ConcursoCategoriaCreate) -> models.ConcursoCategoria:
    slug = InputValidator.slugify(data.slug or data.nome)
    if db.query(models.ConcursoCategoria.id).filter(models.ConcursoCategoria.slug == slug).first():
        raise ConflictError("Já existe uma categoria com este slug", error_code="SLUG_ALREADY_EXISTS",
                            details={"slug": slug})

    categoria = models.ConcursoCategoria(
        nome=data.nome,
        slug=slug,
        descricao=data.descricao,
        cor_primaria=data.cor_primaria,
        cor_secundaria=data.cor_secundaria,
        is_active=True,
    )
    db.add(categoria)
    db.flush()
    return categoria


def create_disciplina(db: Session, data: schemas.CategoriaDisciplinaCreate) -> models.CategoriaDisciplina:
    if not get_categoria(db, data.categoria_id):
        raise NotFoundError("Categoria", error_code="CATEGORIA_NOT_FOUND")

    duplicate = (
        db.query(models.CategoriaDisciplina.id)
        .filter(models.CategoriaDisciplina.categoria_id == data.categoria_id,
                models.CategoriaDisciplina.nome == data.nome)
        .first()
    )
    if duplicate:
        raise ConflictError("Disciplina já existe nesta categoria", error_code="DISCIPLINA_ALREADY_EXISTS",
                            details={"nome": data.nome})

    disciplina = models.CategoriaDisciplina(**data.model_dump(), is_active=True)
    db.add(disciplina)
    db.flush()
    return disciplina
