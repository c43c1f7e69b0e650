import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from aprovafacil.apostilas.models import Apostila
from aprovafacil.apostilas.schemas import Apostila as ApostilaSchema
from aprovafacil.core.database import get_db
from aprovafacil.core.exceptions import NotFoundError, ValidationError
from aprovafacil.core.logging import get_logger
from aprovafacil.core.responses import PageParams, page_params, success_response
from aprovafacil.core.settings import settings
from aprovafacil.flashcards.models import Flashcard
from aprovafacil.flashcards.schemas import Flashcard as FlashcardSchema
from aprovafacil.mapa_assuntos.models import MapaAssunto
from aprovafacil.mapa_assuntos.schemas import MapaAssunto as MapaAssuntoSchema
from aprovafacil.simulados.models import Simulado
from aprovafacil.simulados.schemas import Simulado as SimuladoSchema
from aprovafacil.simulados.service import visible_simulados_query
from aprovafacil.users.auth import CurrentUser
from . import schemas, service

logger = get_logger("preferences.router")

router = APIRouter()
conteudo_router = APIRouter()


@router.get("", summary="Get the user's active concurso preference")
def get_preference(current_user: CurrentUser, db: Session = Depends(get_db)):
    preference = service.get_active_preference(db, current_user.id)
    if not preference:
        raise NotFoundError("Preferência de concurso", error_code="PREFERENCE_NOT_FOUND")

    return success_response(
        data=schemas.ConcursoPreference.model_validate(preference),
        canChange=service.can_change(preference),
        daysUntilChange=service.days_until_change(preference),
    )


@router.post("", summary="Select a concurso")
def select_concurso(
    request: Request,
    body: schemas.ConcursoPreferenceRequest,
    current_user: CurrentUser,
    db: Session = Depends(get_db),
):
    preference = service.select_concurso(db, current_user, body.concurso_id, request=request)
    return success_response(
        data=schemas.ConcursoPreference.model_validate(preference),
        message="Concurso selecionado com sucesso",
        canChange=False,
        daysUntilChange=settings.CONCURSO_CHANGE_DAYS,
    )


@router.put("", summary="Change the concurso of the active preference")
def update_concurso(
    request: Request,
    body: schemas.ConcursoPreferenceRequest,
    current_user: CurrentUser,
    db: Session = Depends(get_db),
):
    preference = service.update_concurso(db, current_user, body.concurso_id, request=request)
    return success_response(
        data=schemas.ConcursoPreference.model_validate(preference),
        message="Concurso atualizado com sucesso",
        canChange=False,
        daysUntilChange=settings.CONCURSO_CHANGE_DAYS,
    )


@conteudo_router.get("/filtrado", summary="Content of a concurso grouped by type")
def get_conteudo_filtrado(
    current_user: CurrentUser,
    categoria_id: Optional[uuid.UUID] = None,
    concurso_id: Optional[uuid.UUID] = None,
    disciplina: Optional[str] = None,
    dificuldade: Optional[str] = None,
    is_public: Optional[bool] = None,
    params: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
):
    # Sem filtros explícitos, usa o concurso escolhido pelo usuário
    if categoria_id is None and concurso_id is None:
        preference = service.get_active_preference(db, current_user.id)
        if preference and preference.concurso:
            concurso_id = preference.concurso_id
            categoria_id = preference.concurso.categoria_id

    if categoria_id is None or concurso_id is None:
        raise ValidationError(
            "categoria_id e concurso_id são obrigatórios",
            error_code="MISSING_FILTERS",
            details={"fields": ["categoria_id", "concurso_id"]},
        )

    # Mesma regra de visibilidade de /api/simulados: públicos ou do próprio usuário
    simulados_query = visible_simulados_query(db, current_user).filter(
        Simulado.categoria_id == categoria_id,
        Simulado.concurso_id == concurso_id,
    )
    if is_public is not None:
        simulados_query = simulados_query.filter(Simulado.is_public.is_(is_public))
    if dificuldade:
        simulados_query = simulados_query.filter(Simulado.difficulty == dificuldade)

    flashcards_query = db.query(Flashcard).filter(
        Flashcard.categoria_id == categoria_id, Flashcard.concurso_id == concurso_id
    )
    mapa_query = db.query(MapaAssunto).filter(
        MapaAssunto.categoria_id == categoria_id, MapaAssunto.concurso_id == concurso_id
    )
    if disciplina:
        flashcards_query = flashcards_query.filter(Flashcard.disciplina == disciplina)
        mapa_query = mapa_query.filter(MapaAssunto.disciplina == disciplina)

    apostilas_query = db.query(Apostila).filter(
        Apostila.categoria_id == categoria_id, Apostila.concurso_id == concurso_id
    )

    def page_of(query, model):
        return query.order_by(model.created_at.desc()).offset(params.offset).limit(params.limit).all()

    simulados = page_of(simulados_query, Simulado)
    flashcards = page_of(flashcards_query, Flashcard)
    apostilas = page_of(apostilas_query, Apostila)
    mapa_assuntos = page_of(mapa_query, MapaAssunto)

    total = (
        simulados_query.order_by(None).count()
        + flashcards_query.order_by(None).count()
        + apostilas_query.order_by(None).count()
        + mapa_query.order_by(None).count()
    )

    logger.info(
        "Filtered content requested",
        categoria_id=str(categoria_id),
        concurso_id=str(concurso_id),
        simulados=len(simulados),
        flashcards=len(flashcards),
        apostilas=len(apostilas),
        mapa_assuntos=len(mapa_assuntos),
    )
    return success_response(
        data={
            "simulados": [SimuladoSchema.model_validate(s) for s in simulados],
            "flashcards": [FlashcardSchema.model_validate(f) for f in flashcards],
            "apostilas": [ApostilaSchema.model_validate(a) for a in apostilas],
            "mapaAssuntos": [MapaAssuntoSchema.model_validate(m) for m in mapa_assuntos],
        },
        total=total,
        page=params.page,
        limit=params.limit,
    )
