from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from aprovafacil.core.database import get_db
from aprovafacil.core.exceptions import NotFoundError
from aprovafacil.core.responses import success_response
from aprovafacil.users.auth import CurrentUser
from . import schemas, service

router = APIRouter()


@router.get("", summary="Get the user's latest study plan")
def get_plano(current_user: CurrentUser, db: Session = Depends(get_db)):
    plano = service.get_latest_plan(db, current_user.id)
    if not plano:
        raise NotFoundError("Plano de estudos", error_code="PLAN_NOT_FOUND")
    return success_response(data=schemas.PlanoEstudo.model_validate(plano))


@router.post("", status_code=status.HTTP_201_CREATED, summary="Generate a weekly study plan")
def create_plano(request: Request, body: schemas.PlanoEstudoCreate, current_user: CurrentUser, db: Session = Depends(get_db)):
    plano = service.create_plan(db, current_user, body, request=request)
    return success_response(data=schemas.PlanoEstudo.model_validate(plano), message="Plano de estudos criado com sucesso")
