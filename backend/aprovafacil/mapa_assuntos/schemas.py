import uuid
from typing import Optional
from pydantic import BaseModel, Field


class MapaAssunto(BaseModel):
    id: uuid.UUID
    disciplina: str
    tema: str
    subtema: Optional[str] = None
    concurso_id: Optional[uuid.UUID] = None
    categoria_id: Optional[uuid.UUID] = None
    peso_disciplina: Optional[int] = None

    class Config:
        from_attributes = True


class MapaAssuntoComStatus(MapaAssunto):
    status: str


# Campos opcionais: a ausência vira MISSING_FIELDS (400), não erro de schema
class MapaAssuntoStatusUpdate(BaseModel):
    assuntoId: Optional[uuid.UUID] = None
    status: Optional[str] = None


class MapaAssuntoCreate(BaseModel):
    disciplina: str = Field(min_length=1, max_length=120)
    tema: str = Field(min_length=1, max_length=200)
    subtema: Optional[str] = None
    concurso_id: Optional[uuid.UUID] = None
    categoria_id: Optional[uuid.UUID] = None
    peso_disciplina: Optional[int] = Field(default=None, ge=1, le=100)
