import uuid
from datetime import datetime
from typing import Any, List, Optional
from pydantic import BaseModel, Field


class Apostila(BaseModel):
    id: uuid.UUID
    title: str
    slug: str
    description: Optional[str] = None
    concurso_id: Optional[uuid.UUID] = None
    categoria_id: Optional[uuid.UUID] = None
    disciplinas: Optional[List[str]] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ApostilaModuloCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    content_json: Any = Field(default_factory=dict)


class ApostilaCreate(BaseModel):
    title: str = Field(min_length=3, max_length=200)
    description: Optional[str] = None
    concurso_id: Optional[uuid.UUID] = None
    categoria_id: Optional[uuid.UUID] = None
    disciplinas: Optional[List[str]] = None
    # Módulos numerados na ordem enviada, a partir de 1
    modules: List[ApostilaModuloCreate] = []


class ApostilaModulo(BaseModel):
    id: uuid.UUID
    apostila_id: uuid.UUID
    module_number: int
    title: str
    content_json: Any
    completed: bool = False
    progress_percentage: int = 0

    class Config:
        from_attributes = True


class ApostilaProgressUpdate(BaseModel):
    completed: bool = False
    progress_percentage: int = Field(default=0, ge=0, le=100)


class ApostilaProgress(BaseModel):
    id: uuid.UUID
    apostila_content_id: uuid.UUID
    completed: bool
    progress_percentage: int
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
