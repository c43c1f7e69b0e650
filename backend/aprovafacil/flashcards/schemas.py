import uuid
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class Flashcard(BaseModel):
    id: uuid.UUID
    front: str
    back: str
    tema: Optional[str] = None
    subtema: Optional[str] = None
    disciplina: str
    concurso_id: Optional[uuid.UUID] = None
    categoria_id: Optional[uuid.UUID] = None
    peso_disciplina: Optional[int] = None

    class Config:
        from_attributes = True


class FlashcardCreate(BaseModel):
    front: str = Field(min_length=1)
    back: str = Field(min_length=1)
    disciplina: str = Field(min_length=1, max_length=120)
    tema: str = Field(min_length=1, max_length=200)
    subtema: Optional[str] = None
    concurso_id: Optional[uuid.UUID] = None
    categoria_id: Optional[uuid.UUID] = None
    peso_disciplina: Optional[int] = Field(default=None, ge=1, le=100)


class FlashcardProgressUpdate(BaseModel):
    flashcard_id: uuid.UUID
    status: str
    next_review: Optional[datetime] = None


class FlashcardProgress(BaseModel):
    id: uuid.UUID
    flashcard_id: uuid.UUID
    status: str
    next_review: Optional[datetime] = None
    review_count: int
    updated_at: Optional[datetime] = None
    flashcard: Optional[Flashcard] = None

    class Config:
        from_attributes = True
