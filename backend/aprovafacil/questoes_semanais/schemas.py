import uuid
from datetime import datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, Field


class QuestaoSemanal(BaseModel):
    question_text: str = Field(min_length=1)
    alternatives: Dict[str, str]
    correct_answer: str
    discipline: Optional[str] = None
    topic: Optional[str] = None


class QuestoesSemanaisCreate(BaseModel):
    title: str = Field(min_length=3, max_length=200)
    description: Optional[str] = None
    week_number: int = Field(ge=1, le=53)
    year: int = Field(ge=2000, le=2100)
    concurso_id: Optional[uuid.UUID] = None
    questions: List[QuestaoSemanal] = Field(min_length=1)


class QuestoesSemanais(BaseModel):
    id: uuid.UUID
    title: str
    description: Optional[str] = None
    week_number: int
    year: int
    concurso_id: Optional[uuid.UUID] = None
    questions_count: int = 0
    completed: bool = False
    score: Optional[int] = None
    completed_at: Optional[datetime] = None


class QuestoesSemanaisSubmit(BaseModel):
    answers: List[str]


# Atualização parcial: só os campos enviados são alterados
class QuestoesSemanaisUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=3, max_length=200)
    description: Optional[str] = None
    week_number: Optional[int] = Field(default=None, ge=1, le=53)
    year: Optional[int] = Field(default=None, ge=2000, le=2100)
    concurso_id: Optional[uuid.UUID] = None
    questions: Optional[List[QuestaoSemanal]] = Field(default=None, min_length=1)
