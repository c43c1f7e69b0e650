import uuid
from datetime import datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, Field, field_validator, model_validator


class SimuladoQuestionBase(BaseModel):
    question_number: Optional[int] = Field(default=None, ge=1)
    question_text: str = Field(min_length=1)
    alternatives: Dict[str, str]
    discipline: Optional[str] = None
    topic: Optional[str] = None
    difficulty: Optional[str] = None


class SimuladoQuestionCreate(SimuladoQuestionBase):
    correct_answer: str = Field(min_length=1, max_length=5)
    explanation: Optional[str] = None

    @model_validator(mode="after")
    def correct_answer_is_an_alternative(self):
        if self.alternatives and self.correct_answer not in self.alternatives:
            raise ValueError("correct_answer deve ser uma das alternativas")
        return self


# Questão exibida durante a prova: sem gabarito
class SimuladoQuestion(SimuladoQuestionBase):
    id: uuid.UUID
    question_number: int

    class Config:
        from_attributes = True


class SimuladoCreate(BaseModel):
    title: str = Field(min_length=3, max_length=200)
    description: Optional[str] = None
    time_minutes: int = Field(default=60, ge=1, le=600)
    difficulty: str = "Médio"
    concurso_id: Optional[uuid.UUID] = None
    categoria_id: Optional[uuid.UUID] = None
    disciplinas: Optional[List[str]] = None
    is_public: bool = True
    questions: List[SimuladoQuestionCreate] = Field(min_length=1)


class Simulado(BaseModel):
    id: uuid.UUID
    title: str
    slug: str
    description: Optional[str] = None
    questions_count: int
    time_minutes: int
    difficulty: str
    concurso_id: Optional[uuid.UUID] = None
    categoria_id: Optional[uuid.UUID] = None
    disciplinas: Optional[List[str]] = None
    is_public: bool
    created_by: Optional[uuid.UUID] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SimuladoDetalhe(Simulado):
    questions: List[SimuladoQuestion] = []


class SimuladoSubmit(BaseModel):
    answers: List[str]
    timeSpent: float = Field(ge=1)  # segundos; o cliente pode mandar fração
    startedAt: Optional[datetime] = None
    completedAt: Optional[datetime] = None

    @field_validator("answers")
    @classmethod
    def normalize_answers(cls, value: List[str]) -> List[str]:
        return [(answer or "").strip().upper() for answer in value]


class SimuladoProgress(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    simulado_id: uuid.UUID
    score: int
    time_taken_minutes: int
    answers: List[str]
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    class Config:
        from_attributes = True
