import uuid
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, model_validator


class DisciplineStats(BaseModel):
    id: uuid.UUID
    disciplina: str
    total_questions: int
    correct_answers: int
    average_score: float
    study_time_minutes: int = 0
    last_activity: Optional[datetime] = None

    class Config:
        from_attributes = True


# disciplina ausente vira MISSING_FIELDS (400), como nos demais upserts
class DisciplineStatsUpdate(BaseModel):
    disciplina: Optional[str] = Field(default=None, max_length=100)
    total_questions: int = Field(default=0, ge=0)
    correct_answers: int = Field(default=0, ge=0)
    study_time_minutes: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def correct_within_total(self):
        if self.correct_answers > self.total_questions:
            raise ValueError("correct_answers não pode ser maior que total_questions")
        return self
