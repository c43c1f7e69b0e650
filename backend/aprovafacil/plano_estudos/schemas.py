import uuid
from datetime import date, datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, Field


class PlanoEstudoCreate(BaseModel):
    concurso_id: Optional[uuid.UUID] = None
    start_date: date
    end_date: date
    horas_diarias: Optional[float] = Field(default=None, gt=0, le=16)


class SessaoDisciplina(BaseModel):
    disciplina: str
    horas: float


class PlanoEstudo(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    concurso_id: Optional[uuid.UUID] = None
    start_date: date
    end_date: date
    schedule: Dict[str, List[SessaoDisciplina]]
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
