import uuid
from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from aprovafacil.concursos.schemas import Concurso


class ConcursoPreferenceRequest(BaseModel):
    concurso_id: uuid.UUID


class ConcursoPreference(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    concurso_id: uuid.UUID
    selected_at: datetime
    can_change_until: datetime
    is_active: bool
    concurso: Optional[Concurso] = None

    class Config:
        from_attributes = True
