import uuid
from sqlalchemy import Column, Date, DateTime, Uuid, ForeignKey
from sqlalchemy.orm import relationship
from aprovafacil.core.database import Base, JSONDocument, utcnow


class PlanoEstudo(Base):
    __tablename__ = "planos_estudo"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    concurso_id = Column(Uuid, ForeignKey("concursos.id"), nullable=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    # {"segunda": [{"disciplina": "...", "horas": 1.5}], ...}
    schedule = Column(JSONDocument, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    concurso = relationship("Concurso")
