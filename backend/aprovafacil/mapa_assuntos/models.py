import uuid
from sqlalchemy import Column, String, Integer, DateTime, Uuid, ForeignKey, UniqueConstraint
from aprovafacil.core.database import Base, utcnow


class MapaAssunto(Base):
    __tablename__ = "mapa_assuntos"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    disciplina = Column(String, nullable=False, index=True)
    tema = Column(String, nullable=False)
    subtema = Column(String, nullable=True)
    concurso_id = Column(Uuid, ForeignKey("concursos.id"), nullable=True, index=True)
    categoria_id = Column(Uuid, ForeignKey("concurso_categorias.id"), nullable=True, index=True)
    peso_disciplina = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)


class UserMapaAssuntoStatus(Base):
    __tablename__ = "user_mapa_assuntos_status"
    __table_args__ = (UniqueConstraint("user_id", "mapa_assunto_id", name="uq_user_mapa_assunto"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    mapa_assunto_id = Column(Uuid, ForeignKey("mapa_assuntos.id", ondelete="CASCADE"), nullable=False)
    status = Column(String, nullable=False, default="nao_estudado")
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
