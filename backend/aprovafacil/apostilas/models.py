import uuid
from sqlalchemy import Column, String, Integer, Boolean, DateTime, Text, Uuid, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from aprovafacil.core.database import Base, JSONDocument, utcnow


class Apostila(Base):
    __tablename__ = "apostila_inteligente"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String, nullable=False)
    slug = Column(String, unique=True, index=True, nullable=False)
    description = Column(Text, nullable=True)
    concurso_id = Column(Uuid, ForeignKey("concursos.id"), nullable=True, index=True)
    categoria_id = Column(Uuid, ForeignKey("concurso_categorias.id"), nullable=True, index=True)
    disciplinas = Column(JSONDocument, nullable=True)
    created_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    modules = relationship(
        "ApostilaContent", back_populates="apostila", cascade="all, delete-orphan",
        order_by="ApostilaContent.module_number",
    )


class ApostilaContent(Base):
    __tablename__ = "apostila_content"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    apostila_id = Column(Uuid, ForeignKey("apostila_inteligente.id", ondelete="CASCADE"), nullable=False, index=True)
    module_number = Column(Integer, nullable=False)
    title = Column(String, nullable=False)
    content_json = Column(JSONDocument, nullable=False)
    concurso_id = Column(Uuid, ForeignKey("concursos.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    apostila = relationship("Apostila", back_populates="modules")


class UserApostilaProgress(Base):
    __tablename__ = "user_apostila_progress"
    __table_args__ = (UniqueConstraint("user_id", "apostila_content_id", name="uq_user_apostila_progress"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    apostila_content_id = Column(Uuid, ForeignKey("apostila_content.id", ondelete="CASCADE"), nullable=False)
    completed = Column(Boolean, nullable=False, default=False)
    progress_percentage = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
