import uuid
from sqlalchemy import Column, String, Integer, DateTime, Text, Uuid, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from aprovafacil.core.database import Base, utcnow


class Flashcard(Base):
    __tablename__ = "cartoes_memorizacao"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    front = Column(Text, nullable=False)
    back = Column(Text, nullable=False)
    tema = Column(String, nullable=True, index=True)
    subtema = Column(String, nullable=True)
    disciplina = Column(String, nullable=False, index=True)
    concurso_id = Column(Uuid, ForeignKey("concursos.id"), nullable=True, index=True)
    categoria_id = Column(Uuid, ForeignKey("concurso_categorias.id"), nullable=True, index=True)
    peso_disciplina = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)


class UserFlashcardProgress(Base):
    __tablename__ = "user_flashcard_progress"
    __table_args__ = (UniqueConstraint("user_id", "flashcard_id", name="uq_user_flashcard_progress"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    flashcard_id = Column(Uuid, ForeignKey("cartoes_memorizacao.id", ondelete="CASCADE"), nullable=False)
    status = Column(String, nullable=False, default="novo")
    next_review = Column(DateTime(timezone=True), nullable=True)
    review_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    flashcard = relationship("Flashcard")
