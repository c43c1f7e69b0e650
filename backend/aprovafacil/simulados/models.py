import uuid
from sqlalchemy import Column, String, Integer, Boolean, DateTime, Text, Uuid, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from aprovafacil.core.database import Base, JSONDocument, utcnow


class Simulado(Base):
    __tablename__ = "simulados"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String, nullable=False)
    slug = Column(String, unique=True, index=True, nullable=False)
    description = Column(Text, nullable=True)
    questions_count = Column(Integer, nullable=False, default=0)
    time_minutes = Column(Integer, nullable=False, default=60)
    difficulty = Column(String, nullable=False, default="Médio")
    concurso_id = Column(Uuid, ForeignKey("concursos.id"), nullable=True, index=True)
    categoria_id = Column(Uuid, ForeignKey("concurso_categorias.id"), nullable=True, index=True)
    disciplinas = Column(JSONDocument, nullable=True)
    is_public = Column(Boolean, nullable=False, default=True)
    created_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
    # Exclusão lógica
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    concurso = relationship("Concurso")
    questions = relationship(
        "SimuladoQuestion", back_populates="simulado", cascade="all, delete-orphan",
        order_by="SimuladoQuestion.question_number",
    )


class SimuladoQuestion(Base):
    __tablename__ = "simulado_questions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    simulado_id = Column(Uuid, ForeignKey("simulados.id", ondelete="CASCADE"), nullable=False, index=True)
    question_number = Column(Integer, nullable=False)
    question_text = Column(Text, nullable=False)
    alternatives = Column(JSONDocument, nullable=False)     # Ex: {"A": "...", "B": "..."}
    correct_answer = Column(String, nullable=False)
    explanation = Column(Text, nullable=True)
    discipline = Column(String, nullable=True)
    topic = Column(String, nullable=True)
    difficulty = Column(String, nullable=True)
    concurso_id = Column(Uuid, ForeignKey("concursos.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    simulado = relationship("Simulado", back_populates="questions")


class UserSimuladoProgress(Base):
    __tablename__ = "user_simulado_progress"
    __table_args__ = (UniqueConstraint("user_id", "simulado_id", name="uq_user_simulado_progress"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    simulado_id = Column(Uuid, ForeignKey("simulados.id", ondelete="CASCADE"), nullable=False, index=True)
    score = Column(Integer, nullable=False, default=0)
    time_taken_minutes = Column(Integer, nullable=False, default=0)
    answers = Column(JSONDocument, nullable=False)          # lista de letras na ordem das questões
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), default=utcnow)

    simulado = relationship("Simulado")
