import uuid
from sqlalchemy import Column, String, Integer, DateTime, Text, Uuid, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from aprovafacil.core.database import Base, JSONDocument, utcnow


class QuestoesSemanais(Base):
    __tablename__ = "questoes_semanais"
    __table_args__ = (UniqueConstraint("concurso_id", "year", "week_number", name="uq_questoes_semanais_semana"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    week_number = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    concurso_id = Column(Uuid, ForeignKey("concursos.id"), nullable=True, index=True)
    # Lista de {question_text, alternatives, correct_answer, discipline, topic}
    questions = Column(JSONDocument, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)


class UserQuestoesSemanaisProgress(Base):
    __tablename__ = "user_questoes_semanais_progress"
    __table_args__ = (UniqueConstraint("user_id", "questoes_semanais_id", name="uq_user_questoes_semanais"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    questoes_semanais_id = Column(Uuid, ForeignKey("questoes_semanais.id", ondelete="CASCADE"), nullable=False)
    score = Column(Integer, nullable=False, default=0)
    answers = Column(JSONDocument, nullable=False)
    completed_at = Column(DateTime(timezone=True), default=utcnow)

    semana = relationship("QuestoesSemanais")
