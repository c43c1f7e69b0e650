import uuid
from sqlalchemy import Column, Boolean, DateTime, Uuid, ForeignKey
from sqlalchemy.orm import relationship
from aprovafacil.core.database import Base, utcnow


class UserConcursoPreference(Base):
    __tablename__ = "user_concurso_preferences"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    concurso_id = Column(Uuid, ForeignKey("concursos.id"), nullable=False)
    selected_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    # Até esta data o usuário não pode trocar de concurso
    can_change_until = Column(DateTime(timezone=True), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="concurso_preferences")
    concurso = relationship("Concurso")
