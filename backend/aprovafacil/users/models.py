import enum
import uuid
from sqlalchemy import Column, String, Integer, Numeric, DateTime, Uuid, Enum as SQLAlchemyEnum
from sqlalchemy.orm import relationship
from aprovafacil.core.database import Base, utcnow


class UserRole(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    password_hash = Column(String, nullable=False)
    role = Column(SQLAlchemyEnum(UserRole, values_callable=lambda e: [m.value for m in e], native_enum=False),
                  nullable=False, default=UserRole.USER)

    # Totais agregados atualizados a cada simulado concluído
    total_questions_answered = Column(Integer, default=0)
    total_correct_answers = Column(Integer, default=0)
    study_time_minutes = Column(Integer, default=0)
    average_score = Column(Numeric(5, 2), default=0)

    last_login = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    concurso_preferences = relationship("UserConcursoPreference", back_populates="user", cascade="all, delete-orphan")

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
