import uuid
from sqlalchemy import Column, String, Integer, Numeric, DateTime, Uuid, ForeignKey, UniqueConstraint
from aprovafacil.core.database import Base, JSONDocument, utcnow


class UserDisciplineStats(Base):
    __tablename__ = "user_discipline_stats"
    __table_args__ = (UniqueConstraint("user_id", "disciplina", name="uq_user_discipline_stats"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    disciplina = Column(String, nullable=False)
    total_questions = Column(Integer, nullable=False, default=0)
    correct_answers = Column(Integer, nullable=False, default=0)
    average_score = Column(Numeric(5, 2), nullable=False, default=0)
    study_time_minutes = Column(Integer, nullable=False, default=0)
    last_activity = Column(DateTime(timezone=True), default=utcnow)


class UserPerformanceCache(Base):
    __tablename__ = "user_performance_cache"
    __table_args__ = (UniqueConstraint("user_id", "cache_key", name="uq_user_performance_cache"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    cache_key = Column(String, nullable=False)
    cache_data = Column(JSONDocument, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
