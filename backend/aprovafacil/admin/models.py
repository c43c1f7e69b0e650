import uuid
from sqlalchemy import Column, String, Integer, DateTime, Text, Uuid
from aprovafacil.core.database import Base, utcnow


class CacheConfig(Base):
    __tablename__ = "cache_config"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    cache_key = Column(String, unique=True, index=True, nullable=False)
    description = Column(Text, nullable=True)
    ttl_minutes = Column(Integer, nullable=False, default=60)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
