import uuid
from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, Field


class CacheConfig(BaseModel):
    id: uuid.UUID
    cache_key: str
    description: Optional[str] = None
    ttl_minutes: int
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CacheConfigUpdate(BaseModel):
    cache_key: str = Field(min_length=1, max_length=100)
    ttl_minutes: int = Field(ge=1, le=60 * 24 * 30)
    description: Optional[str] = None


class AuditLogEntry(BaseModel):
    id: uuid.UUID
    user_id: Optional[uuid.UUID] = None
    action: str
    table_name: str
    record_id: Optional[uuid.UUID] = None
    old_values: Optional[Any] = None
    new_values: Optional[Any] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
