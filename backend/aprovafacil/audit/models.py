import uuid
from sqlalchemy import Column, String, Text, DateTime, Uuid, ForeignKey
from aprovafacil.core.database import Base, JSONDocument, utcnow


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    action = Column(String(50), nullable=False, index=True)
    table_name = Column(String(100), nullable=False)
    record_id = Column(Uuid, nullable=True)
    old_values = Column(JSONDocument, nullable=True)
    new_values = Column(JSONDocument, nullable=True)
    # "inet" no PostgreSQL; texto simples mantém compatibilidade com outros bancos
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
