from datetime import datetime, timezone

from sqlalchemy import JSON, create_engine
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from aprovafacil.core.constants import DatabaseConstants
from aprovafacil.core.security import InputValidator
from aprovafacil.core.settings import settings


def _engine_options(url: str) -> dict:
    # SQLite em memória precisa de uma única conexão compartilhada entre threads
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}, "poolclass": StaticPool}
    return {
        "pool_size": DatabaseConstants.CONNECTION_POOL_SIZE,
        "max_overflow": DatabaseConstants.CONNECTION_POOL_MAX_OVERFLOW,
        "pool_recycle": DatabaseConstants.CONNECTION_POOL_RECYCLE_SECONDS,
        "pool_pre_ping": True,
    }


# Cria o "motor" de conexão com o banco de dados usando a URL do nosso settings.py
engine = create_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))

# Cria uma fábrica de sessões. Cada instância de SessionLocal será uma sessão de banco de dados.
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base para nossos modelos ORM. Todos os nossos modelos de dados herdarão desta classe.
Base = declarative_base()

# Documentos JSON: JSONB no PostgreSQL, JSON genérico nos demais bancos
JSONDocument = JSON().with_variant(JSONB(), "postgresql")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """SQLite devolve datetimes sem timezone; trata-os como UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# Função para obter uma sessão de banco de dados (será usada como dependência nos endpoints)
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def unique_column_slug(db, slug_column, text: str) -> str:
    """Slug de ``text`` livre na coluna: "simulado-bb", "simulado-bb-2", ..."""
    base = InputValidator.slugify(text)
    taken = {row[0] for row in db.query(slug_column).filter(slug_column.like(f"{base}%")).all()}
    if base not in taken:
        return base
    suffix = 2
    while f"{base}-{suffix}" in taken:
        suffix += 1
    return f"{base}-{suffix}"
