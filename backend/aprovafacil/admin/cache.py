from __future__ import annotations
from typing import Dict

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from aprovafacil.core.logging import get_logger
from aprovafacil.dashboard.models import UserDisciplineStats, UserPerformanceCache
from .models import CacheConfig

logger = get_logger("admin.cache")

# Chave da resposta -> tabela de cache
CACHE_TABLES = {
    "performanceCache": UserPerformanceCache,
    "configCache": CacheConfig,
    "disciplineStats": UserDisciplineStats,
}


def clear_cache_tables(db: Session) -> Dict[str, bool]:
    """Apaga todas as linhas de cada tabela de cache; falha numa tabela não impede as demais."""
    details = {}
    for label, model in CACHE_TABLES.items():
        try:
            removed = db.query(model).delete(synchronize_session=False)
            db.commit()
            details[label] = True
            logger.info("Cache table cleared", table=model.__tablename__, removed=removed)
        except SQLAlchemyError as exc:
            db.rollback()
            details[label] = False
            logger.error("Failed to clear cache table", table=model.__tablename__, error=str(exc))
    return details


def cache_stats(db: Session) -> Dict[str, int]:
    return {label: db.query(model).count() for label, model in CACHE_TABLES.items()}
