import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from aprovafacil.audit import service as audit
from aprovafacil.audit.models import AuditLog
from aprovafacil.core.database import Base, get_db, utcnow
from aprovafacil.core.exceptions import AprovaFacilException
from aprovafacil.core.logging import get_logger
from aprovafacil.core.responses import success_response
from aprovafacil.users.auth import AdminUser
from . import cache, schemas
from .models import CacheConfig
from .schema_validation import fetch_actual_schema, validate_schema

logger = get_logger("admin.router")

router = APIRouter()


@router.post("/clear-cache", summary="Delete every row from the cache tables")
def clear_cache(request: Request, admin: AdminUser, db: Session = Depends(get_db)):
    logger.info("Cache clear requested", admin_id=str(admin.id))
    details = cache.clear_cache_tables(db)

    audit.record_audit(db, audit.CLEAR_CACHE, "cache", user_id=admin.id, new_values=details, request=request)
    db.commit()

    return success_response(message="Cache do sistema limpo com sucesso", details=details)


@router.get("/clear-cache", summary="Row counts of the cache tables")
def get_cache_stats(admin: AdminUser, db: Session = Depends(get_db)):
    try:
        stats = cache.cache_stats(db)
    except SQLAlchemyError as exc:
        logger.error("Failed to read cache stats", error=str(exc))
        raise AprovaFacilException("Erro ao obter estatísticas do cache", error_code="CACHE_STATS_FAILED")
    return success_response(cacheStats=stats)


@router.get("/cache-config", summary="List cache TTL settings")
def list_cache_config(admin: AdminUser, db: Session = Depends(get_db)):
    rows = db.query(CacheConfig).order_by(CacheConfig.cache_key).all()
    return success_response(data=[schemas.CacheConfig.model_validate(r) for r in rows])


@router.put("/cache-config", summary="Create or update a cache TTL")
def upsert_cache_config(request: Request, body: schemas.CacheConfigUpdate, admin: AdminUser, db: Session = Depends(get_db)):
    config = db.query(CacheConfig).filter(CacheConfig.cache_key == body.cache_key).first()
    old_values = {"ttl_minutes": config.ttl_minutes} if config else None
    if config is None:
        config = CacheConfig(cache_key=body.cache_key)
        db.add(config)
    config.ttl_minutes = body.ttl_minutes
    if body.description is not None:
        config.description = body.description
    config.updated_at = utcnow()
    db.flush()

    audit.record_audit(db, audit.UPDATE, "cache_config", user_id=admin.id, record_id=config.id,
                       old_values=old_values, new_values=body.model_dump(), request=request)
    db.commit()
    db.refresh(config)
    return success_response(data=schemas.CacheConfig.model_validate(config))


@router.get("/validate-schema", summary="Compare the live database with the expected schema")
def validate_database_schema(admin: AdminUser, db: Session = Depends(get_db)):
    logger.info("Schema validation started")
    try:
        rows = fetch_actual_schema(db)
    except SQLAlchemyError as exc:
        logger.error("Schema validation failed", error=str(exc))
        raise AprovaFacilException(
            "Erro ao validar schema do banco de dados",
            error_code="SCHEMA_VALIDATION_ERROR",
            details={"reason": str(exc)},
        )

    result = validate_schema(rows)
    if result["isValid"]:
        logger.info(
            "Database schema is consistent",
            valid_tables=result["summary"]["validTables"],
            valid_columns=result["summary"]["validColumns"],
            warnings=len(result["warnings"]),
        )
    else:
        logger.error(
            "Database schema has inconsistencies",
            errors=len(result["errors"]),
            warnings=len(result["warnings"]),
            missing_tables=result["summary"]["missingTables"],
            missing_columns=result["summary"]["missingColumns"],
        )
    return success_response(validation=result, timestamp=utcnow())


@router.get("/database-usage", summary="Row count per table")
def database_usage(admin: AdminUser, db: Session = Depends(get_db)):
    usage = {}
    for table in Base.metadata.sorted_tables:
        usage[table.name] = db.query(table).count()
    return success_response(data={"tables": usage, "totalRows": sum(usage.values())})


@router.get("/audit-logs", summary="Latest audit entries")
def list_audit_logs(
    admin: AdminUser,
    action: Optional[str] = None,
    user_id: Optional[uuid.UUID] = None,
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
):
    query = db.query(AuditLog)
    if action:
        query = query.filter(AuditLog.action == action)
    if user_id:
        query = query.filter(AuditLog.user_id == user_id)
    rows = query.order_by(AuditLog.created_at.desc()).limit(limit).all()
    return success_response(data=[schemas.AuditLogEntry.model_validate(r) for r in rows])
