import time
from sqlalchemy.orm import Session

from aprovafacil.celery_worker import celery_app
from aprovafacil.core.constants import CeleryConstants
from aprovafacil.core.database import SessionLocal
from aprovafacil.core.logging import get_logger
from . import service


@celery_app.task(
    name="purge_expired_performance_cache",
    bind=True,
    autoretry_for=(Exception,),
    retry_kwargs={'max_retries': CeleryConstants.MAX_RETRIES},
    retry_backoff=CeleryConstants.RETRY_BACKOFF_SECONDS,
    soft_time_limit=CeleryConstants.SOFT_TIME_LIMIT_SECONDS,
    time_limit=CeleryConstants.HARD_TIME_LIMIT_SECONDS,
    acks_late=True
)
def purge_expired_performance_cache(self):
    task_start_time = time.time()
    task_logger = get_logger(
        "dashboard.tasks",
        task_name="purge_expired_performance_cache",
        attempt=(self.request.retries or 0) + 1,
    )
    db: Session = SessionLocal()
    try:
        removed = service.purge_expired_cache(db)
        total_duration = round((time.time() - task_start_time) * 1000, 2)
        task_logger.info("Expired performance cache purged", removed=removed, total_duration_ms=total_duration)
        return removed
    except Exception as exc:
        db.rollback()
        task_logger.error("Cache purge failed", error=str(exc), error_type=type(exc).__name__)
        raise
    finally:
        db.close()
