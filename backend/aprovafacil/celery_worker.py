from celery import Celery
from kombu import Exchange, Queue
from aprovafacil import models
from aprovafacil.core.settings import settings

# Define nossas filas explicitamente
default_exchange = Exchange('default', type='direct')
task_queues = (
    Queue('default', default_exchange, routing_key='default'),
    Queue('maintenance', default_exchange, routing_key='maintenance'),
    Queue('dead_letter', default_exchange, routing_key='dead_letter'),
)

# Tarefas de manutenção rodam numa fila própria; o resto vai para 'default'.
task_routes = {
    'purge_expired_performance_cache': {
        'queue': 'maintenance',
        'routing_key': 'maintenance',
    },
}

celery_app = Celery("aprovafacil")

celery_app.conf.update(
    broker_url=settings.CELERY_BROKER_URL,
    result_backend=settings.CELERY_RESULT_BACKEND,
    include=["aprovafacil.dashboard.tasks"],

    # Vincula as filas e rotas que definimos
    task_queues=task_queues,
    task_routes=task_routes,
    task_default_queue='default',

    task_publish_retry=True,
    task_publish_retry_policy={
        'max_retries': 3,
        'interval_start': 0,
        'interval_step': 0.2,
        'interval_max': 0.2,
    },
    task_acks_late=True,
    worker_prefetch_multiplier=1,

    # Limpeza periódica do cache de desempenho (celery beat)
    beat_schedule={
        'purge-expired-performance-cache': {
            'task': 'purge_expired_performance_cache',
            'schedule': settings.CACHE_PURGE_INTERVAL_MINUTES * 60,
        },
    },
    timezone='UTC',
)
