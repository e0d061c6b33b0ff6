from celery import Celery

from chainprice.config import settings

celery_app = Celery(
    "chainprice",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["chainprice.workers.tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    worker_concurrency=settings.worker_concurrency,
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    beat_schedule={
        "requeue-pending-jobs": {
            "task": "requeue_pending_jobs",
            "schedule": 60.0,
        },
    },
)
