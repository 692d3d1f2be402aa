from celery import Celery

from homescore.core.config import settings


celery_app = Celery(
    "homescore",
    broker=settings.broker_url,
    backend=settings.CELERY_RESULT_BACKEND or None,
)

celery_app.conf.update(
    task_acks_late=True,
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    worker_prefetch_multiplier=1,
    worker_concurrency=settings.WORKER_CONCURRENCY,
    include=["homescore.jobs.tasks"],
)

# Weekly snapshot capture across all properties
celery_app.conf.beat_schedule = {
    "capture-score-snapshots": {
        "task": "homescore.capture_all_score_snapshots",
        "schedule": settings.SNAPSHOT_CAPTURE_INTERVAL_SECONDS,
    },
}
