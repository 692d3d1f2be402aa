import logging
from typing import Any, Dict, Optional, Protocol

import redis

from homescore.core.config import settings
from homescore.core.metrics import jobs_enqueued_total, jobs_deduplicated_total
from .types import JobType, TASK_NAMES

logger = logging.getLogger(__name__)

DEDUPE_KEY_PREFIX = "homescore:job:"


class JobQueue(Protocol):
    def enqueue(self, job_type: JobType, payload: Dict[str, Any], dedupe_key: str) -> bool:
        """Fire-and-forget. Returns False when a job with the same key is already pending."""
        ...

    def is_pending(self, dedupe_key: str) -> bool:
        ...

    def release(self, dedupe_key: str) -> None:
        ...


class CeleryJobQueue:
    """Job queue backed by Celery, with pending keys claimed in Redis."""

    def __init__(self, redis_client: Optional["redis.Redis"] = None, celery_app=None, ttl_seconds: Optional[int] = None):
        self._redis = redis_client or redis.Redis.from_url(settings.REDIS_URL, decode_responses=True)
        if celery_app is None:
            from .celery_app import celery_app as default_app
            celery_app = default_app
        self._celery = celery_app
        self._ttl = ttl_seconds or settings.JOB_DEDUPE_TTL_SECONDS

    def enqueue(self, job_type: JobType, payload: Dict[str, Any], dedupe_key: str) -> bool:
        claimed = self._redis.set(DEDUPE_KEY_PREFIX + dedupe_key, job_type.value, nx=True, ex=self._ttl)
        if not claimed:
            jobs_deduplicated_total.labels(job_type=job_type.value).inc()
            logger.info(f"[JobQueue] {dedupe_key} already pending, skipping enqueue")
            return False
        try:
            self._celery.send_task(
                TASK_NAMES[job_type],
                kwargs={"payload": payload, "dedupe_key": dedupe_key},
                task_id=dedupe_key,
            )
        except Exception:
            # Free the key so the next request can retry the enqueue.
            self._redis.delete(DEDUPE_KEY_PREFIX + dedupe_key)
            raise
        jobs_enqueued_total.labels(job_type=job_type.value).inc()
        logger.info(f"[JobQueue] Enqueued {job_type.value} as {dedupe_key}")
        return True

    def is_pending(self, dedupe_key: str) -> bool:
        return bool(self._redis.exists(DEDUPE_KEY_PREFIX + dedupe_key))

    def release(self, dedupe_key: str) -> None:
        self._redis.delete(DEDUPE_KEY_PREFIX + dedupe_key)
