"""
Celery configuration for dayplan background learning
"""

from celery import Celery
from kombu import Queue

from .config import CELERY_BROKER_URL, CELERY_RESULT_BACKEND

# Create Celery app
celery_app = Celery(
    "dayplan",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
    include=["dayplan.celery_tasks.learning"]
)

# Basic configuration
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    # One worker with concurrency 1 consumes "learning", so a user's updates never interleave
    task_queues=(Queue("learning"),),
    task_routes={"dayplan.celery_tasks.learning.*": {"queue": "learning"}},
    worker_prefetch_multiplier=1,
    task_acks_late=True,
)

if __name__ == "__main__":
    celery_app.start()
