"""Celery application bootstrap."""

from __future__ import annotations

from celery import Celery

from leadrotation.core.config import get_config

config = get_config()

celery_app = Celery(
    "leadrotation",
    broker=config.CELERY_BROKER_URL,
    backend=config.CELERY_RESULT_BACKEND,
    include=["leadrotation.tasks.distribution_tasks"],
)
celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
)
