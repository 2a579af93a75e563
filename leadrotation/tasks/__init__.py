"""Celery tasks for queue-driven distribution runs."""
