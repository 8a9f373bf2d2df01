"""Background worker (Celery)."""
