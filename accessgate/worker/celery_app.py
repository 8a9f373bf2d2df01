"""
Celery application configuration.
"""

from celery import Celery

from accessgate.core.config import settings

app = Celery(
    "accessgate-worker",
    broker=settings.queue.broker_url,
    backend=settings.queue.result_backend,
    include=[
        "accessgate.worker.tasks",
    ],
)

# Celery configuration
app.conf.update(
    # Task settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,

    # Result backend settings
    result_expires=3600,

    # Worker settings
    worker_prefetch_multiplier=1,

    # Beat schedule (periodic tasks)
    beat_schedule={
        "sweep-expired-grants": {
            "task": "accessgate.worker.tasks.sweep_expired_grants_task",
            "schedule": float(settings.access.sweep_interval_seconds),
        },
    },
)


if __name__ == "__main__":
    app.start()
