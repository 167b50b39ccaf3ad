from celery import Celery
from kombu import Exchange, Queue
from pillreminder.core.config import settings


celery_app = Celery(
    "pillreminder",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND or None,
)

exchange = Exchange(settings.RABBITMQ_EXCHANGE, type="direct", durable=True)

celery_app.conf.update(
    task_acks_late=True,
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    worker_prefetch_multiplier=1,
    worker_concurrency=settings.WORKER_CONCURRENCY,
    task_default_queue=settings.RABBITMQ_INPUT_QUEUE,
    task_default_exchange=settings.RABBITMQ_EXCHANGE,
    task_default_routing_key=settings.RABBITMQ_INPUT_ROUTING_KEY,
    include=["pillreminder.reminders.tasks"],
    task_queues=(
        Queue(settings.RABBITMQ_INPUT_QUEUE, exchange=exchange, routing_key=settings.RABBITMQ_INPUT_ROUTING_KEY, durable=True),
    ),
)

# Published to but never consumed here; the notification subsystem reads it
output_queue = Queue(
    settings.RABBITMQ_OUTPUT_QUEUE,
    exchange=exchange,
    routing_key=settings.RABBITMQ_OUTPUT_ROUTING_KEY,
    durable=True,
)

# Celery Beat schedule for firing due dosage jobs
celery_app.conf.beat_schedule = {
    "fire-due-jobs": {
        "task": "pillreminder.fire_due_jobs",
        "schedule": settings.SCHEDULER_SCAN_INTERVAL_SECONDS,
    },
}
