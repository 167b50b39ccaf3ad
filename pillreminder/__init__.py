"""Pill reminder service: regimen model, lifecycle service, scheduler gateway and Celery worker.

Regimens are stored with SQLAlchemy, each dosage gets a recurring cron job,
and a Celery beat task fires due jobs onto RabbitMQ as dosage events.
"""
