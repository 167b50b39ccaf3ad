"""Scheduling side of pill reminders (scheduler gateway, cron recurrence, Celery worker).

The Celery worker is intended to run as a separate container consuming only
the input RabbitMQ queue. Reminders are published to the output queue for the
notification subsystem.
"""
