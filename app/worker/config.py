# app/worker/config.py

"""
Celery configuration settings

Broker, serialization, time limits and the beat schedule of the
periodic syncs. Schedules are evaluated in the stations' local time.
"""

from celery.schedules import crontab

from app.core.config import settings

# Broker and result backend configurations
broker_url = settings.celery_broker
result_backend = settings.celery_backend

# Task serialization
task_serializer = "json"
accept_content = ["json"]
result_serializer = "json"
timezone = settings.scheduler_timezone
enable_utc = True

# Task settings
task_track_started = True
task_time_limit = 4 * 60 * 60  # closures auto-sync can walk many days
task_soft_time_limit = task_time_limit - 5 * 60
worker_prefetch_multiplier = 1
task_acks_late = True
worker_disable_rate_limits = False

# Beat schedule configuration
beat_schedule = {
    # Catch up shift closures up to yesterday
    "closures-sync-auto": {
        "task": "app.closures.tasks.sync_closures_auto",
        "schedule": crontab(hour=3, minute=0),
    },
    # Invoices and receipts of the last hour
    "invoicing-sync-last-hour": {
        "task": "app.invoicing.tasks.sync_last_hour",
        "schedule": crontab(minute=0),
    },
    "tanks-refresh-levels": {
        "task": "app.tanks.tasks.refresh_tank_levels",
        "schedule": crontab(minute=30),
    },
    "catalog-refresh-products": {
        "task": "app.catalog.tasks.refresh_product_catalog",
        "schedule": crontab(hour=2, minute=30),
    },
}

# Worker configuration
worker_hijack_root_logger = False
worker_log_color = False
