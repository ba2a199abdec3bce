# app/worker/start_beat.py

"""
Celery Beat startup script

Starts the beat scheduler which triggers the periodic syncs defined in
config.py
"""

from app.core.config import settings
from app.utils.logger import get_logger, setup_logging
from app.worker.app import app

logger = get_logger(__name__)


def start_beat():
    """Start the celery beat scheduler."""
    setup_logging(
        log_level=settings.log_level,
        use_json=settings.environment.lower() == "production",
        log_file=settings.log_file,
        app_name="Estaciones Celery",
        environment=settings.environment,
    )

    argv = [
        "beat",
        f"--loglevel={settings.log_level.lower()}",
        "--scheduler=celery.beat:PersistentScheduler",
        "--schedule=/tmp/celerybeat-schedule",
        "--pidfile=/tmp/celerybeat.pid",
    ]

    logger.info("Starting Celery beat", broker=settings.celery_broker, timezone=settings.scheduler_timezone)
    for name, entry in app.conf.beat_schedule.items():
        logger.info("Scheduled task", name=name, task=entry["task"], schedule=str(entry["schedule"]))

    app.start(argv)


if __name__ == "__main__":
    start_beat()
