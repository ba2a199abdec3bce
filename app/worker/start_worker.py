# app/worker/start_worker.py

"""
Celery worker startup script
"""

from app.core.config import settings
from app.utils.logger import get_logger, setup_logging
from app.worker.app import app

logger = get_logger(__name__)


def start_worker():
    """Start the celery worker."""
    setup_logging(
        log_level=settings.log_level,
        use_json=settings.environment.lower() == "production",
        log_file=settings.log_file,
        app_name="Estaciones Celery",
        environment=settings.environment,
    )

    argv = [
        "worker",
        f"--loglevel={settings.log_level.lower()}",
        # a single process keeps vendor calls sequential
        "--concurrency=1",
        "--max-tasks-per-child=50",
        "--prefetch-multiplier=1",
    ]

    logger.info("Starting Celery worker", broker=settings.celery_broker)
    app.worker_main(argv)


if __name__ == "__main__":
    start_worker()
