"""
Celery worker entry point that ensures all tasks are imported
"""

import logging

# Import all task modules to ensure they are registered
import ads_core.tasks.credential_tasks  # noqa: F401

from ads_core.celery_app import celery_app
from ads_core.logging_config import configure_logging

# Export the celery app for Celery to use
app = celery_app

# Configure logging for worker process (avoid Celery hijacking root via CLI flag)
configure_logging()
logging.getLogger(__name__).info("Celery worker logging configured")
