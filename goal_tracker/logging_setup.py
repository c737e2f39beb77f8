import logging
import os
import sys

from loguru import logger


def setup_logging(level: str | None = None) -> None:
    from goal_tracker.config import settings

    level = (level or settings.log_level or "INFO").upper()
    log_dir = os.path.dirname(settings.log_path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    logger.remove()
    logger.add(sys.stdout, level=level)
    logger.add(settings.log_path, rotation="10 MB", level=level)
    # httpx logs full request URLs at INFO, including the ?key= credential.
    logging.getLogger("httpx").setLevel(logging.WARNING)
