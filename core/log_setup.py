import logging
from logging.handlers import RotatingFileHandler

from core.config import Settings

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"

log = logging.getLogger(__name__)


def setup_logging(settings: Settings) -> None:
    """Configure the root logger once; a second call only adjusts the level."""
    root_logger = logging.getLogger()
    level = getattr(logging, settings.LOG_LEVEL, logging.INFO)

    if not root_logger.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    root_logger.setLevel(level)

    if settings.LOG_FILE and not any(
        isinstance(h, RotatingFileHandler) for h in root_logger.handlers
    ):
        # half a megabyte per file, three backups
        handler = RotatingFileHandler(
            settings.LOG_FILE, maxBytes=1 * 1024 * 512, backupCount=3
        )
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root_logger.addHandler(handler)
        log.info(f"Logging initialized. Log files will be saved to: {settings.LOG_FILE}")
