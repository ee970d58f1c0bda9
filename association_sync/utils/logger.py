"""Logging configuration for sync runs."""
import logging
import logging.handlers
from pathlib import Path
from typing import Optional, Union

from association_sync.config.settings import settings

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(
    name: str,
    log_dir: Optional[Union[str, Path]] = None,
    level: Optional[str] = None,
) -> logging.Logger:
    """
    Configure console and rotating file logging.

    Handlers are attached to the ``association_sync`` package logger so every
    module logger propagates to them. Calling this twice does not duplicate
    handlers.

    Args:
        name: Run name, used for the log file name (e.g. 'sync-associations')
        log_dir: Directory for the log file (default: settings.LOG_DIR)
        level: Log level name (default: settings.LOG_LEVEL)

    Returns:
        Configured package logger
    """
    logger = logging.getLogger('association_sync')
    logger.setLevel(level or settings.LOG_LEVEL)

    if getattr(logger, '_association_sync_configured', False):
        return logger

    formatter = logging.Formatter(LOG_FORMAT)

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # File handler
    log_dir = Path(log_dir or settings.LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)
    file_handler = logging.handlers.RotatingFileHandler(
        log_dir / f'{name}.log',
        maxBytes=10485760,  # 10MB
        backupCount=5,
    )
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    logger._association_sync_configured = True
    return logger
