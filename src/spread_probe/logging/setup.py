import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from spread_probe.config.settings import Config, get_config


def setup_logging(level: Optional[str] = None, cfg: Optional[Config] = None):
    """
    Sets up the loguru logging system for the application.
    - Removes default handlers.
    - Adds a colored console logger.
    - Adds a rotating file logger for all levels, unless disabled.
    """
    cfg = cfg or get_config()
    logging_config = cfg.get('logging')

    # 1. Remove the default handler to have full control
    logger.remove()

    # 2. Add a console logger with colors and a specific format
    log_level = (level or logging_config.get('level', 'INFO')).upper()
    logger.add(
        sys.stderr,
        level=log_level,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>",
        colorize=True
    )

    # 3. Add a rotating file logger
    if logging_config.get('file_enabled', True):
        log_dir = Path(logging_config.get('directory', 'logs'))
        log_dir.mkdir(parents=True, exist_ok=True)

        logger.add(
            log_dir / "probe_{time:YYYY-MM-DD}.log",
            level="DEBUG",  # Log everything to the file
            rotation="00:00",  # New file at midnight
            retention="7 days",
            enqueue=True,
            backtrace=True,
            diagnose=False,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"
        )

    logger.debug(f"Logging system initialized at level {log_level}.")
