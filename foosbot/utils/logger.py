import logging
import sys
from datetime import datetime
from pathlib import Path

from foosbot.config import Config

PACKAGE_LOGGER = 'foosbot'


def _configure_package_logger(logger: logging.Logger):
    level = getattr(logging, Config.LOG_LEVEL, logging.INFO)
    logger.setLevel(level)

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # An empty LOG_DIR keeps logging console-only
    if Config.LOG_DIR:
        log_dir = Path(Config.LOG_DIR)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(
            log_dir / f'foosbot_{datetime.now().strftime("%Y%m%d")}.log',
            encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)


def setup_logger(name: str = PACKAGE_LOGGER) -> logging.Logger:
    """
    Return a logger in the foosbot hierarchy.

    Handlers are attached once, to the package logger, so module loggers from
    ``logging.getLogger(__name__)`` in the services share the same output.
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    if not package_logger.handlers:
        _configure_package_logger(package_logger)
    return logging.getLogger(name)
