"""
Logging setup and configuration
"""

import logging
import logging.handlers
from pathlib import Path

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(log_file: str = 'logs/prospector.log', level: str = 'INFO',
                  max_size_mb: int = 10) -> logging.Logger:
    """Setup logging configuration on the root logger so every module logger inherits it"""

    # Create logs directory
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger()
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Avoid duplicate handlers
    if any(getattr(h, '_prospector', False) for h in logger.handlers):
        return logger

    # File handler with rotation
    file_handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=max_size_mb * 1024 * 1024,
        backupCount=5,
        encoding='utf-8',
    )

    # Console handler
    console_handler = logging.StreamHandler()

    formatter = logging.Formatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')

    for handler in (file_handler, console_handler):
        handler.setFormatter(formatter)
        handler._prospector = True
        logger.addHandler(handler)

    # Playwright and asyncio debug chatter is noise at INFO
    logging.getLogger('asyncio').setLevel(logging.WARNING)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get logger instance"""
    return logging.getLogger(name)
