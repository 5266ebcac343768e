import logging
import logging.handlers
import os

# Constants
MAX_LOG_FILE_SIZE: int = 10 * 1024 * 1024  # 10 MB
MAX_LOG_BACKUP_COUNT: int = 9  # 10 files total

CONSOLE_FORMAT: str = "%(asctime)s - %(message)s"
FILE_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level="INFO", log_file=None) -> logging.Logger:
    """
    Configure the root logger with a console handler and, optionally, a
    rotating file handler.

    Args:
        level: Console log level name or number.
        log_file: Optional path of a log file. Its directory is created if needed.

    Returns:
        The configured root logger.
    """
    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG)

    # Drop handlers from an earlier call (Dash reloads the module in debug mode)
    for handler in list(logger.handlers):
        if getattr(handler, '_coin_handler', False):
            logger.removeHandler(handler)
            handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    console_handler._coin_handler = True
    logger.addHandler(console_handler)

    if log_file is not None:
        log_dir = os.path.dirname(os.path.abspath(log_file))
        os.makedirs(log_dir, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=MAX_LOG_FILE_SIZE, backupCount=MAX_LOG_BACKUP_COUNT
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        file_handler._coin_handler = True
        logger.addHandler(file_handler)

    return logger
