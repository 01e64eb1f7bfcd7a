import logging
import os
import sys
from typing import Optional
from oci_interceptor.utils.config import get_setting
from oci_interceptor.utils.constants import LOG_FILE, DEFAULT_LOG_LEVEL, ENV_LOG_LEVEL, ENV_LOG_FILE


def _resolve_level(level_name: str) -> int:
    """Map a level name such as 'debug' to its logging constant, WARNING if unknown."""
    level = getattr(logging, level_name.upper(), None)
    if not isinstance(level, int):
        return logging.WARNING
    return level


def setup_logger(name: str, level: Optional[int] = None, log_file: Optional[str] = LOG_FILE) -> logging.Logger:
    """
    Set up a logger with consistent formatting and configuration.

    Console output goes to stderr, as stdout belongs to the runtime being
    wrapped (e.g. `runc state` prints JSON there).

    Args:
        name: Name of the logger
        level: Optional logging level. Defaults to the OCI_INTERCEPTOR_LOG_LEVEL setting.
        log_file: Optional path to log file. The OCI_INTERCEPTOR_LOG_FILE setting takes precedence.

    Returns:
        logging.Logger: Configured logger instance
    """
    # Use configured log file if available, otherwise use provided path
    config_log_file = get_setting(ENV_LOG_FILE)
    if config_log_file:
        log_file = config_log_file

    if level is None:
        level = _resolve_level(get_setting(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL))

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False

    # Clear existing handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s - (%(filename)s)',
        datefmt='%H:%M:%S'
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # File handler if log_file is specified
    if log_file:
        try:
            log_dir = os.path.dirname(log_file)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            file_handler = logging.FileHandler(log_file)
        except OSError as e:
            logger.warning("Cannot open log file %s, logging to console only: %s", log_file, e)
        else:
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger


# Create default logger for the application
logger = setup_logger('oci_interceptor')
