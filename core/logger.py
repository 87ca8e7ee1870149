"""
=====================================================
Centralized logging configuration for the plugin.
=====================================================

Provides consistent logging setup across all modules with:
- Console output with optional colors
- Optional file output
- Module-specific loggers

Logging is configured automatically on import from core.config settings
(ORM_LOG_LEVEL, ORM_LOG_FILE) unless ORM_AUTO_LOGGING is disabled or the
host application already configured the root logger.

Example:
    >>> from core.logger import get_logger, setup_logging
    >>>
    >>> setup_logging(log_level='DEBUG', log_file='plugin.log')
    >>>
    >>> logger = get_logger(__name__)
    >>> logger.info("ORM initialized")
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from core.config import config


class ColoredFormatter(logging.Formatter):
    """Formatter adding ANSI colors and a level marker to console output.

    Attributes:
        COLORS: Dict mapping log levels to ANSI color codes
        MARKERS: Dict mapping log levels to short prefix markers
    """

    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
        'RESET': '\033[0m'
    }

    MARKERS = {
        'DEBUG': '·',
        'INFO': '›',
        'WARNING': '!',
        'ERROR': '✗',
        'CRITICAL': '‼'
    }

    def format(self, record):
        """Format log record with colors.

        The record is copied so handlers sharing it (e.g. a file handler)
        still see the plain level name.
        """
        record = logging.makeLogRecord(record.__dict__)
        levelname = record.levelname
        record.marker = self.MARKERS.get(levelname, ' ')
        if levelname in self.COLORS:
            record.levelname = f"{self.COLORS[levelname]}{levelname}{self.COLORS['RESET']}"
        return super().format(record)


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """Get a logger instance for the specified module.

    Args:
        name: Logger name (typically __name__ of calling module)
        level: Optional logging level override (DEBUG/INFO/WARNING/ERROR/CRITICAL)

    Returns:
        Logger instance

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.debug("Merged common scope")
    """
    logger = logging.getLogger(name)

    if level:
        logger.setLevel(getattr(logging, level.upper()))

    return logger


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def _console_formatter(use_colors: bool) -> logging.Formatter:
    if use_colors:
        return ColoredFormatter(f"%(marker)s {LOG_FORMAT}", datefmt=DATE_FORMAT)
    return logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)


def setup_logging(
    log_level: str = 'INFO',
    log_file: Optional[str] = None,
    log_dir: Optional[str] = None,
    console_output: bool = True,
    use_colors: bool = True,
    sql_level: Optional[str] = None
) -> None:
    """Configure the root logger for the plugin.

    Replaces any handlers on the root logger. Call it once, from the host
    application or the CLI; the plugin modules only use get_logger().

    Args:
        log_level: Logging level (DEBUG/INFO/WARNING/ERROR/CRITICAL)
        log_file: Optional log file name (e.g., 'plugin.log')
        log_dir: Directory for log_file (defaults to 'logs/')
        console_output: If True, log to stdout
        use_colors: If True, color the console output
        sql_level: Optional level for SQLAlchemy's engine logger, which
            otherwise follows ORM_ECHO_SQL

    Example:
        >>> setup_logging(log_level='DEBUG', log_file='plugin.log', sql_level='INFO')
    """
    level = getattr(logging, log_level.upper())
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    handlers = []
    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(_console_formatter(use_colors))
        handlers.append(console_handler)

    if log_file:
        log_path = Path(log_dir or 'logs')
        log_path.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path / log_file, encoding='utf-8')
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        handlers.append(file_handler)

    for handler in handlers:
        handler.setLevel(level)
        root_logger.addHandler(handler)

    if sql_level:
        get_logger('sqlalchemy.engine', level=sql_level)


def _init_default_logging():
    """Configure logging from core.config unless the host already did."""
    if not config.plugin.auto_logging or logging.getLogger().handlers:
        return
    setup_logging(
        log_level=config.log_level,
        log_file=config.plugin.log_file,
        use_colors=sys.stdout.isatty()
    )


# Auto-initialize on import
_init_default_logging()
