# -*- coding: utf-8 -*-
"""
Centralized logging configuration for the pokegraph loader

Console output plus an optional log file, configured once at the entry point.
Modules then use logger = get_logger(__name__). Identity decisions are logged
at DEBUG, so a load run is quiet unless --debug (or DEBUG_MODE=true) is set.

Examples:
    # In the CLI entry point
    from pokegraph.utils.logger import setup_logging
    setup_logging(debug=True, log_file="logs/load.log")

    # In any module
    from pokegraph.utils.logger import get_logger
    logger = get_logger(__name__)
    logger.debug("new blank uid for /api/v2/type/5/ is _:3")

"""
# Standard library
import logging
import sys
from pathlib import Path
from typing import Iterable, Optional

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Third-party loggers that flood the console at INFO/DEBUG
NOISY_LOGGERS = ('neo4j', 'urllib3', 'requests')

# Global flag to prevent duplicate configuration
_logging_configured = False


def setup_logging(
    debug: bool = False,
    log_file: Optional[str] = None,
    format_string: str = DEFAULT_FORMAT,
    quiet_loggers: Iterable[str] = NOISY_LOGGERS,
    force: bool = False,
) -> None:
    """
    Configure logging for a load run.

    Safe to call multiple times: only the first call (or a call with
    force=True, used by the CLI after parsing --debug) changes anything.

    Args:
        debug: Emit DEBUG records (identity cache and mutation traces)
        log_file: Optional path to a log file; parent directories are created
        format_string: Log record format
        quiet_loggers: Library loggers capped at WARNING
        force: Reconfigure even if logging was already set up
    """
    global _logging_configured

    if _logging_configured and not force:
        return

    level = logging.DEBUG if debug else logging.INFO
    formatter = logging.Formatter(format_string)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    handlers = [console_handler]

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path, mode='a', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    logging.basicConfig(level=level, handlers=handlers, force=True)

    for name in quiet_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)

    _logging_configured = True


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a module (typically called with __name__)."""
    return logging.getLogger(name)
