"""
Loguru configuration for the controller.

This module configures loguru with:
- Automatic reconcile key in each log
- Configurable format from settings
- Optional JSON output through loguru serialization
- Redirection of standard library logs to loguru
"""

import logging
import sys
from typing import Any

from loguru import logger

from certsteward.config import settings
from certsteward.core.reconcile_context import reconcile_key_context


def add_reconcile_key(record: dict[str, Any]) -> bool:
    """
    Adds the reconcile key to the log record.

    The key is obtained from the current reconcile context, allowing
    all logs of one reconcile pass to be grouped by certificate.

    Args:
        record: Loguru record

    Returns:
        True to indicate that the filter passed
    """
    reconcile_key = reconcile_key_context.get()
    record["extra"]["reconcile_key"] = reconcile_key if reconcile_key else "-"
    return True


def configure_logger() -> None:
    """
    Configures loguru with controller settings.

    This function:
    1. Removes default loguru handlers
    2. Adds handler to stderr with custom configuration
    3. Configures level, format, colorization, etc.

    With ``LOG_JSON`` enabled every record is written by loguru as one JSON
    document; the reconcile key travels in ``record.extra``.
    """
    # Remove default configuration
    logger.remove()

    logger.add(
        sink=sys.stderr,
        level=settings.log_level.upper(),
        format=settings.log_format,
        filter=add_reconcile_key,
        colorize=not settings.log_json,
        serialize=settings.log_json,
        backtrace=True,
        diagnose=settings.debug,
        enqueue=settings.logger_enqueue,
    )


# Configure logger when importing the module
configure_logger()


__all__ = ["logger", "InterceptHandler", "add_reconcile_key"]


class InterceptHandler(logging.Handler):
    """
    Handler to redirect standard logging logs to loguru.

    This allows capturing logs from libraries that use standard logging
    (like uvicorn, httpx, pynamodb) and process them with loguru.
    """

    def emit(self, record: logging.LogRecord) -> None:
        """
        Redirects a standard logging record to loguru.

        Args:
            record: logging.LogRecord record
        """
        loguru_logger = logger.opt(depth=6, exception=record.exc_info)
        loguru_logger.log(record.levelname, record.getMessage())


def intercept_standard_logging() -> None:
    """
    Configures redirection of standard logging to loguru.

    Intercepts logs from:
    - uvicorn (ASGI server)
    - httpx (Vault issuer client)
    - pynamodb / botocore (DynamoDB secret store)

    Call this function in main.py when initializing the app.
    """
    logging.basicConfig(handlers=[InterceptHandler()], level=logging.INFO)

    for logger_name in [
        "uvicorn",
        "uvicorn.access",
        "uvicorn.error",
        "httpx",
        "pynamodb",
        "botocore",
    ]:
        logging_logger = logging.getLogger(logger_name)
        logging_logger.handlers = [InterceptHandler()]
        logging_logger.propagate = False
