"""
Logging for the LINE bot service.

Everything logs under "line_bot" (children per area: line_bot.handlers,
line_bot.entitlement, ...) to stdout, which the host collects.
"""

import logging
import os
import sys

LOG_FORMAT = '[%(asctime)s] [%(name)s] [%(levelname)s] %(message)s'


def setup_logging(level: str | None = None) -> logging.Logger:
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()

    logger = logging.getLogger("line_bot")
    logger.setLevel(level)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
    logger.addHandler(handler)

    # Own handler only; uvicorn configures the root logger separately
    logger.propagate = False

    # httpx logs every request line at INFO, including reply URLs
    logging.getLogger("httpx").setLevel(logging.WARNING)

    return logger


bot_logger = setup_logging()
