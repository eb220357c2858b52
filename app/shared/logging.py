"""
Logging configuration for the ledger service.

Every ledger operation logs through the ``app.*`` loggers with a
consistent format that includes the thread name, so that interleaved
executions of concurrent requests can be told apart.
Logging must not change program behavior.
Never logs sensitive data (request bodies, secrets, payment references).
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(threadName)s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

QUIET_LOGGERS = ("uvicorn.access", "uvicorn.error", "httpx", "httpcore")
SQL_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool")


def configure_logging(level: str = "INFO", sql_echo: bool = False) -> None:
    """Configure logging for the application.

    Args:
        level: Level of the ledger loggers (DEBUG, INFO, WARNING, ERROR).
        sql_echo: Keep SQLAlchemy statement logging. Off by default.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        stream=sys.stdout,
        force=True,
    )
    logging.getLogger("app").setLevel(numeric_level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    if not sql_echo:
        for name in SQL_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
