"""Structured logging setup shared by the CLI and the Lambda handler."""

import logging

import structlog


def configure_logging(level: str = "INFO", silent: bool = False, debug: bool = False) -> None:
    """Configure structlog for console output.

    ``silent`` raises the floor to WARNING so only problems are printed.
    ``debug`` lowers it to DEBUG and turns on paramiko's own transport logging.
    """
    if debug:
        numeric_level = logging.DEBUG
    else:
        numeric_level = logging.getLevelName(level.upper())
        if not isinstance(numeric_level, int):
            numeric_level = logging.INFO
    if silent:
        numeric_level = max(numeric_level, logging.WARNING)

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="ISO"),
            structlog.dev.ConsoleRenderer()
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )

    if debug:
        logging.basicConfig(level=logging.DEBUG)
        logging.getLogger("paramiko").setLevel(logging.DEBUG)
