"""Logging setup for the application."""
import logging
import sys

from config.settings import settings


def configure_logging() -> None:
    """Send application logs to stdout at the configured level."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stdout,
    )

    # Set specific log levels for noisy libraries
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.sql_echo else logging.WARNING
    )
