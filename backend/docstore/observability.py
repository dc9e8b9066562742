"""Logging setup and Logfire observability for the document store."""

import logging

import logfire

from docstore import __version__
from docstore.config import StoreSettings

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(settings: StoreSettings) -> None:
    """Configure root logging at the level from settings."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )


def initialize_logfire(settings: StoreSettings) -> bool:
    """
    Initialize Logfire and instrument the MongoDB driver.

    Call once at application startup, before the first repository operation.
    Instruments:
    - PyMongo commands (provisioning, queries, writes)
    - Python logging (bridged to Logfire)

    Args:
        settings: Store settings containing the Logfire token

    Returns:
        True when Logfire was configured, False when it is disabled or failed.
    """
    if not settings.logfire_token:
        logger.warning("Logfire token not set - observability disabled")
        return False

    try:
        logfire.configure(
            token=settings.logfire_token,
            service_name="docstore",
            service_version=__version__,
        )

        logfire.instrument_pymongo()

        root_logger = logging.getLogger()
        root_logger.addHandler(logfire.LogfireLoggingHandler())

        logger.info("Logfire tracking initialized")
        return True

    except Exception as e:
        logger.warning(f"Failed to initialize Logfire: {e}")
        # Continue running - observability is optional
        return False
