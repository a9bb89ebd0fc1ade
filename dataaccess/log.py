"""Logging setup for applications embedding dataaccess."""

import logging
from typing import Optional, Union

from dataaccess.config.models import EnvironmentSettings

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(level: Optional[Union[str, int]] = None) -> None:
    """Set up root logging with the dataaccess format.

    Args:
        level: Log level name or number. Defaults to DATAACCESS_LOG_LEVEL.
    """
    if level is None:
        level = EnvironmentSettings().log_level
    if isinstance(level, str):
        level = level.upper()
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger('dataaccess').setLevel(level)
