"""Logging setup shared by the Coordinator and peer nodes."""

import logging
import os
import re
import sys
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class SensitiveDataFilter(logging.Filter):
    """Filter to mask credentials in log records."""

    SENSITIVE_KEYS = ('password', 'secret', 'token', 'authorization')

    PATTERN = re.compile(
        r'(\b(?:' + '|'.join(SENSITIVE_KEYS) + r')["\']?\s*[:=]\s*["\']?)([^"\'}\s,]+)',
        re.IGNORECASE,
    )
    MASK = r'\1***MASKED***'

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = self._mask(record.msg)

        if record.args:
            if isinstance(record.args, dict):
                record.args = {k: self._mask_value(v) for k, v in record.args.items()}
            elif isinstance(record.args, tuple):
                record.args = tuple(self._mask_value(arg) for arg in record.args)

        return True

    def _mask(self, text: str) -> str:
        return self.PATTERN.sub(self.MASK, text)

    def _mask_value(self, value):
        if isinstance(value, str):
            return self._mask(value)
        return value


def setup_logging(component_name: str, log_level: Optional[str] = None) -> logging.Logger:
    """
    Set up logging for a component and the modules beneath it.

    Args:
        component_name: Name of the component ('coordinator', 'peer')
        log_level: DEBUG, INFO, WARNING or ERROR. Defaults to the LOG_LEVEL env var or INFO

    Returns:
        Configured component logger
    """
    if log_level is None:
        log_level = os.getenv('LOG_LEVEL', 'INFO')

    level = getattr(logging, log_level.upper(), logging.INFO)

    logger = logging.getLogger(component_name)
    logger.setLevel(level)

    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    handler.addFilter(SensitiveDataFilter())

    logger.addHandler(handler)
    logger.propagate = False

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a module logger. Modules under ``coordinator.`` or ``peer.`` inherit
    the handler installed by :func:`setup_logging` for that component.
    """
    return logging.getLogger(name)
