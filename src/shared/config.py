"""Environment-driven configuration."""

import os
import logging
from decimal import Decimal

from .validators import validate_threshold


def budgets_table_name() -> str:
    """Name of the DynamoDB table holding budgets and their guard items."""
    return os.environ.get('BUDGETS_TABLE', 'budget-tracker-budgets')


def expenses_table_name() -> str:
    """Name of the DynamoDB table holding expenses."""
    return os.environ.get('EXPENSES_TABLE', 'budget-tracker-expenses')


def default_alert_threshold() -> Decimal:
    """Alert threshold applied when a budget is created without one."""
    return validate_threshold(os.environ.get('DEFAULT_ALERT_THRESHOLD', '80'))


def configure_logging() -> logging.Logger:
    """Apply LOG_LEVEL to the root logger and return it."""
    logging.basicConfig(
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )
    logger = logging.getLogger()
    logger.setLevel(os.environ.get('LOG_LEVEL', 'INFO').upper())
    return logger
