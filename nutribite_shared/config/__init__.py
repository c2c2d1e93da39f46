"""
Configuration module: Settings, logging, constants.
"""

from nutribite_shared.config.settings import settings, get_settings, Settings
from nutribite_shared.config.logging import get_logger, setup_logging
from nutribite_shared.config.constants import (
    Roles,
    OrderStatus,
    PriceAdjustMode,
    NotificationEvents,
    Limits,
    UNCATEGORIZED_KEY,
)

__all__ = [
    # settings
    "settings",
    "get_settings",
    "Settings",
    # logging
    "get_logger",
    "setup_logging",
    # constants
    "Roles",
    "OrderStatus",
    "PriceAdjustMode",
    "NotificationEvents",
    "Limits",
    "UNCATEGORIZED_KEY",
]
