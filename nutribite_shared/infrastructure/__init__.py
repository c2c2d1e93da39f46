"""
Infrastructure: database pool and transactions, request correlation,
notification publishing.
"""

from nutribite_shared.infrastructure.db import (
    Database,
    get_db,
    get_db_context,
    run_in_transaction,
    is_retryable,
)
from nutribite_shared.infrastructure.notifications import (
    Notification,
    NotificationPublisher,
    RedisNotificationPublisher,
    NullNotificationPublisher,
    build_publisher,
    get_notifier,
    publish_safely,
)

__all__ = [
    "Database",
    "get_db",
    "get_db_context",
    "run_in_transaction",
    "is_retryable",
    "Notification",
    "NotificationPublisher",
    "RedisNotificationPublisher",
    "NullNotificationPublisher",
    "build_publisher",
    "get_notifier",
    "publish_safely",
]
