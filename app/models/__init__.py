"""SQLModel tables for documents, notifications and subscriptions."""

from .document import Document, DOCUMENT_CATEGORIES
from .notification import Notification, NOTIFICATION_TYPES
from .subscription import Subscription

__all__ = [
    "Document",
    "DOCUMENT_CATEGORIES",
    "Notification",
    "NOTIFICATION_TYPES",
    "Subscription",
]
