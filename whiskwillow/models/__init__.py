"""Database models package."""

from .contact import ContactSubmission, ORDER_TYPES, STATUSES
from .analytics import AnalyticsEvent

__all__ = [
    'ContactSubmission',
    'AnalyticsEvent',
    'ORDER_TYPES',
    'STATUSES',
]
