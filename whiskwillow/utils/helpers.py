"""Small shared helpers."""

import time
from datetime import datetime, timezone


def utcnow():
    """Naive UTC timestamp, matching what the database hands back."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def isoformat(value):
    if value is None:
        return None
    return value.isoformat()


def generate_error_reference():
    """Reference token quoted to clients when a server error is logged."""
    return f'ERR-{int(time.time() * 1000)}'
