"""Process-wide service context: store handle, configuration, notifications."""

import logging
from dataclasses import dataclass
from typing import Any, Mapping

logger = logging.getLogger(__name__)


@dataclass
class ServiceContext:
    """Built once at startup and handed to every service.

    close() touches the engine, so call it inside an app context.
    """
    db: Any
    config: Mapping
    dispatcher: Any
    closed: bool = False

    @property
    def session(self):
        return self.db.session

    def close(self, grace_period=None):
        """Drain pending notifications, then release database connections."""
        if self.closed:
            return
        self.closed = True
        if grace_period is None:
            grace_period = self.config.get('SHUTDOWN_GRACE_PERIOD', 10)

        self.dispatcher.shutdown(grace_period)
        self.db.session.remove()
        self.db.engine.dispose()
        logger.info('Service context closed')
