"""Service base class and commit convention."""

import logging

from sqlalchemy.exc import SQLAlchemyError

from whiskwillow.services.errors import StorageError

logger = logging.getLogger(__name__)


class BaseService:
    """Holds the service context and the commit/rollback convention."""

    def __init__(self, context):
        self.context = context

    @property
    def session(self):
        return self.context.session

    def commit(self, action):
        """Commit the session, turning store failures into StorageError."""
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            error = StorageError(details=[str(exc)])
            logger.error('Storage failure while %s [%s]: %s', action, error.reference, exc)
            raise error from exc
