"""Service error taxonomy, rendered to JSON by the app's error handlers."""

from whiskwillow.utils.helpers import generate_error_reference


class ServiceError(Exception):
    """Base class for errors the API layer knows how to render."""
    status_code = 500
    message = 'Internal server error'

    def __init__(self, message=None, details=None):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.details = list(details) if details else []

    def to_dict(self):
        body = {'success': False, 'error': self.message}
        if self.details:
            body['details'] = self.details
        return body


class ValidationError(ServiceError):
    status_code = 400
    message = 'Validation failed'


class DuplicateError(ServiceError):
    status_code = 400
    message = 'Duplicate submission detected'


class NotFoundError(ServiceError):
    status_code = 404
    message = 'Contact not found'


class InvalidActionError(ServiceError):
    status_code = 400
    message = 'Invalid action'


class StorageError(ServiceError):
    """Required write or read failed. Details stay out of production responses."""
    status_code = 500
    message = 'Internal server error. Please try again later.'

    def __init__(self, message=None, details=None):
        super().__init__(message, details)
        self.reference = generate_error_reference()

    def to_dict(self):
        body = super().to_dict()
        body['reference'] = self.reference
        return body


class NotifierError(ServiceError):
    """Delivery provider failure. Logged, never surfaced to clients."""
    message = 'Notification delivery failed'
