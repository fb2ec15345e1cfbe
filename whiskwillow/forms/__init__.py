"""Forms package - contact form validation."""

from .contact import ContactForm, ContactPayload, ValidationResult, validate_submission

__all__ = ['ContactForm', 'ContactPayload', 'ValidationResult', 'validate_submission']
