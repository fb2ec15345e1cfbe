"""Contact form intake."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from whiskwillow.forms import validate_submission
from whiskwillow.models import ContactSubmission, AnalyticsEvent
from whiskwillow.services.base import BaseService
from whiskwillow.services.errors import DuplicateError, StorageError, ValidationError
from whiskwillow.utils.helpers import utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestContext:
    """Provenance of a submission, taken from the request and never the payload."""
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    referrer: Optional[str] = None

    @classmethod
    def from_request(cls, request):
        return cls(
            ip_address=request.remote_addr,
            user_agent=request.headers.get('User-Agent'),
            referrer=request.referrer,
        )


@dataclass(frozen=True)
class SubmissionReceipt:
    id: str
    created_at: datetime


def _is_unique_violation(exc):
    text = str(exc.orig).lower()
    return 'unique' in text or 'duplicate' in text


class SubmissionService(BaseService):
    """Validate, store, track and notify for a new contact submission."""

    def submit(self, payload, request_context=None):
        request_context = request_context or RequestContext()

        result = validate_submission(payload)
        if not result.is_valid:
            raise ValidationError(details=result.errors)
        contact = result.contact

        now = utcnow()
        fingerprint = ContactSubmission.compute_fingerprint(
            contact.email, contact.message, now.date())
        submission = ContactSubmission(
            name=contact.name,
            email=contact.email,
            phone=contact.phone,
            order_type=contact.order_type,
            message=contact.message,
            status='new',
            ip_address=request_context.ip_address,
            user_agent=request_context.user_agent,
            referrer=request_context.referrer,
            fingerprint=fingerprint,
            created_at=now,
            updated_at=now,
        )
        self.session.add(submission)
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            if _is_unique_violation(exc):
                logger.info('Duplicate submission %s', fingerprint[:12])
                raise DuplicateError() from exc
            error = StorageError(details=[str(exc)])
            logger.error('Failed to save contact [%s]: %s', error.reference, exc)
            raise error from exc
        except SQLAlchemyError as exc:
            self.session.rollback()
            error = StorageError(details=[str(exc)])
            logger.error('Failed to save contact [%s]: %s', error.reference, exc)
            raise error from exc

        snapshot = submission.to_dict()
        logger.info('Contact saved to database: %s', submission.id)

        self._track(contact, request_context)
        self.context.dispatcher.dispatch(snapshot)

        return SubmissionReceipt(id=snapshot['id'], created_at=now)

    def _track(self, contact, request_context):
        """Best-effort analytics write; failures are logged and dropped."""
        event = AnalyticsEvent(
            form_type='contact',
            ip_address=request_context.ip_address,
            user_agent=request_context.user_agent,
            referrer=request_context.referrer,
            submission_data={
                'name': contact.name,
                'email': contact.email,
                'orderType': contact.order_type,
            },
        )
        try:
            self.session.add(event)
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.warning('Analytics tracking failed: %s', exc)
