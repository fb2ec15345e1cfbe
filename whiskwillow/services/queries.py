"""Read side and admin mutations for contact submissions."""

import logging
import math
from dataclasses import dataclass, field
from datetime import timedelta
from typing import List, Optional

from sqlalchemy import func, or_

from whiskwillow.models import ContactSubmission, STATUSES
from whiskwillow.services.base import BaseService
from whiskwillow.services.errors import InvalidActionError, NotFoundError, ValidationError
from whiskwillow.utils.helpers import utcnow

logger = logging.getLogger(__name__)

ALL = 'all'

SORTABLE_FIELDS = {
    'createdAt': ContactSubmission.created_at,
    'updatedAt': ContactSubmission.updated_at,
    'name': ContactSubmission.name,
    'email': ContactSubmission.email,
    'status': ContactSubmission.status,
    'orderType': ContactSubmission.order_type,
}

# action -> (new status or None for delete, past tense for messages)
BULK_ACTIONS = {
    'archive': ('archived', 'archived'),
    'mark-read': ('read', 'marked as read'),
    'delete': (None, 'deleted'),
}

RECENT_LIMIT = 5


@dataclass
class ContactFilters:
    status: Optional[str] = None
    order_type: Optional[str] = None
    search: Optional[str] = None


@dataclass
class ContactPage:
    items: List[ContactSubmission]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self):
        return math.ceil(self.total / self.limit) if self.total else 0

    @property
    def has_next(self):
        return self.page < self.total_pages

    @property
    def has_prev(self):
        return self.page > 1

    def pagination(self):
        return {
            'page': self.page,
            'limit': self.limit,
            'total': self.total,
            'totalPages': self.total_pages,
            'hasNextPage': self.has_next,
            'hasPrevPage': self.has_prev,
        }


@dataclass
class BulkResult:
    action: str
    affected: int
    message: str = field(init=False)

    def __post_init__(self):
        self.message = f'Successfully {BULK_ACTIONS[self.action][1]} {self.affected} contacts'


def _escape_like(value):
    return value.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')


class QueryService(BaseService):
    """Listing, lookup, status changes, deletion and statistics."""

    def list_contacts(self, filters=None, page=1, limit=None,
                      sort_by='createdAt', sort_order='desc'):
        """Return one page of contacts matching the filters."""
        filters = filters or ContactFilters()
        default_limit = self.context.config.get('ITEMS_PER_PAGE', 20)
        max_limit = self.context.config.get('MAX_ITEMS_PER_PAGE', 100)
        page = page if page and page > 0 else 1
        limit = min(limit if limit and limit > 0 else default_limit, max_limit)

        query = ContactSubmission.query

        if filters.status and filters.status != ALL:
            query = query.filter(ContactSubmission.status == filters.status)

        if filters.order_type and filters.order_type != ALL:
            query = query.filter(ContactSubmission.order_type == filters.order_type)

        if filters.search:
            pattern = f'%{_escape_like(filters.search)}%'
            query = query.filter(
                or_(
                    ContactSubmission.name.ilike(pattern, escape='\\'),
                    ContactSubmission.email.ilike(pattern, escape='\\'),
                    ContactSubmission.message.ilike(pattern, escape='\\')
                )
            )

        column = SORTABLE_FIELDS.get(sort_by, ContactSubmission.created_at)
        ordering = column.asc() if sort_order == 'asc' else column.desc()

        pagination = query.order_by(ordering, ContactSubmission.id).paginate(
            page=page, per_page=limit, error_out=False
        )
        return ContactPage(items=pagination.items, page=page, limit=limit,
                           total=pagination.total or 0)

    def get_contact(self, contact_id):
        contact = self.session.get(ContactSubmission, contact_id)
        if contact is None:
            raise NotFoundError()
        return contact

    def update_contact(self, contact_id, changes):
        """Change status (the only mutable field) and refresh updated_at."""
        contact = self.get_contact(contact_id)

        status = (changes or {}).get('status')
        if status is not None:
            if status not in STATUSES:
                raise ValidationError(details=[
                    f'Status must be one of: {", ".join(STATUSES)}'
                ])
            contact.status = status

        contact.touch()
        self.commit('updating contact')
        logger.info('Contact %s updated (status=%s)', contact_id, contact.status)
        return contact

    def remove_contact(self, contact_id):
        contact = self.get_contact(contact_id)
        self.session.delete(contact)
        self.commit('deleting contact')
        logger.info('Contact %s deleted', contact_id)
        return contact_id

    def bulk_action(self, ids, action):
        """Apply archive, mark-read or delete to every id in ids."""
        if not isinstance(ids, list) or not ids:
            raise ValidationError('No contact IDs provided')
        if action not in BULK_ACTIONS:
            raise InvalidActionError()

        ids = [str(contact_id) for contact_id in ids]
        new_status = BULK_ACTIONS[action][0]
        query = ContactSubmission.query.filter(ContactSubmission.id.in_(ids))

        if new_status is None:
            affected = query.delete(synchronize_session=False)
        else:
            contacts = query.all()
            for contact in contacts:
                contact.status = new_status
                contact.touch()
            affected = len(contacts)

        self.commit(f'running bulk {action}')
        logger.info('Bulk %s affected %d contacts', action, affected)
        return BulkResult(action=action, affected=affected)

    def stats(self):
        """Totals, status and order type breakdowns, and the latest submissions."""
        total = ContactSubmission.query.count()

        by_status = dict(
            self.session.query(
                ContactSubmission.status, func.count(ContactSubmission.id)
            ).group_by(ContactSubmission.status).all()
        )

        by_order_type = dict(
            self.session.query(
                ContactSubmission.order_type, func.count(ContactSubmission.id)
            ).filter(
                ContactSubmission.order_type != '',
                ContactSubmission.order_type.isnot(None)
            ).group_by(ContactSubmission.order_type).all()
        )

        recent = ContactSubmission.query.order_by(
            ContactSubmission.created_at.desc()
        ).limit(RECENT_LIMIT).all()

        return {
            'totalContacts': total,
            'byStatus': by_status,
            'byOrderType': by_order_type,
            'recentSubmissions': [contact.to_summary() for contact in recent],
        }

    def metrics(self):
        """Counters for the system status endpoint."""
        since = utcnow() - timedelta(hours=24)
        return {
            'totalContacts': ContactSubmission.query.count(),
            'contactsLast24h': ContactSubmission.query.filter(
                ContactSubmission.created_at >= since
            ).count(),
            'newContacts': ContactSubmission.query.filter_by(status='new').count(),
        }
