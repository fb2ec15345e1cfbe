"""Contact submission model."""

import hashlib
import uuid
from datetime import timedelta
from sqlalchemy.orm import validates
from whiskwillow.extensions import db
from whiskwillow.utils.helpers import utcnow, isoformat

STATUSES = ('new', 'read', 'replied', 'archived', 'spam')

ORDER_TYPES = ('wedding-cake', 'birthday-cake', 'pastries', 'bread',
               'corporate', 'custom', 'other', '')

ORDER_TYPE_LABELS = {
    'wedding-cake': 'Wedding Cake',
    'birthday-cake': 'Birthday Cake',
    'pastries': 'Pastries',
    'bread': 'Bread',
    'corporate': 'Corporate Order',
    'custom': 'Custom Order',
    'other': 'Other',
    '': 'General Inquiry',
}


def generate_id():
    return uuid.uuid4().hex


class ContactSubmission(db.Model):
    """Contact form submissions."""
    __tablename__ = 'contact_submissions'
    __table_args__ = (
        db.CheckConstraint(
            "status IN ('new', 'read', 'replied', 'archived', 'spam')",
            name='ck_contact_submissions_status'
        ),
        db.Index('ix_contact_submissions_email_created', 'email', 'created_at'),
        db.Index('ix_contact_submissions_status_created', 'status', 'created_at'),
    )

    id = db.Column(db.String(32), primary_key=True, default=generate_id)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(254), nullable=False)
    phone = db.Column(db.String(30), default='')
    order_type = db.Column(db.String(30), default='', index=True)
    message = db.Column(db.Text, nullable=False)
    status = db.Column(db.String(20), nullable=False, default='new')

    # Provenance, captured from the request
    ip_address = db.Column(db.String(45))
    user_agent = db.Column(db.Text)
    referrer = db.Column(db.Text)

    # Same email + message on the same day is a duplicate
    fingerprint = db.Column(db.String(64), unique=True, nullable=False)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    @validates('email')
    def normalize_email(self, key, value):
        return value.strip().lower() if value else value

    @staticmethod
    def compute_fingerprint(email, message, day):
        """Hash identifying a submission for duplicate detection."""
        raw = '\n'.join([email.strip().lower(), message.strip(), day.isoformat()])
        return hashlib.sha256(raw.encode('utf-8')).hexdigest()

    def touch(self):
        """Refresh updated_at, always moving it forward."""
        now = utcnow()
        if self.updated_at is not None and now <= self.updated_at:
            now = self.updated_at + timedelta(microseconds=1)
        self.updated_at = now

    @property
    def order_type_label(self):
        return ORDER_TYPE_LABELS.get(self.order_type or '', 'Other')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'phone': self.phone or '',
            'orderType': self.order_type or '',
            'message': self.message,
            'status': self.status,
            'ipAddress': self.ip_address,
            'userAgent': self.user_agent,
            'referrer': self.referrer,
            'createdAt': isoformat(self.created_at),
            'updatedAt': isoformat(self.updated_at),
        }

    def to_summary(self):
        """Id-bearing subset used by the stats endpoint."""
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'orderType': self.order_type or '',
            'createdAt': isoformat(self.created_at),
        }

    def __repr__(self):
        return f'<ContactSubmission {self.id} {self.email}>'
