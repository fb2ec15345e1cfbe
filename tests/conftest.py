import itertools
from datetime import timedelta

import pytest

from whiskwillow import create_app
from whiskwillow.extensions import db
from whiskwillow.models import ContactSubmission
from whiskwillow.services import get_services, shutdown_services
from whiskwillow.utils.helpers import utcnow


def build_app(overrides=None):
    return create_app('testing', overrides)


@pytest.fixture
def app():
    app = build_app()
    with app.app_context():
        yield app
    shutdown_services(app, grace_period=1)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def services(app):
    return get_services(app)


@pytest.fixture
def dispatched(services):
    """Futures of every notification queued during the test."""
    futures = []
    services.dispatcher.on_dispatch = futures.append
    return futures


@pytest.fixture
def make_contact(app):
    """Insert a stored submission directly, newest first by call order."""
    counter = itertools.count()
    base = utcnow()

    def _make(**overrides):
        n = next(counter)
        created = overrides.pop('created_at', base - timedelta(minutes=n))
        fields = dict(
            name=f'Customer {n}',
            email=f'customer{n}@example.com',
            phone='',
            order_type='',
            message=f'Enquiry number {n} about sourdough',
            status='new',
        )
        fields.update(overrides)
        contact = ContactSubmission(
            created_at=created,
            updated_at=created,
            fingerprint=ContactSubmission.compute_fingerprint(
                fields['email'], fields['message'], created.date()),
            **fields
        )
        db.session.add(contact)
        db.session.commit()
        return contact

    return _make


@pytest.fixture
def valid_payload():
    return {
        'name': 'Jo Lee',
        'email': 'JO@Example.COM',
        'phone': '+1 (555) 123-4567',
        'orderType': 'birthday-cake',
        'message': 'Need a cake for Saturday please',
    }
