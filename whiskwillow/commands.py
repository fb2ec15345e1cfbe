"""Flask CLI commands."""

import random
import uuid
from datetime import timedelta

import click
from flask.cli import with_appcontext

from whiskwillow.extensions import db
from whiskwillow.models import ContactSubmission, ORDER_TYPES, STATUSES
from whiskwillow.utils.helpers import utcnow

SAMPLE_NAMES = ['Jo Lee', 'Priya Sharma', 'Marcus Bell', 'Ana Souza', 'Tom Okafor']
SAMPLE_MESSAGES = [
    'Need a cake for Saturday please, chocolate if possible.',
    'Could you quote for 200 pastries for a corporate event?',
    'Do you bake sourdough every day or only on weekends?',
    'Looking for a three tier wedding cake for next June.',
    'Is it possible to order a gluten free birthday cake?',
]


def register_commands(app):
    app.cli.add_command(init_db)
    app.cli.add_command(seed_contacts)


@click.command('init-db')
@with_appcontext
def init_db():
    """Create database tables."""
    db.create_all()
    click.echo('Database tables created.')


@click.command('seed-contacts')
@click.option('--count', default=25, show_default=True, help='Number of submissions.')
@with_appcontext
def seed_contacts(count):
    """Insert sample contact submissions for local development."""
    now = utcnow()
    for i in range(count):
        name = random.choice(SAMPLE_NAMES)
        email = f'{name.split()[0].lower()}.{uuid.uuid4().hex[:8]}@example.com'
        message = random.choice(SAMPLE_MESSAGES)
        created = now - timedelta(hours=i * 5)
        db.session.add(ContactSubmission(
            name=name,
            email=email,
            phone='',
            order_type=random.choice(ORDER_TYPES),
            message=message,
            status=random.choice(STATUSES),
            fingerprint=ContactSubmission.compute_fingerprint(email, message, created.date()),
            created_at=created,
            updated_at=created,
        ))
    db.session.commit()
    click.echo(f'Seeded {count} contact submissions.')
