"""Service layer wiring."""

from flask import current_app

from whiskwillow.services.context import ServiceContext
from whiskwillow.services.errors import (ServiceError, ValidationError, DuplicateError,
                                         NotFoundError, InvalidActionError, StorageError,
                                         NotifierError)
from whiskwillow.services.notifier import NotificationDispatcher, create_notifier
from whiskwillow.services.queries import QueryService, ContactFilters
from whiskwillow.services.submissions import SubmissionService, RequestContext

EXTENSION_KEY = 'whiskwillow'


class Services:
    """The services built for one application."""

    def __init__(self, context):
        self.context = context
        self.submissions = SubmissionService(context)
        self.queries = QueryService(context)

    @property
    def dispatcher(self):
        return self.context.dispatcher


def init_services(app, db, mail):
    """Open the service context and attach the services to the app."""
    notifier = create_notifier(app, mail)
    dispatcher = NotificationDispatcher(
        app, notifier, max_workers=app.config.get('NOTIFICATION_WORKERS', 2)
    )
    context = ServiceContext(db=db, config=app.config, dispatcher=dispatcher)
    services = Services(context)
    app.extensions[EXTENSION_KEY] = services
    return services


def get_services(app=None):
    app = app or current_app
    return app.extensions[EXTENSION_KEY]


def shutdown_services(app, grace_period=None):
    """Close the app's service context, waiting for in-flight notifications."""
    services = app.extensions.get(EXTENSION_KEY)
    if services is None:
        return
    with app.app_context():
        services.context.close(grace_period)


__all__ = [
    'Services', 'ServiceContext', 'init_services', 'get_services', 'shutdown_services',
    'SubmissionService', 'QueryService', 'RequestContext', 'ContactFilters',
    'ServiceError', 'ValidationError', 'DuplicateError', 'NotFoundError',
    'InvalidActionError', 'StorageError', 'NotifierError',
]
