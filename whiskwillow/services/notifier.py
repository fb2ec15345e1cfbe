"""New-submission notifications.

Two delivery providers are supported: email through Flask-Mail and an AWS
SNS topic through boto3. Whichever is configured, delivery is best effort:
a notifier reports failure through its NotifyResult and never raises.
"""

import enum
import logging
import smtplib
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError
from flask import render_template
from flask_mail import BadHeaderError, Connection, Message

from whiskwillow.models.contact import ORDER_TYPE_LABELS
from whiskwillow.services.errors import NotifierError

logger = logging.getLogger(__name__)

SNS_SUBJECT_LIMIT = 100


class NotifierState(enum.Enum):
    ABSENT = 'absent'
    PLACEHOLDER = 'placeholder'
    ACTIVE = 'active'


def resolve_state(credential, placeholder_prefixes=()):
    """Classify a provider credential as absent, placeholder or active."""
    if not credential or not credential.strip():
        return NotifierState.ABSENT
    lowered = credential.strip().lower()
    if any(lowered.startswith(prefix.lower()) for prefix in placeholder_prefixes):
        return NotifierState.PLACEHOLDER
    return NotifierState.ACTIVE


@dataclass
class NotifyResult:
    success: bool
    error: Optional[str] = None
    skipped: bool = False
    message_id: Optional[str] = None


def build_subject(submission):
    order_type = submission.get('orderType') or ''
    label = ORDER_TYPE_LABELS.get(order_type, 'Contact') if order_type else 'Contact'
    # Header values must stay on one line
    name = ' '.join(str(submission['name']).split())
    return f'New Inquiry: {label} from {name}'


def render_bodies(submission, dashboard_url=None):
    """Render (text, html) bodies. Jinja autoescaping covers user-supplied fields."""
    context = dict(
        submission=submission,
        order_type_label=ORDER_TYPE_LABELS.get(submission.get('orderType') or ''),
        submitted_at=datetime.fromisoformat(submission['createdAt'])
        if submission.get('createdAt') else None,
        dashboard_url=dashboard_url,
    )
    text = render_template('email/contact_notification.txt', **context)
    html = render_template('email/contact_notification.html', **context)
    return text, html


class BaseNotifier:
    """Shared notify() flow; subclasses supply the credential and delivery."""
    name = 'base'

    def __init__(self, credential=None, placeholder_prefixes=(), timeout=10,
                 dashboard_url=None):
        self.state = resolve_state(credential, placeholder_prefixes)
        self.timeout = timeout
        self.dashboard_url = dashboard_url

    @property
    def is_configured(self):
        return self.state is NotifierState.ACTIVE

    def notify(self, submission):
        """Send one notification for a submission snapshot (see ContactSubmission.to_dict)."""
        if not self.is_configured:
            logger.info('%s notifier %s, skipping notification for %s',
                        self.name, self.state.value, submission.get('id'))
            return NotifyResult(success=False, skipped=True,
                                error=f'{self.name} notifier {self.state.value}')
        try:
            message_id = self.deliver(submission)
        except NotifierError as exc:
            return NotifyResult(success=False, error=exc.message)
        return NotifyResult(success=True, message_id=message_id)

    def deliver(self, submission):
        raise NotImplementedError


class TimeoutConnection(Connection):
    """Flask-Mail connection whose SMTP socket is bounded from the first byte."""

    def __init__(self, state, timeout):
        super().__init__(state)
        self.timeout = timeout

    def configure_host(self):
        state = self.mail
        smtp_class = smtplib.SMTP_SSL if state.use_ssl else smtplib.SMTP
        host = smtp_class(state.server, state.port, timeout=self.timeout)
        host.set_debuglevel(int(state.debug))
        if state.use_tls:
            host.starttls()
        if state.username and state.password:
            host.login(state.username, state.password)
        return host


class MailNotifier(BaseNotifier):
    """Email delivery through Flask-Mail."""
    name = 'mail'

    def __init__(self, mail, sender, recipients, **kwargs):
        super().__init__(**kwargs)
        self.mail = mail
        self.sender = sender
        self.recipients = list(recipients)

    def connect(self):
        conn = self.mail.connect()
        return TimeoutConnection(conn.mail, self.timeout)

    def deliver(self, submission):
        text, html = render_bodies(submission, self.dashboard_url)
        msg = Message(
            subject=build_subject(submission),
            recipients=self.recipients,
            body=text,
            html=html,
            sender=self.sender,
            reply_to=submission['email'],
        )
        try:
            with self.connect() as conn:
                conn.send(msg)
        except (smtplib.SMTPException, BadHeaderError, OSError) as exc:
            raise NotifierError(str(exc)) from exc
        return None


class SnsNotifier(BaseNotifier):
    """Publishes the text body to an SNS topic."""
    name = 'sns'

    def __init__(self, topic_arn, region=None, client=None, **kwargs):
        super().__init__(credential=topic_arn, **kwargs)
        self.topic_arn = topic_arn
        self.region = region
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client(
                'sns',
                region_name=self.region,
                config=BotoConfig(
                    connect_timeout=self.timeout,
                    read_timeout=self.timeout,
                    retries={'total_max_attempts': 1},
                ),
            )
        return self._client

    def deliver(self, submission):
        text, _ = render_bodies(submission, self.dashboard_url)
        try:
            response = self.client.publish(
                TopicArn=self.topic_arn,
                Subject=build_subject(submission)[:SNS_SUBJECT_LIMIT],
                Message=text,
            )
        except (ClientError, BotoCoreError) as exc:
            raise NotifierError(str(exc)) from exc
        return response.get('MessageId')


def create_notifier(app, mail):
    """Build the notifier selected by NOTIFIER_BACKEND."""
    cfg = app.config
    common = dict(
        placeholder_prefixes=cfg.get('NOTIFIER_PLACEHOLDER_PREFIXES', ()),
        timeout=cfg.get('NOTIFICATION_TIMEOUT', 10),
        dashboard_url=cfg.get('ADMIN_DASHBOARD_URL'),
    )
    backend = cfg.get('NOTIFIER_BACKEND', 'mail')
    if backend == 'sns':
        return SnsNotifier(cfg.get('SNS_TOPIC_ARN'), region=cfg.get('AWS_REGION'), **common)
    if backend != 'mail':
        raise ValueError(f'Unknown NOTIFIER_BACKEND: {backend}')
    return MailNotifier(
        mail,
        sender=cfg.get('FROM_EMAIL'),
        recipients=cfg.get('NOTIFICATION_EMAIL', []),
        credential=cfg.get('MAIL_PASSWORD'),
        **common,
    )


class NotificationDispatcher:
    """Runs notifications on a small thread pool, off the request path.

    on_dispatch, when set, receives each Future as it is submitted.
    """

    def __init__(self, app, notifier, max_workers=2, on_dispatch=None):
        self.app = app
        self.notifier = notifier
        self.on_dispatch = on_dispatch
        self._executor = ThreadPoolExecutor(max_workers=max_workers,
                                            thread_name_prefix='notify')
        self._pending = set()
        self._lock = threading.Lock()

    @property
    def pending(self):
        with self._lock:
            return len(self._pending)

    def dispatch(self, submission):
        """Queue a notification; returns the Future, or None once shut down."""
        try:
            future = self._executor.submit(self._run, submission)
        except RuntimeError:
            logger.warning('Dispatcher shut down, dropping notification for %s',
                           submission.get('id'))
            return None

        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._discard)
        if self.on_dispatch is not None:
            self.on_dispatch(future)
        return future

    def _discard(self, future):
        with self._lock:
            self._pending.discard(future)

    def _run(self, submission):
        with self.app.app_context():
            try:
                result = self.notifier.notify(submission)
            except Exception as exc:
                logger.exception('Notification error for %s', submission.get('id'))
                return NotifyResult(success=False, error=str(exc))

        if result.success:
            logger.info('Notification sent for %s', submission.get('id'))
        elif not result.skipped:
            logger.warning('Notification failed for %s: %s', submission.get('id'), result.error)
        return result

    def shutdown(self, grace_period=10):
        """Wait up to grace_period seconds for in-flight work, then stop."""
        with self._lock:
            pending = list(self._pending)
        if pending:
            logger.info('Waiting up to %ss for %d notification(s)', grace_period, len(pending))
            _, not_done = wait(pending, timeout=grace_period)
            if not_done:
                logger.error('%d notification(s) still running at shutdown', len(not_done))
        self._executor.shutdown(wait=False, cancel_futures=True)
