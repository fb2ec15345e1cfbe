"""Analytics event model."""

from whiskwillow.extensions import db
from whiskwillow.utils.helpers import utcnow


class AnalyticsEvent(db.Model):
    """Append-only form telemetry."""
    __tablename__ = 'analytics_events'

    id = db.Column(db.Integer, primary_key=True)
    form_type = db.Column(db.String(50), nullable=False, default='contact')
    ip_address = db.Column(db.String(45))
    user_agent = db.Column(db.Text)
    referrer = db.Column(db.Text)
    submission_data = db.Column(db.JSON)
    created_at = db.Column(db.DateTime, default=utcnow)

    def __repr__(self):
        return f'<AnalyticsEvent {self.form_type}>'
