"""Health and diagnostic endpoints."""

import os
import platform
import time

from flask import Blueprint, current_app, jsonify
from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError
from whiskwillow.extensions import db
from whiskwillow.services import get_services
from whiskwillow.utils.helpers import utcnow, isoformat

system_bp = Blueprint('system', __name__)


def _uptime():
    return round(time.monotonic() - current_app.config['STARTED_AT'], 3)


def _database_connected():
    try:
        db.session.execute(text('SELECT 1'))
        return True
    except SQLAlchemyError as exc:
        current_app.logger.warning('Database health check failed: %s', exc)
        db.session.rollback()
        return False


@system_bp.route('/health')
def health():
    """Liveness snapshot."""
    started = time.perf_counter()
    engine_url = db.engine.url
    notifier = get_services().dispatcher.notifier

    data = {
        'status': 'OK',
        'timestamp': isoformat(utcnow()),
        'uptime': _uptime(),
        'environment': current_app.config.get('ENV_NAME'),
        'pythonVersion': platform.python_version(),
        'database': {
            'status': 'connected' if _database_connected() else 'disconnected',
            'backend': engine_url.get_backend_name(),
            'database': engine_url.database,
        },
        'services': {
            'email': notifier.state.value,
            'notifier': notifier.name,
        },
    }
    data['responseTime'] = f'{(time.perf_counter() - started) * 1000:.1f}ms'
    return jsonify(data)


@system_bp.route('/system/status')
def system_status():
    """Diagnostic snapshot with contact metrics."""
    connected = _database_connected()
    loadavg = list(os.getloadavg()) if hasattr(os, 'getloadavg') else 'N/A'

    return jsonify({
        'success': True,
        'data': {
            'server': {
                'uptime': _uptime(),
                'loadavg': loadavg,
                'pendingNotifications': get_services().dispatcher.pending,
            },
            'database': {
                'connected': connected,
                'tables': inspect(db.engine).get_table_names() if connected else [],
            },
            'metrics': get_services().queries.metrics(),
        }
    })
