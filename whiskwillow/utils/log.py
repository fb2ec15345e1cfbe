"""Logging setup for the package logger."""

import logging

LOG_FORMAT = '%(asctime)s %(levelname)s [%(name)s] %(message)s'


def configure_logging(app):
    """Attach a stream handler to the package logger at the configured level."""
    level = app.config.get('LOG_LEVEL', 'INFO')
    logger = logging.getLogger('whiskwillow')
    logger.setLevel(level)

    if not any(getattr(h, '_whiskwillow', False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._whiskwillow = True
        logger.addHandler(handler)

    app.logger.setLevel(level)
    return logger
