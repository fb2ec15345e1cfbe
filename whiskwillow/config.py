import os
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name, default='false'):
    return os.environ.get(name, default).lower() in ('1', 'true', 'yes')


def _env_list(name):
    value = os.environ.get(name, '')
    return [item.strip() for item in value.split(',') if item.strip()]


class Config:
    """Base configuration."""
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'

    # Database - SQLite unless DATABASE_URL points elsewhere
    basedir = os.path.dirname(os.path.dirname(__file__))
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        f'sqlite:///{os.path.join(basedir, "instance", "whiskwillow.db")}'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    AUTO_CREATE_TABLES = _env_flag('AUTO_CREATE_TABLES', 'true')

    # Request handling
    MAX_CONTENT_LENGTH = 10 * 1024 * 1024  # 10MB max body
    TRUST_PROXY = _env_flag('TRUST_PROXY')

    # CORS Configuration
    CORS_ORIGINS = [
        'http://localhost:8080',
        'http://127.0.0.1:8080',
        'http://localhost:3000',
        'http://127.0.0.1:3000',
        'https://sharaywhiskandwillow.netlify.app',
    ] + _env_list('FRONTEND_URL')
    CORS_ALLOW_ALL = False

    # Pagination
    ITEMS_PER_PAGE = 20
    MAX_ITEMS_PER_PAGE = 100

    # Logging and error rendering
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    EXPOSE_ERROR_DETAILS = False

    # Notifications: 'mail' (Flask-Mail) or 'sns' (AWS SNS)
    NOTIFIER_BACKEND = os.environ.get('NOTIFIER_BACKEND', 'mail')
    NOTIFIER_PLACEHOLDER_PREFIXES = ('re_xxxx', 'your-', 'changeme', 'placeholder', 'xxxx')
    NOTIFICATION_TIMEOUT = float(os.environ.get('NOTIFICATION_TIMEOUT', 10))
    NOTIFICATION_WORKERS = int(os.environ.get('NOTIFICATION_WORKERS', 2))
    SHUTDOWN_GRACE_PERIOD = float(os.environ.get('SHUTDOWN_GRACE_PERIOD', 10))
    FROM_EMAIL = os.environ.get('FROM_EMAIL', 'ShaRay Whisk&Willow <contact@sharaybakery.com>')
    NOTIFICATION_EMAIL = _env_list('NOTIFICATION_EMAIL') or ['admin@sharaybakery.com']
    ADMIN_DASHBOARD_URL = os.environ.get(
        'ADMIN_DASHBOARD_URL', 'https://sharaywhiskandwillow.netlify.app/admin.html')

    # Mail Configuration
    MAIL_SERVER = os.environ.get('MAIL_SERVER', 'smtp.gmail.com')
    MAIL_PORT = int(os.environ.get('MAIL_PORT', 587))
    MAIL_USE_TLS = os.environ.get('MAIL_USE_TLS', 'True').lower() == 'true'
    MAIL_USERNAME = os.environ.get('MAIL_USERNAME')
    MAIL_PASSWORD = os.environ.get('MAIL_PASSWORD')
    MAIL_DEFAULT_SENDER = os.environ.get('MAIL_USERNAME')

    # AWS SNS Configuration
    AWS_REGION = os.environ.get('AWS_REGION', 'us-east-1')
    SNS_TOPIC_ARN = os.environ.get('SNS_TOPIC_ARN')


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    SQLALCHEMY_ECHO = False
    CORS_ALLOW_ALL = True
    EXPOSE_ERROR_DETAILS = True


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    AUTO_CREATE_TABLES = _env_flag('AUTO_CREATE_TABLES')


class TestingConfig(Config):
    """Testing configuration."""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    AUTO_CREATE_TABLES = True
    MAIL_SUPPRESS_SEND = True
    MAIL_PASSWORD = None
    SNS_TOPIC_ARN = None
    NOTIFIER_BACKEND = 'mail'
    NOTIFICATION_EMAIL = ['owner@example.com']
    SHUTDOWN_GRACE_PERIOD = 5
    LOG_LEVEL = 'WARNING'


config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
