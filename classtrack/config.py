import os


def _env_flag(name, default):
    return os.environ.get(name, default).lower() in ('true', '1', 'yes')


class BaseConfig:
    """Base configuration shared across all environments."""

    # Flask core
    SECRET_KEY = os.environ.get('SECRET_KEY', 'fallback-secret-key-change-me')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    WTF_CSRF_ENABLED = True

    # Database
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        'SQLALCHEMY_DATABASE_URI', 'sqlite:///dev.db'
    )

    # Platform clients
    SCRAPER_RATE_LIMIT = float(os.environ.get('SCRAPER_RATE_LIMIT', '0.5'))
    PLATFORM_REQUEST_TIMEOUT = float(
        os.environ.get('PLATFORM_REQUEST_TIMEOUT', '30')
    )

    # Reconciliation sweeps
    SWEEP_BATCH_SIZE = int(os.environ.get('SWEEP_BATCH_SIZE', '100'))
    SWEEP_BATCH_DELAY = float(os.environ.get('SWEEP_BATCH_DELAY', '0.1'))
    CLASS_STATUS_CHECK_DELAY = float(
        os.environ.get('CLASS_STATUS_CHECK_DELAY', '1.0')
    )

    # Logging
    LOG_FILE_MAX_BYTES = int(os.environ.get('LOG_FILE_MAX_BYTES', '0'))
    LOG_FILE_BACKUP_COUNT = int(os.environ.get('LOG_FILE_BACKUP_COUNT', '3'))
    LOG_FORMAT = os.environ.get(
        'LOG_FORMAT', '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
    )

    # Scheduler
    SCHEDULER_ENABLED = _env_flag('SCHEDULER_ENABLED', 'false')
    # 0 disables the scheduled system-wide pending sweep
    PENDING_SWEEP_INTERVAL_HOURS = int(
        os.environ.get('PENDING_SWEEP_INTERVAL_HOURS', '0')
    )
    LINKED_SYNC_INTERVAL_HOURS = int(
        os.environ.get('LINKED_SYNC_INTERVAL_HOURS', '4')
    )


class DevelopmentConfig(BaseConfig):
    """Development environment configuration."""

    DEBUG = True
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        'SQLALCHEMY_DATABASE_URI', 'sqlite:///dev.db'
    )
    SCHEDULER_ENABLED = False


class ProductionConfig(BaseConfig):
    """Production environment configuration."""

    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        'SQLALCHEMY_DATABASE_URI', 'sqlite:///prod.db'
    )
    SCHEDULER_ENABLED = _env_flag('SCHEDULER_ENABLED', 'true')


class TestingConfig(BaseConfig):
    """Testing environment configuration."""

    TESTING = True
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    WTF_CSRF_ENABLED = False
    SECRET_KEY = 'test-secret-key'
    SCHEDULER_ENABLED = False
    SERVER_NAME = 'localhost'
    SCRAPER_RATE_LIMIT = 0.0
    SWEEP_BATCH_DELAY = 0.0
    CLASS_STATUS_CHECK_DELAY = 0.0


config_map = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
}
