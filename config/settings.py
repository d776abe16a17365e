"""
Configuration settings for Compta Insights
"""

import os


def _float(name, default):
    return float(os.environ.get(name, default))


def _int(name, default):
    return int(os.environ.get(name, default))


class Config:
    """Base configuration"""
    # App
    APP_NAME = "Compta Insights"
    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-secret-key-change-in-production')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # Database
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        'DATABASE_URL',
        'sqlite:///compta_insights.db'
    )
    # Fix for Render PostgreSQL URLs
    if SQLALCHEMY_DATABASE_URI and SQLALCHEMY_DATABASE_URI.startswith('postgres://'):
        SQLALCHEMY_DATABASE_URI = SQLALCHEMY_DATABASE_URI.replace('postgres://', 'postgresql://', 1)

    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        'pool_recycle': 300,
    }

    # Rate limiting
    RATELIMIT_DEFAULT = os.environ.get('RATELIMIT_DEFAULT', "100 per minute")
    RATELIMIT_STORAGE_URI = os.environ.get('REDIS_URL', 'memory://')

    # Currency (FCFA has no subdivision in use)
    CURRENCY_CODE = os.environ.get('CURRENCY_CODE', 'XOF')
    CURRENCY_DECIMALS = _int('CURRENCY_DECIMALS', 0)

    # Forecasting
    # A full year, so every calendar month can carry a seasonal factor
    FORECAST_HISTORY_MONTHS = _int('FORECAST_HISTORY_MONTHS', 12)
    FORECAST_MAX_MONTHS_AHEAD = _int('FORECAST_MAX_MONTHS_AHEAD', 12)
    FORECAST_PESSIMISTIC_FACTOR = _float('FORECAST_PESSIMISTIC_FACTOR', 0.9)
    FORECAST_OPTIMISTIC_FACTOR = _float('FORECAST_OPTIMISTIC_FACTOR', 1.1)
    SEASONALITY_MIN_POINTS = _int('SEASONALITY_MIN_POINTS', 6)

    # Budget suggestions
    BUDGET_MIN_HISTORY = _int('BUDGET_MIN_HISTORY', 3)
    BUDGET_LOOKBACK_MONTHS = _int('BUDGET_LOOKBACK_MONTHS', 6)
    CONFIDENCE_HIGH_CV = _float('CONFIDENCE_HIGH_CV', 0.15)
    CONFIDENCE_MEDIUM_CV = _float('CONFIDENCE_MEDIUM_CV', 0.35)

    # Forecast vs actual alerts
    VARIANCE_ALERT_RATIO = _float('VARIANCE_ALERT_RATIO', 0.20)
    VARIANCE_HIGH_RATIO = _float('VARIANCE_HIGH_RATIO', 0.30)


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'DEBUG')
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        'DATABASE_URL',
        'sqlite:///compta_insights_dev.db'
    )


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False

    # Ensure secret key is set in production
    SECRET_KEY = os.environ.get('SECRET_KEY')


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    RATELIMIT_ENABLED = False


# Config mapping
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}


def get_config():
    """Get config based on environment"""
    env = os.environ.get('FLASK_ENV', 'development')
    config_class = config.get(env, config['default'])
    if config_class is ProductionConfig and not config_class.SECRET_KEY:
        raise ValueError("SECRET_KEY must be set in production")
    return config_class
