"""
Configuration management for the LUNARA storefront backend.
"""
import os
import re
from dotenv import load_dotenv

load_dotenv()

DEV_SECRET_KEY = 'lunara-dev-only'


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, default))


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class BaseConfig:
    """Base configuration."""
    SECRET_KEY = os.getenv('SECRET_KEY', DEV_SECRET_KEY)
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JSON_SORT_KEYS = False

    SITE_URL = os.getenv('SITE_URL', 'http://localhost:8787').rstrip('/')
    CORS_ORIGINS = [o.strip() for o in os.getenv('CORS_ORIGINS', '*').split(',') if o.strip()]

    # Stripe
    STRIPE_SECRET_KEY = os.getenv('STRIPE_SECRET_KEY', '')
    STRIPE_WEBHOOK_SECRET = os.getenv('STRIPE_WEBHOOK_SECRET', '')
    STRIPE_API_VERSION = os.getenv('STRIPE_API_VERSION', '2024-12-18.acacia')
    STRIPE_CURRENCY = os.getenv('STRIPE_CURRENCY', 'eur')
    STRIPE_COUPON_PREFIX = 'lunara_points'

    # Email (SendGrid)
    SENDGRID_API_KEY = os.getenv('SENDGRID_API_KEY', '')
    MAIL_FROM = os.getenv('MAIL_FROM', 'hallo@lunara.shop')
    MAIL_FROM_NAME = os.getenv('MAIL_FROM_NAME', 'LUNARA')
    CONTACT_NOTIFY_EMAIL = os.getenv('CONTACT_NOTIFY_EMAIL', '')

    # Sessions live in the cache backend with a fixed lifetime (no sliding renewal)
    SESSION_TTL_SECONDS = _env_int('SESSION_TTL_SECONDS', 7 * 24 * 60 * 60)
    REQUIRE_EMAIL_VERIFICATION = _env_bool('REQUIRE_EMAIL_VERIFICATION', False)
    RESET_TOKEN_TTL_HOURS = _env_int('RESET_TOKEN_TTL_HOURS', 2)
    MIN_PASSWORD_LENGTH = 8

    # Points program. Money values are minor units (cents).
    CURRENCY_UNIT_VALUE = _env_int('CURRENCY_UNIT_VALUE', 100)
    POINTS_EARN_PER_UNIT = _env_int('POINTS_EARN_PER_UNIT', 1)
    POINTS_SIGNUP_BONUS = _env_int('POINTS_SIGNUP_BONUS', 50)
    POINTS_NEWSLETTER_BONUS = _env_int('POINTS_NEWSLETTER_BONUS', 25)
    POINTS_REVIEW_BONUS = _env_int('POINTS_REVIEW_BONUS', 100)
    POINTS_PER_UNIT_DISCOUNT = _env_int('POINTS_PER_UNIT_DISCOUNT', 20)
    POINTS_MAX_DISCOUNT_PERCENT = _env_int('POINTS_MAX_DISCOUNT_PERCENT', 20)
    POINTS_MIN_ORDER_FOR_REDEMPTION = _env_int('POINTS_MIN_ORDER_FOR_REDEMPTION', 3000)

    # Tier table as JSON: [{"name": ..., "min": ..., "max": ... | null, "bonus_multiplier": ...}]
    LOYALTY_TIERS = os.getenv('LOYALTY_TIERS') or [
        {'name': 'MOON', 'min': 0, 'max': 499, 'bonus_multiplier': '1.0'},
        {'name': 'ECLIPSE', 'min': 500, 'max': 1499, 'bonus_multiplier': '1.1'},
        {'name': 'NOVA', 'min': 1500, 'max': None, 'bonus_multiplier': '1.25'},
    ]

    # Session store. REDIS_URL switches it to RedisCache in init_cache().
    REDIS_URL = os.getenv('REDIS_URL', '')
    CACHE_TYPE = 'SimpleCache'
    CACHE_DEFAULT_TIMEOUT = 300


class DevelopmentConfig(BaseConfig):
    """Development configuration."""
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = os.getenv(
        'DATABASE_URL',
        'sqlite:///lunara_dev.db'  # SQLite fallback for local dev
    )


class ProductionConfig(BaseConfig):
    """Production configuration."""
    DEBUG = False

    # Heroku-style URLs use the postgres:// scheme, SQLAlchemy 2 only accepts postgresql://
    SQLALCHEMY_DATABASE_URI = re.sub(r'^postgres://', 'postgresql://', os.getenv('DATABASE_URL', ''))

    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_size': _env_int('DB_POOL_SIZE', 5),
        'pool_recycle': 300,
        'pool_pre_ping': True,
    }

    SECRET_KEY = os.getenv('SECRET_KEY', '')

    # Without these the app can start but cannot take or settle a payment
    REQUIRED = ('SECRET_KEY', 'DATABASE_URL', 'STRIPE_SECRET_KEY', 'STRIPE_WEBHOOK_SECRET')


class TestingConfig(BaseConfig):
    """Testing configuration."""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SITE_URL = 'https://shop.test'
    STRIPE_SECRET_KEY = 'sk_test_lunara'
    STRIPE_WEBHOOK_SECRET = 'whsec_test_lunara'
    SENDGRID_API_KEY = ''
    REQUIRE_EMAIL_VERIFICATION = False
    CACHE_TYPE = 'SimpleCache'


config_map = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig
}


def get_config(config_name: str = 'development'):
    """Get configuration class by name."""
    return config_map.get(config_name, DevelopmentConfig)


def validate_config(config_name: str = 'development') -> None:
    """
    Refuse to start production with missing secrets or a placeholder SECRET_KEY.

    Raises:
        RuntimeError: Listing every problem found
    """
    if config_name != 'production':
        return

    problems = [f'{name} is not set' for name in ProductionConfig.REQUIRED if not os.getenv(name)]

    secret = os.getenv('SECRET_KEY', '')
    if secret and (len(secret) < 32 or secret == DEV_SECRET_KEY):
        problems.append('SECRET_KEY must be a random value of at least 32 characters')

    if problems:
        raise RuntimeError('Invalid production configuration: ' + '; '.join(problems))
