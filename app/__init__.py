"""
LUNARA Storefront Backend
Flask application factory
"""
import os
import logging
from flask import Flask
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from .extensions import db, migrate
from .config import get_config, validate_config
from .utils.cache import init_cache
from .utils.errors import error_response, http_error_code, internal_error
from .utils.exceptions import GatewayError, LunaraError
from .utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def create_app(config_name: str = None) -> Flask:
    """
    Application factory for creating Flask app instances.

    Args:
        config_name: Configuration environment (development, production, testing)

    Returns:
        Configured Flask application
    """
    if config_name is None:
        config_name = os.getenv('FLASK_ENV', 'development')

    # Setup logging before anything else
    setup_logging()
    validate_config(config_name)

    app = Flask(__name__)
    app.config.from_object(get_config(config_name))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Session store (Redis with fallback to in-memory)
    init_cache(app)

    # Points program is validated at startup so a bad tier table fails fast
    from .services.loyalty import get_points_config
    get_points_config(app)

    CORS(
        app,
        resources={r'/api/*': {'origins': app.config['CORS_ORIGINS']}},
        methods=['GET', 'POST', 'PUT', 'PATCH', 'DELETE', 'OPTIONS'],
        allow_headers=['Content-Type', 'Authorization'],
    )

    # Register blueprints
    register_blueprints(app)

    # Register CLI commands
    from .commands import init_app as init_commands
    init_commands(app)

    # Register error handlers
    register_error_handlers(app)

    # Health check endpoint
    @app.route('/health')
    def health_check():
        return {'status': 'healthy', 'service': 'lunara'}

    @app.route('/')
    def index():
        return {'service': 'LUNARA API', 'status': 'running', 'version': '1.0.0'}

    return app


def register_blueprints(app: Flask) -> None:
    """Register all API blueprints."""
    from .api.auth import auth_bp
    from .api.points import points_bp
    from .api.checkout import checkout_bp
    from .api.orders import orders_bp
    from .api.newsletter import newsletter_bp
    from .api.contact import contact_bp
    from .api.products import products_bp
    from .api.admin import admin_bp
    from .webhooks import stripe_webhook_bp

    # Customer accounts and loyalty
    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(points_bp, url_prefix='/api/points')

    # Checkout and orders
    app.register_blueprint(checkout_bp, url_prefix='/api/checkout')
    app.register_blueprint(orders_bp, url_prefix='/api/orders')

    # Storefront
    app.register_blueprint(newsletter_bp, url_prefix='/api/newsletter')
    app.register_blueprint(contact_bp, url_prefix='/api/contact')
    app.register_blueprint(products_bp, url_prefix='/api/products')

    # Shop staff
    app.register_blueprint(admin_bp, url_prefix='/api/admin')

    # Webhooks
    app.register_blueprint(stripe_webhook_bp, url_prefix='/api/webhooks/stripe')


def register_error_handlers(app: Flask) -> None:
    """Register error handlers."""

    @app.errorhandler(LunaraError)
    def handle_lunara_error(error):
        if error.status_code >= 500:
            db.session.rollback()
            # Only gateway failures have a client-facing message
            if not isinstance(error, GatewayError):
                logger.error(f'{type(error).__name__} [{error.code}]: {error.message}')
                return internal_error()
        return error_response(error.message, error.code, error.status_code)

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return error_response(
            error.description or error.name, http_error_code(error.name), error.code, log_error=False
        )

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        db.session.rollback()
        logger.exception(f'Unhandled error: {error}')
        return internal_error()
