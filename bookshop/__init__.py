from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_wtf.csrf import CSRFProtect
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from sqlalchemy import event
from sqlalchemy.engine import Engine
import sqlite3
import os
from bookshop.logger import get_logger

# Initialize extensions
db = SQLAlchemy()
csrf = CSRFProtect()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["200 per day", "50 per hour"],
    storage_uri="memory://"  # Use Redis in production for distributed systems
)


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores FK constraints unless asked per connection
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def _env_flag(name, default):
    return os.environ.get(name, default).lower() in ('true', '1', 'yes', 'on')


def create_app(config_overrides=None):
    """
    Application factory for the Bookshop Management System

    Args:
        config_overrides (dict, optional): Config values applied before the
            extensions are initialised (tests use this for the database URI)

    Returns:
        Flask: configured application
    """
    from pathlib import Path

    app = Flask(__name__)

    logger = get_logger("bookshop")
    logger.info("Initializing Flask application")

    # Configuration
    # SECURITY: Require SECRET_KEY in environment - no fallback
    app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY')

    db_env = os.environ.get('DATABASE_URL')
    if db_env:
        app.config['SQLALCHEMY_DATABASE_URI'] = db_env
    elif not (config_overrides or {}).get('SQLALCHEMY_DATABASE_URI'):
        # Store the SQLite database inside the project's `instance/` directory
        base_dir = Path(__file__).parent.parent
        instance_dir = base_dir / 'instance'
        instance_dir.mkdir(parents=True, exist_ok=True)
        default_db_path = instance_dir / 'bookshop.db'
        app.config['SQLALCHEMY_DATABASE_URI'] = f"sqlite:///{str(default_db_path.resolve())}"

    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False

    # Order placement / inventory behaviour
    app.config['ORDER_TRANSACTION_TIMEOUT_SECONDS'] = float(os.environ.get('ORDER_TRANSACTION_TIMEOUT_SECONDS', '5'))
    app.config['RESTOCK_MAX_RETRIES'] = int(os.environ.get('RESTOCK_MAX_RETRIES', '3'))
    app.config['RECENT_ORDERS_LIMIT'] = int(os.environ.get('RECENT_ORDERS_LIMIT', '5'))
    app.config['ORDER_RATE_LIMIT'] = os.environ.get('ORDER_RATE_LIMIT', '30 per minute')

    app.config['RATELIMIT_ENABLED'] = _env_flag('RATELIMIT_ENABLED', 'True')
    app.config['SESSION_COOKIE_HTTPONLY'] = True
    app.config['SESSION_COOKIE_SAMESITE'] = 'Lax'

    if config_overrides:
        app.config.update(config_overrides)

    if not app.config['SECRET_KEY']:
        logger.critical("SECRET_KEY not set in environment! Application cannot start.")
        raise RuntimeError("SECRET_KEY environment variable is required")

    # SQLite waits on locked rows for at most the transaction timeout
    if app.config['SQLALCHEMY_DATABASE_URI'].startswith('sqlite'):
        engine_options = dict(app.config.get('SQLALCHEMY_ENGINE_OPTIONS') or {})
        connect_args = dict(engine_options.get('connect_args') or {})
        connect_args.setdefault('timeout', app.config['ORDER_TRANSACTION_TIMEOUT_SECONDS'])
        engine_options['connect_args'] = connect_args
        app.config['SQLALCHEMY_ENGINE_OPTIONS'] = engine_options
        logger.debug("Database configured: SQLite")
    else:
        logger.debug("Database configured from DATABASE_URL")

    # Initialize extensions with app
    db.init_app(app)
    csrf.init_app(app)
    limiter.init_app(app)

    logger.debug("Extensions initialized")

    # Import models to ensure they're registered with SQLAlchemy
    from bookshop.data.core.book import Book
    from bookshop.data.core.shop import Shop
    from bookshop.data.core.customer import Customer
    from bookshop.data.inventory.inventory_listing import InventoryListing
    from bookshop.data.orders.order import Order

    logger.debug("Models imported and registered")

    from bookshop.presentation.routes import init_app as init_routes
    init_routes(app)

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({'error': 'NotFound', 'message': 'Resource not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'error': 'MethodNotAllowed', 'message': str(error)}), 405

    @app.errorhandler(429)
    def rate_limited(error):
        logger.warning(f"Rate limit exceeded: {error.description}")
        return jsonify({'error': 'RateLimited', 'message': str(error.description)}), 429

    # Add security headers to all responses
    @app.after_request
    def set_security_headers(response):
        """Add security headers to all responses"""
        response.headers['X-Frame-Options'] = 'SAMEORIGIN'
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['Content-Security-Policy'] = "default-src 'self'"
        return response

    logger.info("Flask application initialization complete")

    return app
