"""
Routes package for the Bookshop Management System
JSON API blueprints, one module per business area
"""

from bookshop.logger import get_logger

logger = get_logger("bookshop.routes")

from . import dashboard, inventory, orders


def init_app(app):
    """Initialize all route blueprints with the Flask app"""
    logger.debug("Initializing route blueprints")

    app.register_blueprint(dashboard.bp, url_prefix='/api')
    app.register_blueprint(inventory.bp, url_prefix='/api')
    app.register_blueprint(orders.bp, url_prefix='/api')

    logger.info("All route blueprints registered")
