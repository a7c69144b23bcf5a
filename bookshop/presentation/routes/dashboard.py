"""
Dashboard routes
Home summary and the CSRF token endpoint used by API clients
"""

from flask import Blueprint, jsonify
from flask_wtf.csrf import generate_csrf

from bookshop.logger import get_logger
from bookshop.presentation.routes.api_support import to_json_value
from bookshop.services.core.dashboard_service import DashboardService

bp = Blueprint('dashboard', __name__)
logger = get_logger("bookshop.routes.dashboard")


@bp.route('/dashboard', methods=['GET'])
def dashboard():
    """Record counts and the most recent orders"""
    summary = DashboardService.get_summary()
    logger.debug(f"Dashboard served: {summary['total_orders']} orders")
    return jsonify(to_json_value(summary))


@bp.route('/csrf-token', methods=['GET'])
def csrf_token():
    """Token to send as X-CSRFToken on POST/PATCH/DELETE requests"""
    return jsonify({'csrf_token': generate_csrf()})
