"""
Helpers shared by the JSON API blueprints: request payload parsing and
error responses.
"""

import re
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from flask import jsonify, request

_INTEGER_TEXT = re.compile(r"^-?\d+$")


def get_payload() -> Dict[str, Any]:
    """Request body as a dict: JSON when sent as JSON, else form fields."""
    if request.is_json:
        payload = request.get_json(silent=True)
        return payload if isinstance(payload, dict) else {}
    return request.form.to_dict()


def as_int(value):
    """Form fields arrive as text; digits become int, anything else is left for validation."""
    if isinstance(value, str) and _INTEGER_TEXT.match(value.strip()):
        return int(value.strip())
    return value


def to_json_value(value):
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: to_json_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [to_json_value(v) for v in value]
    return value


def error_response(error: str, message: str, status: int, errors: Optional[List] = None, **extra):
    body = {'error': error, 'message': message}
    if errors is not None:
        body['errors'] = [e.to_dict() for e in errors]
    body.update(extra)
    return jsonify(body), status
