"""
Logging Sanitizer Utility

Redacts customer contact details and request tokens from data before it is
logged. Order and listing payloads are logged on rejection; customer records
travel through the same handlers.
"""

import re
from typing import Any, Dict

from werkzeug.datastructures import MultiDict


# Customer personal data and request secrets that never reach the logs
SENSITIVE_FIELDS = {
    'email',
    'phone',
    'address',
    'postal_code',
    'date_of_birth',
    'csrf_token',
    'secret_key',
}

EMAIL_IN_TEXT = re.compile(r"[^@\s'\"]+@[^@\s'\"]+\.[^@\s'\"]+")


def sanitize_dict(data: Dict[str, Any], redact_text: str = '[REDACTED]') -> Dict[str, Any]:
    """
    Replace sensitive field values (case-insensitive key match) with redact_text.

    Nested dicts, and dicts inside lists, are sanitized too.

    Example:
        >>> sanitize_dict({'first_name': 'Ann', 'email': 'ann@example.com'})
        {'first_name': 'Ann', 'email': '[REDACTED]'}
    """
    if not data:
        return data

    sanitized = {}
    for key, value in data.items():
        if str(key).lower() in SENSITIVE_FIELDS:
            sanitized[key] = redact_text
        elif isinstance(value, dict):
            sanitized[key] = sanitize_dict(value, redact_text)
        elif isinstance(value, list):
            sanitized[key] = [
                sanitize_dict(item, redact_text) if isinstance(item, dict) else item
                for item in value
            ]
        else:
            sanitized[key] = value

    return sanitized


def sanitize_form_data(form_data: MultiDict, redact_text: str = '[REDACTED]') -> Dict[str, Any]:
    """Sanitize Flask request.form data for safe logging."""
    return sanitize_dict(form_data.to_dict(), redact_text)


def sanitize_exception_message(exception: Exception) -> str:
    """
    Exception text with any email addresses masked.

    Database errors echo bound parameters, which for customer rows include
    contact details.
    """
    return EMAIL_IN_TEXT.sub('[REDACTED]', str(exception))
