"""
Logging Sanitizer Utility

Redacts credentials from request payloads and headers before they are logged.
"""

from typing import Any, Dict, Mapping


# Keys whose values never reach the logs (compared case-insensitively)
SENSITIVE_FIELDS = {
    'password',
    'secret',
    'secret_key',
    'token',
    'api_key',
    'apikey',
    'x-api-key',
    'authorization',
    'auth_token',
    'access_token',
    'refresh_token',
    'session_id',
    'csrf_token',
    'smtp_password',
    'mail_password',
    'cookie',
}


def _sanitize_value(value: Any, redact_text: str) -> Any:
    if isinstance(value, dict):
        return sanitize_dict(value, redact_text)
    if isinstance(value, list):
        return [_sanitize_value(item, redact_text) for item in value]
    return value


def sanitize_dict(data: Dict[str, Any], redact_text: str = '[REDACTED]') -> Dict[str, Any]:
    """
    Replace sensitive values, recursing into nested objects and lists.

    Example:
        >>> sanitize_dict({'customer_id': 3, 'api_key': 'abc'})
        {'customer_id': 3, 'api_key': '[REDACTED]'}
    """
    if not data:
        return data

    sanitized = {}
    for key, value in data.items():
        if str(key).lower() in SENSITIVE_FIELDS:
            sanitized[key] = redact_text
        else:
            sanitized[key] = _sanitize_value(value, redact_text)
    return sanitized


def sanitize_headers(headers: Mapping[str, str], redact_text: str = '[REDACTED]') -> Dict[str, str]:
    """Sanitize request.headers (werkzeug Headers or any mapping) for logging"""
    return sanitize_dict(dict(headers.items()), redact_text)


def sanitize_payload(payload: Any, redact_text: str = '[REDACTED]') -> Any:
    """Sanitize an arbitrary decoded JSON body"""
    return _sanitize_value(payload, redact_text)
