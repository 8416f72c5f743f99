"""
Credentials must never reach the logs.
"""

from werkzeug.datastructures import Headers

from invoicing.utils.logging_sanitizer import (
    SENSITIVE_FIELDS, sanitize_dict, sanitize_headers, sanitize_payload,
)


def test_sanitize_dict_redacts_only_sensitive_keys():
    result = sanitize_dict({'customer_id': 3, 'api_key': 'abcd1234', 'token': 'xyz'})
    assert result['customer_id'] == 3
    assert result['api_key'] == '[REDACTED]'
    assert result['token'] == '[REDACTED]'


def test_sanitize_dict_is_case_insensitive():
    result = sanitize_dict({'API_KEY': 'a', 'Authorization': 'Bearer b', 'X-Api-Key': 'c'})
    assert set(result.values()) == {'[REDACTED]'}


def test_nested_objects_and_lists_are_sanitized():
    payload = {
        'items': [{'inventory_item_id': 1, 'quantity': 2, 'secret': 's'}],
        'meta': {'password': 'p', 'note': 'keep'},
    }
    result = sanitize_payload(payload)
    assert result['items'][0] == {'inventory_item_id': 1, 'quantity': 2, 'secret': '[REDACTED]'}
    assert result['meta'] == {'password': '[REDACTED]', 'note': 'keep'}
    # input untouched
    assert payload['meta']['password'] == 'p'


def test_sanitize_headers():
    headers = Headers([('X-API-Key', 'k'), ('Authorization', 'Bearer k'), ('Content-Type', 'application/json')])
    result = sanitize_headers(headers)
    assert result['X-API-Key'] == '[REDACTED]'
    assert result['Authorization'] == '[REDACTED]'
    assert result['Content-Type'] == 'application/json'


def test_custom_redaction_text_and_empty_input():
    assert sanitize_dict({'password': 'x'}, redact_text='***') == {'password': '***'}
    assert sanitize_dict({}) == {}
    assert sanitize_payload('plain') == 'plain'


def test_api_credentials_are_listed():
    for field in ('api_key', 'x-api-key', 'authorization', 'smtp_password'):
        assert field in SENSITIVE_FIELDS
