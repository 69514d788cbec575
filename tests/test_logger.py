"""
Tests for Logger Module

Tests cover:
- SensitiveDataFilter (masking tokens and secrets)
- StructuredFormatter (JSON and text formatting)
- setup_logger (logger configuration)
- HTTP request/response logging
- Token operation logging
"""

import json
import logging
import os
from unittest.mock import patch

from bc_checkout.logger import (
    SensitiveDataFilter,
    StructuredFormatter,
    setup_logger,
    get_logger,
    log_http_request,
    log_http_response,
    log_token_operation,
)


def make_record(msg, level=logging.INFO):
    logger = logging.getLogger('test')
    return logger.makeRecord(logger.name, level, 'test.py', 1, msg, (), None)


class TestSensitiveDataFilter:
    """Test SensitiveDataFilter for masking sensitive information"""

    def test_filter_masks_token(self):
        """Test that token fields are masked"""
        record = make_record('{"token": "abc123xyz"}')

        SensitiveDataFilter().filter(record)

        assert '***MASKED***' in record.msg
        assert 'abc123xyz' not in record.msg

    def test_filter_masks_auth_header_in_labelled_payload(self):
        """Test that X-Auth-Token is masked in HTTP_REQUEST_RAW payloads"""
        payload = {"type": "HTTP_REQUEST", "headers": {"X-Auth-Token": "secret-access-token"}}
        record = make_record(f"HTTP_REQUEST_RAW: {json.dumps(payload)}")

        SensitiveDataFilter().filter(record)

        assert record.msg.startswith('HTTP_REQUEST_RAW: ')
        assert 'secret-access-token' not in record.msg
        assert '***MASKED***' in record.msg

    def test_filter_masks_nested_client_secret(self):
        record = make_record('{"config": {"client_secret": "s3cr3t", "store_hash": "abc"}}')

        SensitiveDataFilter().filter(record)

        assert 's3cr3t' not in record.msg
        assert 'abc' in record.msg

    def test_filter_masks_list_items(self):
        record = make_record('{"items": [{"jwt": "eyJ.x.y"}, {"id": 1}]}')

        SensitiveDataFilter().filter(record)

        assert 'eyJ.x.y' not in record.msg

    def test_filter_preserves_non_sensitive_data(self):
        """Test that non-sensitive data is preserved"""
        record = make_record('{"customer_id": 42, "channel_id": 7}')

        SensitiveDataFilter().filter(record)

        assert json.loads(record.msg) == {"customer_id": 42, "channel_id": 7}

    def test_filter_non_json_message(self):
        """Test that plain messages are left untouched"""
        record = make_record('HTTP Request: GET https://api.example.test/v3/carts/c1')
        original = record.msg

        assert SensitiveDataFilter().filter(record) is True
        assert record.msg == original

    def test_filter_invalid_json(self):
        record = make_record('{"token": broken')
        original = record.msg

        SensitiveDataFilter().filter(record)

        assert record.msg == original

    def test_filter_already_masked(self):
        """Test that already masked data is not processed again"""
        record = make_record('token: ***MASKED***')

        SensitiveDataFilter().filter(record)

        assert record.msg == 'token: ***MASKED***'


class TestStructuredFormatter:
    """Test StructuredFormatter for log formatting"""

    def test_text_format(self):
        """Test human-readable text format"""
        formatted = StructuredFormatter(json_format=False).format(make_record('Test message'))

        assert 'INFO' in formatted
        assert 'test' in formatted
        assert 'Test message' in formatted

    def test_json_format(self):
        """Test JSON format"""
        formatted = StructuredFormatter(json_format=True).format(make_record('Test message'))

        log_data = json.loads(formatted)
        assert log_data['level'] == 'INFO'
        assert log_data['logger'] == 'test'
        assert log_data['message'] == 'Test message'
        assert log_data['timestamp'].endswith('Z')

    def test_json_format_with_extra_fields(self):
        record = make_record('Resolved')
        record.service_name = 'redirect'
        record.checkout_id = 'cart-0001'

        log_data = json.loads(StructuredFormatter(json_format=True).format(record))

        assert log_data['service'] == 'redirect'
        assert log_data['checkout_id'] == 'cart-0001'

    def test_json_format_with_exception(self):
        try:
            raise ValueError("boom")
        except ValueError:
            import sys
            record = logging.getLogger('test').makeRecord(
                'test', logging.ERROR, 'test.py', 1, 'Failed', (), sys.exc_info()
            )

        log_data = json.loads(StructuredFormatter(json_format=True).format(record))

        assert 'ValueError: boom' in log_data['exception']


class TestLoggerSetup:
    """Test setup_logger function"""

    def test_setup_logger_default(self):
        logger = setup_logger('bc_test_logger_1', level='INFO')

        assert logger.name == 'bc_test_logger_1'
        assert logger.level == logging.INFO
        assert len(logger.handlers) == 1
        assert logger.propagate is False

    def test_setup_logger_invalid_level(self):
        """Test that an invalid level falls back to INFO"""
        logger = setup_logger('bc_test_logger_2', level='INVALID')

        assert logger.level == logging.INFO

    def test_setup_logger_from_env(self):
        with patch.dict(os.environ, {'LOG_LEVEL': 'warning'}):
            logger = setup_logger('bc_test_logger_env', level=None)

        assert logger.level == logging.WARNING

    def test_setup_logger_json_format_from_env(self):
        with patch.dict(os.environ, {'LOG_FORMAT': 'json'}):
            logger = setup_logger('bc_test_logger_json')

        assert logger.handlers[0].formatter.json_format is True

    def test_setup_logger_has_sensitive_filter(self):
        logger = setup_logger('bc_test_logger_filter')

        assert any(isinstance(f, SensitiveDataFilter) for f in logger.handlers[0].filters)

    def test_no_duplicate_handlers(self):
        logger1 = get_logger('bc_test_no_dup', service_name='svc')
        logger2 = get_logger('bc_test_no_dup')

        assert logger1 is logger2
        assert len(logger2.handlers) == 1
        assert logger1.service_name == 'svc'


class TestOperationLogging:
    """Test HTTP and token logging helpers"""

    def test_log_http_request_debug_payload(self):
        logger = setup_logger('bc_test_http_req', level='DEBUG')

        with patch.object(logger, 'debug') as mock_debug:
            log_http_request(
                logger,
                'GET',
                'https://api.example.test/stores/abc/v3/carts/c1',
                headers={'X-Auth-Token': 't'},
                params={'include': 'redirect_urls'}
            )

        raw = mock_debug.call_args.args[0]
        assert raw.startswith('HTTP_REQUEST_RAW: ')
        payload = json.loads(raw.split(': ', 1)[1])
        assert payload['params'] == {'include': 'redirect_urls'}

    def test_log_http_response_info_only(self):
        logger = setup_logger('bc_test_http_resp', level='INFO')

        with patch.object(logger, 'info') as mock_info, patch.object(logger, 'debug') as mock_debug:
            log_http_response(logger, 200, body={'data': {}}, duration_ms=12.5)

        mock_info.assert_called_once_with('HTTP Response: 200 (12.50ms)')
        mock_debug.assert_not_called()

    def test_log_token_operation(self):
        logger = setup_logger('bc_test_token', level='INFO')

        with patch.object(logger, 'info') as mock_info:
            log_token_operation(logger, 'issue', 'HS256', customer_id=42)
            log_token_operation(logger, 'decode', 'HS256', success=False)

        assert mock_info.call_args_list[0].args[0] == 'Token ISSUE: HS256 (customer: 42) - SUCCESS'
        assert mock_info.call_args_list[1].args[0] == 'Token DECODE: HS256 - FAILED'
