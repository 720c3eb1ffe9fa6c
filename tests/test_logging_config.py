"""Tests for credential masking in logs."""

import logging

from common.logging_config import SensitiveDataFilter, get_logger, setup_logging


def _record(msg, args=None):
    return logging.LogRecord('peer.test', logging.INFO, __file__, 1, msg, args, None)


def test_masks_password_in_message():
    record = _record('login username=alice password=hunter2')

    SensitiveDataFilter().filter(record)

    assert 'hunter2' not in record.msg
    assert 'password=***MASKED***' in record.msg
    assert 'username=alice' in record.msg


def test_masks_json_style_values_in_args():
    record = _record('payload %s', ('{"password": "hunter2", "token": "abc"}',))

    SensitiveDataFilter().filter(record)

    assert 'hunter2' not in record.args[0]
    assert 'abc' not in record.args[0]


def test_setup_logging_is_idempotent():
    logger = setup_logging('peershare-test-component', log_level='debug')
    assert logger.level == logging.DEBUG

    again = setup_logging('peershare-test-component', log_level='warning')

    assert again is logger
    assert len(logger.handlers) == 1
    assert get_logger('peershare-test-component.child').parent is logger
