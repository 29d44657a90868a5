# nosec B101


import json
import logging
import sys
from decimal import Decimal
from logging.handlers import RotatingFileHandler

import pytest

from config.settings import Settings
from infrastructure.monitoring.logger import JSONFormatter, setup_logging


@pytest.fixture
def restore_root_logger():
    root_logger = logging.getLogger()
    handlers, level = list(root_logger.handlers), root_logger.level
    yield root_logger
    for handler in root_logger.handlers:
        handler.close()
    root_logger.handlers = handlers
    root_logger.setLevel(level)


def test_json_formatter_structures_record():
    record = logging.LogRecord('workers.rate_ingestor', logging.INFO, __file__, 10, 'Saved %s', ('EUR/BTC',), None)
    record.extra_data = {'rate': Decimal('0.000012345')}

    entry = json.loads(JSONFormatter().format(record))

    assert entry['level'] == 'INFO'
    assert entry['logger'] == 'workers.rate_ingestor'
    assert entry['message'] == 'Saved EUR/BTC'
    assert entry['data'] == {'rate': '0.000012345'}
    assert 'exception' not in entry


def test_json_formatter_includes_exception():
    try:
        raise ValueError('bad price')
    except ValueError:
        record = logging.LogRecord('test', logging.ERROR, __file__, 1, 'failed', (), sys.exc_info())

    entry = json.loads(JSONFormatter().format(record))

    assert entry['exception']['type'] == 'ValueError'
    assert entry['exception']['message'] == 'bad price'


def test_setup_logging_console_only(restore_root_logger):
    setup_logging(Settings(LOG_LEVEL='debug', LOG_DIRECTORY=''))

    assert restore_root_logger.level == logging.DEBUG
    assert len(restore_root_logger.handlers) == 1
    assert logging.getLogger('httpx').level == logging.WARNING


def test_setup_logging_adds_rotating_file(restore_root_logger, tmp_path):
    setup_logging(Settings(LOG_DIRECTORY=str(tmp_path / 'logs')))

    file_handlers = [h for h in restore_root_logger.handlers if isinstance(h, RotatingFileHandler)]
    assert len(file_handlers) == 1
    assert isinstance(file_handlers[0].formatter, JSONFormatter)
    assert (tmp_path / 'logs' / 'crypto_rates.log').exists()
