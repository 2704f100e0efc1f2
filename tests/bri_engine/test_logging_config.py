"""Tests for bri_engine.logging_config."""
import json
import logging
import os
from unittest.mock import patch

import pytest

from bri_engine.logging_config import configure_logging, JSONFormatter, _NOISY_LOGGERS


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    level, handlers = root.level, root.handlers[:]
    yield
    root.setLevel(level)
    root.handlers = handlers


def _configure(**env):
    with patch.dict(os.environ, env):
        for key in ('LOG_LEVEL', 'LOG_FORMAT'):
            if key not in env:
                os.environ.pop(key, None)
        configure_logging()


class TestConfigureLogging:

    @pytest.mark.parametrize('value,expected', [
        (None, logging.INFO),
        ('DEBUG', logging.DEBUG),
        ('warning', logging.WARNING),
        ('LOUD', logging.INFO),
        ('BASIC_FORMAT', logging.INFO),
    ])
    def test_level_from_env(self, value, expected):
        _configure(**({'LOG_LEVEL': value} if value else {}))
        assert logging.getLogger().level == expected

    def test_text_format(self, capsys):
        _configure(LOG_FORMAT='text')
        logging.getLogger('services.snapshots').info("snapshot %s written", 42)
        err = capsys.readouterr().err
        assert 'services.snapshots' in err
        assert 'snapshot 42 written' in err
        assert 'INFO' in err

    def test_json_format(self, capsys):
        _configure(LOG_FORMAT='json')
        logging.getLogger('services.batch').warning("company %s failed", 7)
        entry = json.loads(capsys.readouterr().err.strip())
        assert entry['level'] == 'WARNING'
        assert entry['logger'] == 'services.batch'
        assert entry['message'] == 'company 7 failed'
        assert 'timestamp' in entry

    def test_json_format_carries_traceback(self, capsys):
        _configure(LOG_FORMAT='json')
        try:
            raise RuntimeError("lookup exploded")
        except RuntimeError:
            logging.getLogger('services.snapshots').exception("recalc failed")
        entry = json.loads(capsys.readouterr().err.strip())
        assert 'RuntimeError: lookup exploded' in entry['exception']

    def test_noisy_loggers_quieted(self):
        _configure(LOG_LEVEL='DEBUG')
        assert 'sqlalchemy.engine' in _NOISY_LOGGERS
        for name in _NOISY_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING

    def test_only_engine_libraries_quieted(self):
        assert set(_NOISY_LOGGERS) == {'sqlalchemy.engine', 'sqlalchemy.pool', 'alembic', 'rq.worker'}

    def test_reconfigure_does_not_stack_handlers(self):
        configure_logging()
        configure_logging()
        assert len(logging.getLogger().handlers) == 1


class TestJSONFormatter:

    def test_formats_args(self):
        record = logging.LogRecord(
            name='scoring.config', level=logging.ERROR, pathname='', lineno=0,
            msg='weights sum to %s', args=('0.95',), exc_info=None,
        )
        entry = json.loads(JSONFormatter().format(record))
        assert entry['message'] == 'weights sum to 0.95'
        assert 'exception' not in entry
