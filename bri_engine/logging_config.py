"""
Logging setup for the engine.

init_engine() calls configure_logging() once. LOG_FORMAT picks text or
single-line JSON output; LOG_LEVEL defaults to INFO.
"""
import json
import logging
import os
import sys
from datetime import datetime, timezone

TEXT_FORMAT = '[%(asctime)s] %(levelname)s %(name)s: %(message)s'

# SQL echo, migration chatter and RQ worker heartbeats drown out recalculation logs
_NOISY_LOGGERS = [
    'sqlalchemy.engine',
    'sqlalchemy.pool',
    'alembic',
    'rq.worker',
]


class JSONFormatter(logging.Formatter):
    """One JSON object per line, traceback under 'exception'."""

    def format(self, record):
        entry = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }
        if record.exc_info and record.exc_info[0] is not None:
            entry['exception'] = self.formatException(record.exc_info)
        return json.dumps(entry)


def _level_from_env():
    level = getattr(logging, os.getenv('LOG_LEVEL', 'INFO').upper(), None)
    # Names like BASIC_FORMAT exist on the module but are not levels
    return level if isinstance(level, int) else logging.INFO


def configure_logging():
    """Replace root handlers with one stderr handler; safe to call again."""
    level = _level_from_env()

    if os.getenv('LOG_FORMAT', 'text').lower() == 'json':
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(TEXT_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
