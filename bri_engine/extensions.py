"""
Shared client instances — Redis connection and the RQ recalculation queue.

Lazily connected on first use so importing this module is always safe
(even when Redis is unreachable during tests).
"""
import logging

import redis

from bri_engine.config import REDIS_URL

logger = logging.getLogger('bri_engine.extensions')

# ── Redis ─────────────────────────────────────────────────────────────────────
# Used for per-company recalculation locks
redis_client = redis.from_url(REDIS_URL, decode_responses=True)

# ── RQ (lazy, avoids import-time Redis connection) ───────────────────────────
RECALC_QUEUE_NAME = 'recalculation'

_queue = None


def get_queue():
    """Return the RQ queue used for deferred batch recalculations."""
    global _queue
    if _queue is None:
        from rq import Queue
        # RQ stores pickled job payloads, so it needs a non-decoding connection
        _queue = Queue(RECALC_QUEUE_NAME, connection=redis.from_url(REDIS_URL))
    return _queue
